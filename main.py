from __future__ import annotations

import logging
from logging.config import dictConfig
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.router import api_router
from core.config import settings
from core.errors import SchedulingError, StoreTransientError
from db.database import close_database, ensure_indexes, get_database


def configure_logging() -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "level": "INFO",
                }
            },
            "root": {"handlers": ["console"], "level": "INFO"},
            "loggers": {
                "services": {"level": "INFO", "propagate": True},
                "api": {"level": "INFO", "propagate": True},
                "db": {"level": "INFO", "propagate": True},
            },
        }
    )


configure_logging()
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SchedulingError)
    async def _scheduling_error(request: Request, exc: SchedulingError) -> JSONResponse:
        if isinstance(exc, StoreTransientError):
            logger.error("request.store_error", extra={"path": request.url.path, "error": exc.message})
            return _error(exc.status_code, "Service temporarily unavailable, please retry")
        if exc.status_code >= 500:
            logger.error("request.scheduling_error", extra={"path": request.url.path, "error": exc.message})
            return _error(exc.status_code, "Internal server error")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = first.get("msg", "Invalid request")
        return _error(400, f"{field}: {message}" if field else message)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(PyMongoError)
    async def _store_error(request: Request, exc: PyMongoError) -> JSONResponse:
        logger.exception("request.store_error", extra={"path": request.url.path})
        return _error(500, "Service temporarily unavailable, please retry")

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        # Opaque to the client; the stack trace only goes to the log
        logger.exception("request.unhandled_error", extra={"path": request.url.path})
        return _error(500, "Internal server error")


def create_app() -> FastAPI:
    app = FastAPI(title="Salon Booking API", version="0.1.0")

    app.include_router(api_router, prefix="/api")
    register_exception_handlers(app)

    @app.on_event("startup")
    async def _ensure_indexes() -> None:
        # Indexes only; slot generation runs from cron/main.py
        try:
            await ensure_indexes(await get_database())
        except PyMongoError:
            logger.exception("db.indexes_failed")

    @app.on_event("shutdown")
    async def _close_database() -> None:
        await close_database()

    @app.get("/")
    async def root_health() -> dict[str, str]:
        return {"status": "ok", "environment": settings.environment}

    logger.info("Application initialized")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.environment == "development")
