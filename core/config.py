from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings


load_dotenv()


class AppSettings(BaseSettings):
    mongo_uri: str = Field(default="mongodb://localhost:27017", alias="MONGO_URI")
    # Accept MONGO_DB_NAME (preferred) or DATABASE_NAME (legacy)
    database_name: str = Field(
        default="salon-booking",
        validation_alias=AliasChoices("MONGO_DB_NAME", "DATABASE_NAME"),
    )
    # Every store call is bounded by this (client-side operation timeout)
    store_timeout_ms: int = Field(default=8000, alias="STORE_TIMEOUT_MS")
    store_max_pool_size: int = Field(default=10, alias="STORE_MAX_POOL_SIZE")

    # Slot materialisation
    slot_horizon_days: int = Field(default=7, alias="SLOT_HORIZON_DAYS")
    slot_granularity_minutes: int = Field(default=5, alias="SLOT_GRANULARITY_MINUTES")
    operating_window_start: str = Field(default="09:00", alias="OPERATING_WINDOW_START")
    operating_window_end: str = Field(default="18:00", alias="OPERATING_WINDOW_END")
    # Salons without an explicit zone fall back to this one
    default_timezone: str = Field(default="UTC", alias="SALON_TIMEZONE")

    # Booking
    default_duration: str = Field(default="30 minutes", alias="DEFAULT_SERVICE_DURATION")

    # Used by the cron jobs to reach the running API
    api_base_url: str = Field(default="http://127.0.0.1:8000", alias="APP_API_BASE_URL")

    environment: Literal["development", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
