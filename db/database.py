from __future__ import annotations

from functools import lru_cache

import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database as SyncDatabase

from core.config import settings


logger = logging.getLogger(__name__)

APPOINTMENTS = "appointments"
TIMESLOTS = "timeslots"
PROFESSIONALS = "professionals"
SALONS = "salons"


def _client_options() -> dict:
    return {
        "maxPoolSize": settings.store_max_pool_size,
        "serverSelectionTimeoutMS": min(settings.store_timeout_ms, 5000),
        "timeoutMS": settings.store_timeout_ms,
    }

# Request path

@lru_cache(maxsize=1)
def get_motor_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.mongo_uri, **_client_options())


async def get_database() -> AsyncIOMotorDatabase:
    client = get_motor_client()
    return client[settings.database_name]


async def close_database() -> None:
    client = get_motor_client()
    client.close()


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[APPOINTMENTS].create_index([("salonId", ASCENDING), ("date", ASCENDING)])
    await db[APPOINTMENTS].create_index([("professionalId", ASCENDING)])
    await db[APPOINTMENTS].create_index([("status", ASCENDING)])
    await db[APPOINTMENTS].create_index([("bookingGroupId", ASCENDING)])
    await db[TIMESLOTS].create_index(
        [
            ("professionalId", ASCENDING),
            ("date", ASCENDING),
            ("startTime", ASCENDING),
            ("endTime", ASCENDING),
        ],
        unique=True,
    )
    await db[PROFESSIONALS].create_index([("salonId", ASCENDING)])
    logger.info("db.indexes_ensured", extra={"database": db.name})


# Seed scripts run outside the event loop and use a blocking client

@lru_cache(maxsize=1)
def get_sync_client() -> MongoClient:
    return MongoClient(settings.mongo_uri, appname="salon-booking-seed", **_client_options())


def get_sync_database() -> SyncDatabase:
    return get_sync_client()[settings.database_name]


def close_sync_database() -> None:
    get_sync_client().close()
    get_sync_client.cache_clear()
