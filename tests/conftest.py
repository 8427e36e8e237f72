from __future__ import annotations

from datetime import date
from typing import Any, Dict, List

import httpx
import pytest
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient

import db.database as database
from core.config import settings
from db.database import PROFESSIONALS, SALONS


TODAY = date(2025, 3, 10)


@pytest.fixture
def mongo_client(monkeypatch):
    client = AsyncMongoMockClient()
    monkeypatch.setattr(database, "get_motor_client", lambda: client)
    return client


@pytest.fixture
async def db(mongo_client):
    handle = mongo_client[settings.database_name]
    await database.ensure_indexes(handle)
    return handle


@pytest.fixture
async def salon(db) -> Dict[str, Any]:
    doc = {
        "_id": ObjectId(),
        "name": "Studio Nine",
        "email": "studio@example.com",
        "approvalStatus": "approved",
        "timezone": "Europe/London",
        "password": "hashed",
    }
    await db[SALONS].insert_one(doc)
    return doc


@pytest.fixture
async def professional(db, salon) -> Dict[str, Any]:
    doc = {"_id": ObjectId(), "name": "Alex", "salonId": salon["_id"], "gender": "Female", "available": True}
    await db[PROFESSIONALS].insert_one(doc)
    return doc


@pytest.fixture
async def second_professional(db, salon) -> Dict[str, Any]:
    doc = {"_id": ObjectId(), "name": "Sam", "salonId": salon["_id"], "gender": "Male", "available": True}
    await db[PROFESSIONALS].insert_one(doc)
    return doc


@pytest.fixture
async def api(db):
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


def line_item(salon: Dict[str, Any], professional: Dict[str, Any] | None, **overrides: Any) -> Dict[str, Any]:
    item = {
        "salonId": str(salon["_id"]),
        "professionalId": str(professional["_id"]) if professional else None,
        "serviceName": "Haircut",
        "price": 2500,
        "date": TODAY.isoformat(),
        "startTime": "10:00",
        "duration": "30 minutes",
    }
    item.update(overrides)
    return item


def booked_starts(slots: List[Dict[str, Any]]) -> List[str]:
    return sorted(s["startTime"] for s in slots if s["isBooked"])
