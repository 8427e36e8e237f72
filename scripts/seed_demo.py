from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from pymongo.database import Database

from db.database import PROFESSIONALS, SALONS, close_sync_database, get_sync_database
from models.professional import Gender, Professional
from models.salon import ApprovalStatus, Salon


def upsert_salon(db: Database, *, name: str, email: str, tz: str = "UTC") -> Dict[str, Any]:
    existing = db[SALONS].find_one({"email": email})
    if existing:
        return existing
    salon = Salon(
        name=name,
        email=email,
        phone="+10000000000",
        location="Demo street 1",
        approval_status=ApprovalStatus.approved,
        timezone=tz,
        created_at=datetime.now(timezone.utc),
    )
    doc = salon.to_document()
    doc["_id"] = db[SALONS].insert_one(doc).inserted_id
    return doc


def upsert_professionals(db: Database, salon_id, names: List[str]) -> List[Dict[str, Any]]:
    seeded: List[Dict[str, Any]] = []
    for i, name in enumerate(names):
        existing = db[PROFESSIONALS].find_one({"salonId": salon_id, "name": name})
        if existing:
            seeded.append(existing)
            continue
        prof = Professional(
            name=name,
            salon_id=salon_id,
            gender=Gender.female if i % 2 == 0 else Gender.male,
        )
        doc = prof.to_document()
        doc["_id"] = db[PROFESSIONALS].insert_one(doc).inserted_id
        seeded.append(doc)
    return seeded


if __name__ == "__main__":
    # Demo values; slots are created afterwards by cron/main.py
    db = get_sync_database()
    try:
        salon = upsert_salon(db, name="Demo Salon", email="demo-salon@example.com")
        pros = upsert_professionals(db, salon["_id"], ["Alex", "Sam", "Jordan"])
        print("Seeded salon:", str(salon["_id"]))
        print("Seeded professionals:", [str(p["_id"]) for p in pros])
    finally:
        close_sync_database()
