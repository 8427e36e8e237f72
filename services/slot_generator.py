"""Materialises fixed-granularity time slots over a rolling horizon.

Runs from an external trigger (daily cron or an administrator), never at
process start and never on the booking path. Professionals are streamed from
the store one at a time; for each professional and day the missing slots of
the operating window are inserted in a single unordered batch.
"""
from __future__ import annotations

import logging
from datetime import date as date_type, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import BulkWriteError, DuplicateKeyError

from core.config import settings
from repositories.professionals import ProfessionalRepository
from repositories.salons import SalonRepository
from repositories.timeslots import TimeSlotRepository
from services.duration import minutes_to_time, time_to_minutes


logger = logging.getLogger(__name__)

DUPLICATE_KEY = 11000


def build_day_slots(
    window_start: str | None = None,
    window_end: str | None = None,
    granularity: int | None = None,
) -> List[Tuple[str, str]]:
    """Candidate (start, end) pairs covering [window_start, window_end)."""
    start = time_to_minutes(window_start or settings.operating_window_start)
    end = time_to_minutes(window_end or settings.operating_window_end)
    step = granularity or settings.slot_granularity_minutes
    if step <= 0:
        raise ValueError("slot granularity must be positive")
    pairs: List[Tuple[str, str]] = []
    current = start
    while current + step <= end:
        pairs.append((minutes_to_time(current), minutes_to_time(current + step)))
        current += step
    return pairs


def _only_duplicates(exc: BulkWriteError) -> bool:
    errors = (exc.details or {}).get("writeErrors", [])
    return bool(errors) and all(err.get("code") == DUPLICATE_KEY for err in errors)


class SalonCalendar:
    """Resolves "today" in each salon's own zone; zones are cached per salon."""

    def __init__(self, salons: SalonRepository) -> None:
        self.salons = salons
        self._zones: Dict[Any, ZoneInfo] = {}

    async def today(self, salon_id: Optional[ObjectId]) -> date_type:
        zone = self._zones.get(salon_id)
        if zone is None:
            salon = await self.salons.find_by_id(salon_id) if salon_id is not None else None
            tz_name = (salon or {}).get("timezone") or settings.default_timezone
            try:
                zone = ZoneInfo(tz_name)
            except (ZoneInfoNotFoundError, ValueError):
                logger.warning("slots.unknown_timezone", extra={"salon_id": str(salon_id), "tz": tz_name})
                zone = ZoneInfo(settings.default_timezone)
            self._zones[salon_id] = zone
        return datetime.now(zone).date()


class SlotGenerator:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.professionals = ProfessionalRepository(db)
        self.calendar = SalonCalendar(SalonRepository(db))
        self.slots = TimeSlotRepository(db)
        self.day_slots = build_day_slots()

    async def _insert_missing(self, slots: List[Dict[str, Any]]) -> int:
        try:
            return await self.slots.insert_batch(slots)
        except DuplicateKeyError:
            # A concurrent generator got there first
            return 0
        except BulkWriteError as exc:
            if not _only_duplicates(exc):
                raise
            return int((exc.details or {}).get("nInserted", 0))

    async def ensure_day(self, professional: Dict[str, Any], day: str) -> int:
        existing = await self.slots.existing_start_times(professional["_id"], day)
        missing = [
            {
                "salonId": professional.get("salonId"),
                "professionalId": professional["_id"],
                "date": day,
                "startTime": start,
                "endTime": end,
                "isBooked": False,
            }
            for start, end in self.day_slots
            if start not in existing
        ]
        if not missing:
            return 0
        return await self._insert_missing(missing)

    async def generate_horizon(self, days: int | None = None, *, today: date_type | None = None) -> Dict[str, int]:
        """Ensure every professional has the full slot grid for the next ``days`` days.

        ``today`` pins the first day (otherwise it is "today" in the salon's
        zone). Re-running is a no-op once the horizon exists; booked flags are
        never touched.
        """
        horizon = days if days and days > 0 else settings.slot_horizon_days
        professional_count = 0
        created_total = 0

        async for prof in self.professionals.stream_all():
            first_day = today or await self.calendar.today(prof.get("salonId"))
            created = 0
            for offset in range(horizon):
                day = (first_day + timedelta(days=offset)).isoformat()
                created += await self.ensure_day(prof, day)
            professional_count += 1
            created_total += created
            logger.info(
                "slots.generate.professional_done",
                extra={"professional_id": str(prof["_id"]), "slots_created": created, "days": horizon},
            )

        logger.info(
            "slots.generate.complete",
            extra={"professionals": professional_count, "slots_created": created_total, "days": horizon},
        )
        return {"professionals": professional_count, "slotsCreated": created_total, "days": horizon}
