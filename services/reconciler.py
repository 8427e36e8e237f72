from __future__ import annotations

import logging
from datetime import date as date_type, timedelta
from typing import Any, Dict, List, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from core.config import settings
from repositories.appointments import AppointmentRepository
from repositories.professionals import ProfessionalRepository
from repositories.salons import SalonRepository
from repositories.timeslots import TimeSlotRepository
from services.slot_generator import SalonCalendar


logger = logging.getLogger(__name__)


def _covered(slot: Dict[str, Any], ranges: List[Tuple[str, str]]) -> bool:
    return any(start <= slot["startTime"] and slot["endTime"] <= end for start, end in ranges)


class SlotReconciler:
    """Rewrites ``isBooked`` from the appointments that cover each slot.

    Appointments are authoritative; the slot flags are a cache of them. Only
    slots whose flag disagrees are written.
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.appointments = AppointmentRepository(db)
        self.professionals = ProfessionalRepository(db)
        self.slots = TimeSlotRepository(db)
        self.calendar = SalonCalendar(SalonRepository(db))

    async def reconcile_day(self, professional_id, day: str) -> Dict[str, int]:
        active = await self.appointments.find_active_for_day(professional_id, day)
        ranges = [(a["startTime"], a["endTime"]) for a in active if a.get("startTime") and a.get("endTime")]
        to_book, to_free = [], []
        for slot in await self.slots.find_for_day(professional_id, day):
            should_be_booked = _covered(slot, ranges)
            if should_be_booked and not slot.get("isBooked"):
                to_book.append(slot["_id"])
            elif not should_be_booked and slot.get("isBooked"):
                to_free.append(slot["_id"])
        booked = await self.slots.set_booked_by_ids(to_book, True)
        freed = await self.slots.set_booked_by_ids(to_free, False)
        return {"booked": booked, "freed": freed}

    async def reconcile(self, days: int | None = None, *, today: date_type | None = None) -> Dict[str, int]:
        horizon = days if days and days > 0 else settings.slot_horizon_days
        totals = {"professionals": 0, "booked": 0, "freed": 0}
        async for prof in self.professionals.stream_all():
            first_day = today or await self.calendar.today(prof.get("salonId"))
            for offset in range(horizon):
                day = (first_day + timedelta(days=offset)).isoformat()
                result = await self.reconcile_day(prof["_id"], day)
                totals["booked"] += result["booked"]
                totals["freed"] += result["freed"]
            totals["professionals"] += 1
        logger.info("slots.reconcile.complete", extra=totals)
        return totals
