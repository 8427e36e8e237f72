from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Query

from db.database import get_database
from repositories.base import BaseRepository
from repositories.timeslots import ProfessionalFilter
from schemas.base import to_jsonable, validate_date
from schemas.timeslots import TimeSlotBookRequest, TimeSlotCreate
from services.scheduler import Scheduler


router = APIRouter(prefix="/timeslots", tags=["timeslots"])

ANY_PROFESSIONAL = "any"


def _professional_filter(raw: str) -> ProfessionalFilter:
    if raw == ANY_PROFESSIONAL:
        return ProfessionalFilter.any()
    oid = BaseRepository.parse_object_id(raw)
    if oid is None:
        raise HTTPException(status_code=400, detail="Invalid professionalId format")
    return ProfessionalFilter.only(oid)


@router.get("")
async def list_timeslots(
    professional_id: str | None = Query(None, alias="professionalId"),
    date: str | None = None,
) -> List[Dict[str, Any]]:
    if not professional_id or not date:
        raise HTTPException(status_code=400, detail="Missing professionalId or date")
    try:
        date = validate_date(date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    db = await get_database()
    slots = await Scheduler(db).list_slots(_professional_filter(professional_id), date)
    return to_jsonable(slots)


@router.post("", status_code=201)
async def create_timeslot(payload: TimeSlotCreate) -> Dict[str, Any]:
    db = await get_database()
    slot = await Scheduler(db).create_slot(payload)
    return to_jsonable(slot)


@router.post("/reconcile")
async def reconcile_timeslots(days: int | None = Query(None, ge=1, le=90)) -> Dict[str, Any]:
    db = await get_database()
    summary = await Scheduler(db).reconcile_slots(days)
    return {"success": True, "message": "Time slots reconciled", "summary": summary}


@router.patch("/{slot_id}/book")
async def set_timeslot_booked(slot_id: str, payload: TimeSlotBookRequest) -> Dict[str, Any]:
    db = await get_database()
    updated = await Scheduler(db).set_slot_booked(slot_id, payload.is_booked)
    return {"success": True, "updated": to_jsonable(updated)}
