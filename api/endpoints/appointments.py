from __future__ import annotations

from typing import Any, Dict, List

import logging
from fastapi import APIRouter, Header, Query

from db.database import get_database
from repositories.base import BaseRepository
from schemas.appointments import BookingRequest, RescheduleRequest, StatusUpdateRequest
from schemas.base import to_jsonable, validate_date
from services.pagination import build_paginated_response, get_pagination_params
from services.scheduler import Scheduler


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])

# Clients declaring this version always get the paginated envelope
ENVELOPE_API_VERSION = "2"


@router.post("/generate-slots")
async def generate_slots(days: int | None = Query(None, ge=1, le=90)) -> Dict[str, Any]:
    db = await get_database()
    summary = await Scheduler(db).generate_horizon(days)
    return {"success": True, "message": "Time slots generated successfully", "summary": summary}


@router.post("", status_code=201)
async def create_appointments(payload: BookingRequest) -> Dict[str, Any]:
    db = await get_database()
    result = await Scheduler(db).create_booking_request(payload)
    return {
        "success": True,
        "message": "Appointments created successfully",
        "data": to_jsonable(result.appointments),
        "bookingGroupId": result.booking_group_id,
    }


@router.get("")
async def list_user_appointments(
    email: str | None = None,
    phone: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    x_api_version: str | None = Header(None),
) -> Any:
    db = await get_database()
    # Legacy clients send no (or empty) page and limit and expect a bare array
    legacy = not page and not limit and x_api_version != ENVELOPE_API_VERSION
    result = await Scheduler(db).list_for_contact(
        email=email, phone=phone, page=page, limit=limit, paginate=not legacy
    )
    return to_jsonable(result)


@router.get("/salon/{salon_id}")
async def list_salon_appointments(
    salon_id: str,
    date: str | None = None,
    professional_id: str | None = Query(None, alias="professionalId"),
    page: str | None = None,
    limit: str | None = None,
) -> Dict[str, Any]:
    db = await get_database()
    salon_oid = BaseRepository.parse_object_id(salon_id)
    professional_oid = BaseRepository.parse_object_id(professional_id) if professional_id else None
    if date:
        try:
            date = validate_date(date)
        except ValueError:
            date = None
            salon_oid = None
    if salon_oid is None or (professional_id and professional_oid is None):
        # Unknown ids and unreadable dates simply match nothing
        params = get_pagination_params(page, limit)
        return build_paginated_response([], 0, params.page, params.limit)

    logger.info(
        "appointments.salon.list",
        extra={"salon_id": salon_id, "date_filter": date, "professional_filter": professional_id},
    )
    result = await Scheduler(db).list_for_salon(
        salon_oid, date=date or None, professional_id=professional_oid, page=page, limit=limit
    )
    return to_jsonable(result)


@router.get("/group/{booking_group_id}")
async def list_group_appointments(booking_group_id: str) -> Dict[str, Any]:
    db = await get_database()
    items: List[Dict[str, Any]] = await Scheduler(db).find_group(booking_group_id)
    return {"success": True, "bookingGroupId": booking_group_id, "data": to_jsonable(items)}


@router.patch("/{appointment_id}/status")
async def update_status(appointment_id: str, payload: StatusUpdateRequest) -> Dict[str, Any]:
    db = await get_database()
    updated = await Scheduler(db).update_status(appointment_id, payload.status)
    return {"success": True, "updated": to_jsonable(updated)}


@router.patch("/{appointment_id}/reschedule")
async def reschedule_appointment(appointment_id: str, payload: RescheduleRequest) -> Dict[str, Any]:
    db = await get_database()
    result = await Scheduler(db).reschedule(appointment_id, payload)
    return {
        "success": True,
        "updated": to_jsonable(result.appointment),
        "oldAppointmentDeleted": result.old_appointment_deleted,
        "message": "Appointment rescheduled successfully",
    }


@router.delete("/{appointment_id}")
async def delete_appointment(appointment_id: str) -> Dict[str, Any]:
    db = await get_database()
    await Scheduler(db).delete(appointment_id)
    return {"success": True, "message": "Deleted successfully and slot updated"}
