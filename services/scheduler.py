"""Appointment scheduling: booking, cancellation, reschedule and availability.

Appointments are the source of truth; ``TimeSlot.isBooked`` is a cache of
"some appointment covers this slot". Writes go appointment first, slots
second, and the two are not atomic: a reservation that comes up short is
logged but does not undo the booking, and a slot left booked by a crash only
costs availability until the reconciler rewrites it.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.config import settings
from core.errors import NotFound, SchedulingError, ValidationError
from models.appointment import Appointment, AppointmentStatus, Contact, MemberInfo, ServiceLine
from models.timeslot import TimeSlot
from repositories.appointments import AppointmentRepository
from repositories.timeslots import ProfessionalFilter, TimeSlotRepository
from schemas.appointments import AppointmentLineItem, BookingRequest, RescheduleRequest
from schemas.base import normalize_email
from schemas.timeslots import TimeSlotCreate
from services.duration import compute_end_time, crosses_midnight, parse_duration, time_to_minutes
from services.notifications import NotificationService
from services.pagination import build_paginated_response, get_pagination_params
from services.reconciler import SlotReconciler
from services.slot_generator import SlotGenerator, build_day_slots


logger = logging.getLogger(__name__)

LEGACY_LIST_LIMIT = 100


def new_booking_group_id() -> str:
    # wall-clock based, with a random tail so concurrent requests never collide
    return f"group-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


@dataclass
class BookingResult:
    appointments: List[Dict[str, Any]]
    booking_group_id: str


@dataclass
class RescheduleResult:
    appointment: Dict[str, Any]
    old_appointment_deleted: bool


def _status_of(doc: Dict[str, Any]) -> AppointmentStatus:
    try:
        return AppointmentStatus(doc.get("status") or AppointmentStatus.pending.value)
    except ValueError:
        raise SchedulingError(f"Appointment {doc.get('_id')} has unknown status {doc.get('status')!r}")


class Scheduler:
    def __init__(self, db: AsyncIOMotorDatabase, notifier: Optional[NotificationService] = None) -> None:
        self.db = db
        self.appointments = AppointmentRepository(db)
        self.slots = TimeSlotRepository(db)
        self.notifier = notifier or NotificationService()
        self._day_slots = build_day_slots()

    # ---------------- slot ranges ----------------

    def expected_slot_count(self, start_time: str, end_time: str) -> int:
        return sum(1 for s, e in self._day_slots if start_time <= s and e <= end_time)

    async def _reserve(self, professional_id: Optional[ObjectId], date: str, start_time: str, end_time: str) -> int:
        if professional_id is None:
            return 0
        try:
            reserved = await self.slots.reserve_range(professional_id, date, start_time, end_time)
        except (SchedulingError, PyMongoError):
            # The appointment stays; the reconciler repairs the slot cache later
            logger.exception(
                "slots.reserve.failed",
                extra={"professional_id": str(professional_id), "date": date, "start": start_time, "end": end_time},
            )
            return 0
        expected = self.expected_slot_count(start_time, end_time)
        if reserved < expected:
            logger.warning(
                "slots.reserve.shortfall",
                extra={
                    "professional_id": str(professional_id),
                    "date": date,
                    "start": start_time,
                    "end": end_time,
                    "reserved": reserved,
                    "expected": expected,
                },
            )
        else:
            logger.info("slots.reserve.success", extra={"professional_id": str(professional_id), "reserved": reserved})
        return reserved

    async def _release(self, doc: Dict[str, Any]) -> int:
        professional_id = doc.get("professionalId")
        if not (professional_id and doc.get("date") and doc.get("startTime") and doc.get("endTime")):
            return 0
        freed = await self.slots.release_range(professional_id, doc["date"], doc["startTime"], doc["endTime"])
        logger.info("slots.release.success", extra={"appointment_id": str(doc.get("_id")), "freed": freed})
        return freed

    async def _load(self, appointment_id: Any) -> Dict[str, Any]:
        oid = AppointmentRepository.parse_object_id(appointment_id)
        doc = await self.appointments.find_by_id(oid) if oid is not None else None
        if not doc:
            raise NotFound("Appointment not found")
        return doc

    # ---------------- booking ----------------

    def _build_appointment(
        self, item: AppointmentLineItem, request: BookingRequest, booking_group_id: str
    ) -> Appointment:
        duration_text = item.duration or settings.default_duration
        parsed = parse_duration(duration_text)
        if parsed.defaulted:
            logger.info("appointments.duration_defaulted", extra={"duration": duration_text, "minutes": parsed.minutes})
        end_time = compute_end_time(item.start_time, parsed.minutes)
        if crosses_midnight(item.start_time, end_time):
            raise ValidationError(
                f"Appointment starting {item.start_time} for {parsed.minutes} minutes would cross midnight"
            )
        return Appointment(
            salon_id=item.salon_id,
            professional_id=item.professional_id,
            services=[ServiceLine(name=item.service_name, price=item.price, duration=duration_text)],
            user=Contact(
                name=item.member_name or request.name or "Guest",
                email=str(request.email or ""),
                phone=request.phone or "",
            ),
            date=item.date,
            start_time=item.start_time,
            end_time=end_time,
            status=AppointmentStatus.pending,
            is_group_booking=request.is_group_booking,
            booking_group_id=booking_group_id,
            member_info=(
                MemberInfo(name=item.member_name, category=item.member_category)
                if request.is_group_booking
                else None
            ),
        )

    async def _book(self, appointment: Appointment) -> Dict[str, Any]:
        doc = appointment.to_document()
        inserted_id = await self.appointments.insert(doc)
        logger.info("appointments.create.success", extra={"appointment_id": str(inserted_id)})
        await self._reserve(appointment.professional_id, appointment.date, appointment.start_time, appointment.end_time)
        return doc

    async def create_booking_request(self, request: BookingRequest) -> BookingResult:
        if not request.email and not request.phone:
            raise ValidationError("Phone or email is required")
        if not request.appointments:
            raise ValidationError("No appointments provided")

        booking_group_id = request.group_booking_id or new_booking_group_id()
        # Validate every line item before committing any of them
        planned = [self._build_appointment(item, request, booking_group_id) for item in request.appointments]
        saved = await asyncio.gather(*(self._book(appt) for appt in planned))

        for doc in saved:
            self.notifier.appointment_created(doc)
        logger.info(
            "appointments.batch.success",
            extra={"count": len(saved), "booking_group_id": booking_group_id},
        )
        return BookingResult(appointments=list(saved), booking_group_id=booking_group_id)

    # ---------------- status / cancel / delete ----------------

    async def update_status(self, appointment_id: Any, status: AppointmentStatus) -> Dict[str, Any]:
        current = await self._load(appointment_id)
        current_status = _status_of(current)
        if not current_status.can_transition_to(status):
            raise ValidationError(f"Cannot change status from {current_status.value} to {status.value}")

        updated = await self.appointments.update_status(current["_id"], status.value)
        if not updated:
            raise NotFound("Appointment not found")
        if status is AppointmentStatus.cancelled:
            await self._release(updated)
        logger.info(
            "appointments.status.updated",
            extra={"appointment_id": str(updated["_id"]), "from": current_status.value, "to": status.value},
        )
        self.notifier.status_changed(updated, status.value)
        return updated

    async def cancel(self, appointment_id: Any) -> Dict[str, Any]:
        return await self.update_status(appointment_id, AppointmentStatus.cancelled)

    async def delete(self, appointment_id: Any) -> None:
        current = await self._load(appointment_id)
        await self._release(current)
        await self.appointments.delete_by_id(current["_id"])
        logger.info("appointments.delete.success", extra={"appointment_id": str(current["_id"])})

    # ---------------- reschedule ----------------

    async def reschedule(self, appointment_id: Any, request: RescheduleRequest) -> RescheduleResult:
        if crosses_midnight(request.start_time, request.end_time):
            raise ValidationError("endTime must be after startTime on the same day")

        old = await self._load(appointment_id)
        status = _status_of(old)
        if status.is_terminal:
            raise ValidationError(f"Cannot reschedule a {status.value} appointment")

        await self._release(old)

        if request.create_new:
            moved = Appointment.model_validate(old).model_copy(
                update={
                    "id": None,
                    "professional_id": request.professional_id or old.get("professionalId"),
                    "date": request.date,
                    "start_time": request.start_time,
                    "end_time": request.end_time,
                    "status": status,
                    "is_rescheduled": True,
                    "original_appointment_id": old["_id"],
                    "created_at": None,
                    "updated_at": None,
                }
            )
            updated = moved.to_document()
            await self.appointments.insert(updated)
            await self.appointments.delete_by_id(old["_id"])
            logger.info(
                "appointments.reschedule.recreated",
                extra={"appointment_id": str(updated["_id"]), "original_id": str(old["_id"])},
            )
        else:
            updated = await self.appointments.update_times(
                old["_id"],
                date=request.date,
                start_time=request.start_time,
                end_time=request.end_time,
                professional_id=request.professional_id,
            )
            if not updated:
                raise NotFound("Appointment not found")
            logger.info("appointments.reschedule.updated", extra={"appointment_id": str(updated["_id"])})

        target = request.professional_id or updated.get("professionalId")
        await self._reserve(target, request.date, request.start_time, request.end_time)
        self.notifier.appointment_rescheduled(updated)
        return RescheduleResult(appointment=updated, old_appointment_deleted=request.create_new)

    # ---------------- queries ----------------

    async def list_slots(self, professionals: ProfessionalFilter, date: str) -> List[Dict[str, Any]]:
        return await self.slots.list(professionals, date)

    async def list_for_salon(
        self,
        salon_id: ObjectId,
        *,
        date: Optional[str] = None,
        professional_id: Optional[ObjectId] = None,
        page: Any = None,
        limit: Any = None,
    ) -> Dict[str, Any]:
        params = get_pagination_params(page, limit)
        items, total = await self.appointments.find_by_salon(
            salon_id, date=date, professional_id=professional_id, skip=params.skip, limit=params.limit
        )
        return build_paginated_response(items, total, params.page, params.limit)

    async def list_for_contact(
        self,
        *,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
        paginate: bool = True,
    ) -> Dict[str, Any] | List[Dict[str, Any]]:
        if email and email.strip():
            # stored contacts carry the EmailStr-normalised address
            email = normalize_email(email)
        if not paginate:
            items, _ = await self.appointments.find_by_contact(email=email, phone=phone, limit=LEGACY_LIST_LIMIT)
            return items
        params = get_pagination_params(page, limit)
        items, total = await self.appointments.find_by_contact(
            email=email, phone=phone, skip=params.skip, limit=params.limit
        )
        return build_paginated_response(items, total, params.page, params.limit)

    async def find_group(self, booking_group_id: str) -> List[Dict[str, Any]]:
        items = await self.appointments.find_by_group(booking_group_id)
        if not items:
            raise NotFound("Booking group not found")
        return items

    # ---------------- slot store maintenance ----------------

    async def generate_horizon(self, days: Optional[int] = None, **kwargs: Any) -> Dict[str, int]:
        return await SlotGenerator(self.db).generate_horizon(days, **kwargs)

    async def reconcile_slots(self, days: Optional[int] = None, **kwargs: Any) -> Dict[str, int]:
        return await SlotReconciler(self.db).reconcile(days, **kwargs)

    async def create_slot(self, payload: TimeSlotCreate) -> Dict[str, Any]:
        width = time_to_minutes(payload.end_time) - time_to_minutes(payload.start_time)
        if width != settings.slot_granularity_minutes:
            raise ValidationError(
                f"A time slot must span exactly {settings.slot_granularity_minutes} minutes"
            )
        doc = TimeSlot(
            salon_id=payload.salon_id,
            professional_id=payload.professional_id,
            date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            is_booked=False,
        ).to_document()
        try:
            await self.slots.insert(doc)
        except DuplicateKeyError:
            raise ValidationError("Time slot already exists")
        return doc

    async def set_slot_booked(self, slot_id: Any, is_booked: bool) -> Dict[str, Any]:
        oid = TimeSlotRepository.parse_object_id(slot_id)
        updated = await self.slots.set_booked(oid, is_booked) if oid is not None else None
        if not updated:
            raise NotFound("Time slot not found")
        return updated
