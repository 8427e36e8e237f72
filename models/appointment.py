from __future__ import annotations

from datetime import datetime
from enum import Enum

from typing import List, Optional

from pydantic import Field

from .base import MongoModel, PyObjectId


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, target: "AppointmentStatus") -> bool:
        return target in ALLOWED_TRANSITIONS.get(self, frozenset())


TERMINAL_STATUSES = frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled})

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.pending: frozenset(
        {AppointmentStatus.confirmed, AppointmentStatus.completed, AppointmentStatus.cancelled}
    ),
    AppointmentStatus.confirmed: frozenset(
        {AppointmentStatus.confirmed, AppointmentStatus.completed, AppointmentStatus.cancelled}
    ),
}


class ServiceLine(MongoModel):
    name: str
    price: float
    duration: str


class Contact(MongoModel):
    name: str = "Guest"
    email: str = ""
    phone: str = ""
    photo_url: str = Field(default="", alias="photoURL")


class MemberInfo(MongoModel):
    name: Optional[str] = None
    category: Optional[str] = None


class Appointment(MongoModel):
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    salon_id: PyObjectId
    professional_id: Optional[PyObjectId] = None
    services: List[ServiceLine] = Field(default_factory=list)
    user: Contact
    date: str  # YYYY-MM-DD, salon-local
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    status: AppointmentStatus = AppointmentStatus.pending
    is_group_booking: bool = False
    booking_group_id: Optional[str] = None
    member_info: Optional[MemberInfo] = None
    is_rescheduled: bool = False
    original_appointment_id: Optional[PyObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
