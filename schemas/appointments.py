from __future__ import annotations

from typing import Any, List, Optional

from pydantic import EmailStr, Field, field_validator

from models.appointment import AppointmentStatus
from models.base import PyObjectId
from .base import ApiModel, DateStr, OptionalObjectId, TimeStr


class AppointmentLineItem(ApiModel):
    salon_id: PyObjectId
    professional_id: OptionalObjectId = None
    service_name: str
    price: float = Field(default=0, ge=0)
    date: DateStr
    start_time: TimeStr
    duration: Optional[str] = None
    member_name: Optional[str] = None
    member_category: Optional[str] = None


class BookingRequest(ApiModel):
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    is_group_booking: bool = False
    group_booking_id: Optional[str] = None
    appointments: List[AppointmentLineItem] = Field(default_factory=list)

    @field_validator("email", "phone", "name", "group_booking_id", mode="before")
    @classmethod
    def _blank_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StatusUpdateRequest(ApiModel):
    status: AppointmentStatus
    cancellation_reason: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _legacy_alias(cls, value: Any) -> Any:
        # older clients send "cancel"
        if isinstance(value, str) and value.strip().lower() == "cancel":
            return AppointmentStatus.cancelled.value
        return value


class RescheduleRequest(ApiModel):
    date: DateStr
    start_time: TimeStr
    end_time: TimeStr
    professional_id: OptionalObjectId = None
    create_new: bool = False
