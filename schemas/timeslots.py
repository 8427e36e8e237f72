from __future__ import annotations

from models.base import PyObjectId
from .base import ApiModel, DateStr, TimeStr


class TimeSlotCreate(ApiModel):
    salon_id: PyObjectId
    professional_id: PyObjectId
    date: DateStr
    start_time: TimeStr
    end_time: TimeStr


class TimeSlotBookRequest(ApiModel):
    is_booked: bool
