from __future__ import annotations

from typing import Optional

from pydantic import Field

from .base import MongoModel, PyObjectId


class TimeSlot(MongoModel):
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    salon_id: PyObjectId
    professional_id: PyObjectId
    date: str
    start_time: str
    end_time: str
    is_booked: bool = False
