from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import MongoModel, PyObjectId


class Gender(str, Enum):
    male = "Male"
    female = "Female"


class Professional(MongoModel):
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    name: str
    salon_id: PyObjectId
    gender: Gender
    available: bool = True
    # Service ids the professional is competent to perform
    services: List[PyObjectId] = Field(default_factory=list)
    service_availability: Optional[str] = None
