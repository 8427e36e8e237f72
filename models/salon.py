from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import MongoModel, PyObjectId


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Salon(MongoModel):
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    approval_status: ApprovalStatus = ApprovalStatus.pending
    # IANA zone name; appointment dates and times are walltime in this zone
    timezone: Optional[str] = None
    created_at: Optional[datetime] = None
