from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from bson import ObjectId

from db.database import TIMESLOTS
from repositories.base import BaseRepository


@dataclass(frozen=True)
class ProfessionalFilter:
    """Either every professional, or exactly one."""

    professional_id: Optional[ObjectId] = None

    @classmethod
    def any(cls) -> "ProfessionalFilter":
        return cls(None)

    @classmethod
    def only(cls, professional_id: ObjectId) -> "ProfessionalFilter":
        return cls(professional_id)

    @property
    def is_any(self) -> bool:
        return self.professional_id is None

    def to_query(self) -> Dict[str, Any]:
        return {} if self.is_any else {"professionalId": self.professional_id}


def range_query(professional_id: ObjectId, date: str, start_time: str, end_time: str) -> Dict[str, Any]:
    # HH:MM strings are zero padded, so lexical order is time order
    return {
        "professionalId": professional_id,
        "date": date,
        "startTime": {"$gte": start_time},
        "endTime": {"$lte": end_time},
    }


class TimeSlotRepository(BaseRepository):
    collection = TIMESLOTS

    async def list(self, professionals: ProfessionalFilter, date: str) -> List[Dict[str, Any]]:
        query = {"date": date, **professionals.to_query()}
        return await self.find_many(self.collection, query, sort=[("professionalId", 1), ("startTime", 1)])

    async def existing_start_times(self, professional_id: ObjectId, date: str) -> set[str]:
        docs = await self.find_many(
            self.collection,
            {"professionalId": professional_id, "date": date},
            projection={"startTime": 1, "_id": 0},
        )
        return {d["startTime"] for d in docs}

    async def reserve_range(self, professional_id: ObjectId, date: str, start_time: str, end_time: str) -> int:
        query = {**range_query(professional_id, date, start_time, end_time), "isBooked": False}
        return await self.update_many(self.collection, query, {"$set": {"isBooked": True}})

    async def release_range(self, professional_id: ObjectId, date: str, start_time: str, end_time: str) -> int:
        query = range_query(professional_id, date, start_time, end_time)
        return await self.update_many(self.collection, query, {"$set": {"isBooked": False}})

    async def set_booked_by_ids(self, slot_ids: List[ObjectId], is_booked: bool) -> int:
        if not slot_ids:
            return 0
        return await self.update_many(
            self.collection, {"_id": {"$in": slot_ids}}, {"$set": {"isBooked": is_booked}}
        )

    async def insert(self, slot: Dict[str, Any]) -> ObjectId:
        return await self.insert_one(self.collection, slot, with_timestamps=False)

    async def insert_batch(self, slots: List[Dict[str, Any]]) -> int:
        return await self.insert_many(self.collection, slots, ordered=False)

    async def set_booked(self, slot_id: ObjectId, is_booked: bool) -> Optional[Dict[str, Any]]:
        return await self.find_one_and_update(
            self.collection,
            {"_id": slot_id},
            {"$set": {"isBooked": is_booked}},
            touch_updated_at=False,
        )

    async def find_for_day(self, professional_id: ObjectId, date: str) -> List[Dict[str, Any]]:
        return await self.find_many(
            self.collection,
            {"professionalId": professional_id, "date": date},
            projection={"startTime": 1, "endTime": 1, "isBooked": 1},
        )
