from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from db.database import APPOINTMENTS, PROFESSIONALS, SALONS
from repositories.base import BaseRepository


class AppointmentRepository(BaseRepository):
    collection = APPOINTMENTS

    async def insert(self, doc: Dict[str, Any]) -> ObjectId:
        return await self.insert_one(self.collection, doc)

    async def find_by_id(self, appointment_id: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.find_one(self.collection, {"_id": appointment_id})

    async def find_by_salon(
        self,
        salon_id: ObjectId,
        *,
        date: Optional[str] = None,
        professional_id: Optional[ObjectId] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        query: Dict[str, Any] = {"salonId": salon_id}
        if date:
            query["date"] = date
        if professional_id is not None:
            query["professionalId"] = professional_id
        items = await self.find_many(
            self.collection, query, sort=[("date", 1), ("startTime", 1)], skip=skip, limit=limit
        )
        # listings show names, not bare ids
        await self.populate(items, "salonId", SALONS, ["name"])
        await self.populate(items, "professionalId", PROFESSIONALS, ["name"])
        total = await self.count_many(self.collection, query)
        return items, total

    @staticmethod
    def contact_query(email: Optional[str], phone: Optional[str]) -> Optional[Dict[str, Any]]:
        if email:
            return {"user.email": email}
        if phone:
            return {"user.phone": phone}
        return None

    async def find_by_contact(
        self,
        *,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = self.contact_query(email, phone)
        if query is None:
            return [], 0
        items = await self.find_many(
            self.collection, query, sort=[("createdAt", -1)], skip=skip, limit=limit
        )
        await self.populate(items, "salonId", SALONS, ["name", "email", "phone"])
        total = await self.count_many(self.collection, query)
        return items, total

    async def find_by_group(self, booking_group_id: str) -> List[Dict[str, Any]]:
        return await self.find_many(
            self.collection,
            {"bookingGroupId": booking_group_id},
            sort=[("date", 1), ("startTime", 1)],
        )

    async def find_active_for_day(self, professional_id: ObjectId, date: str) -> List[Dict[str, Any]]:
        return await self.find_many(
            self.collection,
            {"professionalId": professional_id, "date": date, "status": {"$ne": "cancelled"}},
            projection={"startTime": 1, "endTime": 1},
        )

    async def update_status(self, appointment_id: ObjectId, status: str) -> Optional[Dict[str, Any]]:
        return await self.find_one_and_update(
            self.collection, {"_id": appointment_id}, {"$set": {"status": status}}
        )

    async def update_times(
        self,
        appointment_id: ObjectId,
        *,
        date: str,
        start_time: str,
        end_time: str,
        professional_id: Optional[ObjectId] = None,
    ) -> Optional[Dict[str, Any]]:
        update: Dict[str, Any] = {
            "date": date,
            "startTime": start_time,
            "endTime": end_time,
            "isRescheduled": True,
        }
        # Only move to another professional when one is given
        if professional_id is not None:
            update["professionalId"] = professional_id
        return await self.find_one_and_update(self.collection, {"_id": appointment_id}, {"$set": update})

    async def delete_by_id(self, appointment_id: ObjectId) -> int:
        return await self.delete_one(self.collection, {"_id": appointment_id})
