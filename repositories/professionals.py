from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List, Optional

from bson import ObjectId

from db.database import PROFESSIONALS
from repositories.base import BaseRepository


class ProfessionalRepository(BaseRepository):
    collection = PROFESSIONALS

    def stream_all(self) -> AsyncIterator[Dict[str, Any]]:
        return self.iterate(self.collection, {}, projection={"_id": 1, "salonId": 1})

    async def find_by_id(self, professional_id: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.find_one(self.collection, {"_id": professional_id})

    async def find_by_salon(self, salon_id: ObjectId) -> List[Dict[str, Any]]:
        return await self.find_many(self.collection, {"salonId": salon_id}, sort=[("name", 1)])
