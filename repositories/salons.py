from __future__ import annotations

from typing import Any, Dict, List, Optional

from bson import ObjectId

from db.database import SALONS
from models.salon import ApprovalStatus
from repositories.base import BaseRepository


class SalonRepository(BaseRepository):
    collection = SALONS

    async def find_by_id(self, salon_id: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.find_one(self.collection, {"_id": salon_id})

    async def find_approved(self) -> List[Dict[str, Any]]:
        # Only approved salons are visible to unauthenticated callers
        return await self.find_many(
            self.collection,
            {"approvalStatus": ApprovalStatus.approved.value},
            sort=[("name", 1)],
            projection={"password": 0},
        )

    async def find_approved_by_id(self, salon_id: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.find_one(
            self.collection, {"_id": salon_id, "approvalStatus": ApprovalStatus.approved.value}
        )
