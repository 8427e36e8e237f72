from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional, Sequence

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, PyMongoError

from core.errors import StoreTransientError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def translate_store_errors() -> Iterator[None]:
    # Timeouts and connection loss become retryable domain errors;
    # everything else (duplicate keys included) propagates untouched.
    try:
        yield
    except PyMongoError as exc:
        if isinstance(exc, ConnectionFailure) or getattr(exc, "timeout", False):
            raise StoreTransientError(f"Store unavailable: {type(exc).__name__}") from exc
        raise


class BaseRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db

    @staticmethod
    def parse_object_id(value: Any) -> Optional[ObjectId]:
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        return None

    async def find_many(
        self,
        collection: str,
        query: Dict[str, Any] | None = None,
        *,
        sort: Optional[Sequence[tuple[str, int]]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
        projection: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        with translate_store_errors():
            cursor = self.db[collection].find(query or {}, projection)
            if sort:
                cursor = cursor.sort(list(sort))
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            return [doc async for doc in cursor]

    async def iterate(
        self,
        collection: str,
        query: Dict[str, Any] | None = None,
        *,
        projection: Optional[Dict[str, Any]] = None,
        batch_size: int = 100,
    ) -> AsyncIterator[Dict[str, Any]]:
        # Streams documents; never loads the whole collection
        with translate_store_errors():
            cursor = self.db[collection].find(query or {}, projection, batch_size=batch_size)
            async for doc in cursor:
                yield doc

    async def populate(
        self,
        docs: List[Dict[str, Any]],
        field: str,
        collection: str,
        fields: Sequence[str],
    ) -> List[Dict[str, Any]]:
        """Replace ``doc[field]`` ids with ``{_id, *fields}`` from ``collection``.

        One ``$in`` query per call. A dangling reference becomes ``None``;
        documents without the field are left alone.
        """
        ids = {doc[field] for doc in docs if isinstance(doc.get(field), ObjectId)}
        if not ids:
            return docs
        refs = await self.find_many(
            collection, {"_id": {"$in": list(ids)}}, projection={name: 1 for name in fields}
        )
        by_id = {ref["_id"]: ref for ref in refs}
        for doc in docs:
            if isinstance(doc.get(field), ObjectId):
                doc[field] = by_id.get(doc[field])
        return docs

    async def count_many(self, collection: str, query: Dict[str, Any] | None = None) -> int:
        with translate_store_errors():
            return await self.db[collection].count_documents(query or {})

    async def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with translate_store_errors():
            return await self.db[collection].find_one(query)

    async def insert_one(self, collection: str, doc: Dict[str, Any], *, with_timestamps: bool = True) -> ObjectId:
        # Special-case: never persist a null _id; MongoDB will auto-generate one
        if doc.get("_id", "__absent__") is None:
            doc = {k: v for k, v in doc.items() if k != "_id"}

        if with_timestamps:
            now = utcnow()
            if doc.get("createdAt") is None:
                doc["createdAt"] = now
            if doc.get("updatedAt") is None:
                doc["updatedAt"] = now
        with translate_store_errors():
            result = await self.db[collection].insert_one(doc)
        doc["_id"] = result.inserted_id
        return result.inserted_id

    async def insert_many(self, collection: str, docs: List[Dict[str, Any]], *, ordered: bool = False) -> int:
        if not docs:
            return 0
        with translate_store_errors():
            result = await self.db[collection].insert_many(docs, ordered=ordered)
        return len(result.inserted_ids)

    async def update_many(self, collection: str, filter_query: Dict[str, Any], update: Dict[str, Any]) -> int:
        with translate_store_errors():
            result = await self.db[collection].update_many(filter_query, update)
        return result.modified_count

    async def find_one_and_update(
        self,
        collection: str,
        filter_query: Dict[str, Any],
        update: Dict[str, Any],
        *,
        touch_updated_at: bool = True,
    ) -> Optional[Dict[str, Any]]:
        if touch_updated_at:
            update = self._touch(update)
        with translate_store_errors():
            return await self.db[collection].find_one_and_update(
                filter_query, update, return_document=ReturnDocument.AFTER
            )

    async def delete_one(self, collection: str, query: Dict[str, Any]) -> int:
        with translate_store_errors():
            result = await self.db[collection].delete_one(query)
        return result.deleted_count

    @staticmethod
    def _touch(update: Dict[str, Any]) -> Dict[str, Any]:
        update = {**update}
        set_part = update.get("$set", {})
        set_part = {**set_part, "updatedAt": utcnow()}
        update["$set"] = set_part
        return update
