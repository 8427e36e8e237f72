from __future__ import annotations

from enum import Enum
from typing import Any, Annotated

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, WithJsonSchema
from pydantic.alias_generators import to_camel


def _coerce_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid ObjectId: {value!r}")


# Kept as a real ObjectId after validation so dumps can go straight to Mongo
PyObjectId = Annotated[ObjectId, BeforeValidator(_coerce_object_id), WithJsonSchema({"type": "string"})]


def to_mongo(data: Any) -> Any:
    # Convert Enums to their .value and recurse; keep ObjectId and datetime as-is
    if isinstance(data, Enum):
        return data.value
    if isinstance(data, dict):
        return {k: to_mongo(v) for k, v in data.items()}
    if isinstance(data, list):
        return [to_mongo(x) for x in data]
    return data


class MongoModel(BaseModel):
    # Documents are stored with camelCase keys (salonId, startTime, isBooked ...)
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_document(self) -> dict[str, Any]:
        doc = to_mongo(self.model_dump(by_alias=True, exclude_none=False))
        # never persist a null _id; MongoDB will auto-generate one
        if doc.get("_id", "__absent__") is None:
            doc.pop("_id")
        return doc
