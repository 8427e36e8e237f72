from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Annotated, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, TypeAdapter, WithJsonSchema
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from services.duration import is_valid_time


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )


def validate_date(value: str) -> str:
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m-%d")
    except (AttributeError, TypeError, ValueError):
        raise ValueError("Invalid date format. Use YYYY-MM-DD")
    # "2025-3-10" -> "2025-03-10"; slots are keyed by the padded form
    return parsed.date().isoformat()


def validate_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError("Invalid time format. Use HH:MM")
    # normalise "9:00" -> "09:00" so lexical comparisons stay correct
    hours, minutes = value.strip().split(":")
    return f"{int(hours):02d}:{minutes}"


def optional_object_id(value: Any) -> Optional[ObjectId]:
    # "", null and the "any" sentinel all mean "no professional chosen"
    if value in (None, "", "any"):
        return None
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid id: {value!r}")


DateStr = Annotated[str, AfterValidator(validate_date)]
TimeStr = Annotated[str, AfterValidator(validate_time)]
OptionalObjectId = Annotated[
    Optional[ObjectId],
    BeforeValidator(optional_object_id),
    WithJsonSchema({"type": "string", "nullable": True}),
]


def to_jsonable(data: Any) -> Any:
    if isinstance(data, ObjectId):
        return str(data)
    if isinstance(data, datetime):
        return data.isoformat()
    if isinstance(data, Enum):
        return data.value
    if isinstance(data, dict):
        return {k: to_jsonable(v) for k, v in data.items() if k != "password"}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(x) for x in data]
    return data


_email_adapter = TypeAdapter(EmailStr)


def normalize_email(value: str) -> str:
    """Normalise like ``EmailStr`` does on booking so lookups match stored contacts."""
    value = value.strip()
    try:
        return str(_email_adapter.validate_python(value))
    except PydanticValidationError:
        return value
