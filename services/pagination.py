from __future__ import annotations

from math import ceil
from typing import Any, NamedTuple, Sequence

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 50


class PageParams(NamedTuple):
    page: int
    limit: int
    skip: int


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def get_pagination_params(page: Any = None, limit: Any = None) -> PageParams:
    """Clamp raw query values: missing/invalid/non-positive -> defaults, limit capped at 50."""
    page_num = _to_int(page) or DEFAULT_PAGE
    limit_num = _to_int(limit) or DEFAULT_LIMIT
    if page_num < 1:
        page_num = DEFAULT_PAGE
    if limit_num < 1:
        limit_num = DEFAULT_LIMIT
    if limit_num > MAX_LIMIT:
        limit_num = MAX_LIMIT
    return PageParams(page=page_num, limit=limit_num, skip=(page_num - 1) * limit_num)


def build_paginated_response(data: Sequence[Any], total: int, page: int, limit: int) -> dict[str, Any]:
    total_pages = ceil(total / limit) if limit else 0
    return {
        "success": True,
        "data": list(data),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        },
    }
