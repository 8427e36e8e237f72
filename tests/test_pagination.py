import pytest

from services.pagination import build_paginated_response, get_pagination_params


def test_defaults_when_missing():
    params = get_pagination_params()
    assert (params.page, params.limit, params.skip) == (1, 20, 0)


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        ("2", "10", (2, 10, 10)),
        ("0", "0", (1, 20, 0)),
        ("-3", "-1", (1, 20, 0)),
        ("x", "y", (1, 20, 0)),
        ("3", "500", (3, 50, 100)),
        (4, 5, (4, 5, 15)),
    ],
)
def test_clamps_raw_values(page, limit, expected):
    params = get_pagination_params(page, limit)
    assert (params.page, params.limit, params.skip) == expected


def test_envelope_shape():
    body = build_paginated_response(["a", "b"], total=41, page=2, limit=20)
    assert body["success"] is True
    assert body["data"] == ["a", "b"]
    assert body["pagination"] == {
        "page": 2,
        "limit": 20,
        "total": 41,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }


def test_envelope_for_empty_result():
    pagination = build_paginated_response([], total=0, page=1, limit=20)["pagination"]
    assert pagination["totalPages"] == 0
    assert pagination["hasNext"] is False
    assert pagination["hasPrev"] is False
