import pytest

from vidtube.services.pagination import MAX_LIMIT, PageParams, paginate

from conftest import API


def test_paginate_reports_pages_for_partial_last_page():
    p = paginate(2, 10, 25)
    assert p.skip == 10
    assert p.take == 10
    assert p.current_page == 2
    assert p.total_pages == 3
    assert p.meta("totalVideos") == {"currentPage": 2, "totalPages": 3, "totalVideos": 25, "limit": 10}


def test_paginate_empty_collection_has_zero_pages():
    p = paginate(1, 10, 0)
    assert p.total_pages == 0
    assert p.meta()["totalCount"] == 0


@pytest.mark.parametrize(
    "page,limit,expected",
    [
        (0, 10, (1, 10)),
        (-3, 10, (1, 10)),
        (1, 0, (1, 1)),
        (1, 5000, (1, MAX_LIMIT)),
        (None, None, (1, 10)),
    ],
)
def test_page_params_are_clamped(page, limit, expected):
    params = PageParams.clamped(page, limit)
    assert (params.page, params.limit) == expected


def test_page_slice_never_exceeds_limit():
    total = 23
    seen = 0
    for page in range(1, paginate(1, 5, total).total_pages + 1):
        p = paginate(page, 5, total)
        size = max(0, min(p.take, total - p.skip))
        assert size <= p.take
        seen += size
    assert seen == total


def test_non_numeric_page_is_rejected(client):
    resp = client.get(f"{API}/videos", params={"page": "abc"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"


def test_out_of_range_page_is_clamped_by_listing(client):
    resp = client.get(f"{API}/videos", params={"page": 0, "limit": 0})
    assert resp.status_code == 200
    pagination = resp.json()["data"]["pagination"]
    assert pagination["currentPage"] == 1
    assert pagination["limit"] == 1
    assert pagination["totalVideos"] == 0
