import pytest

from crawl_dashboard.application.queries import JobListQuery, decode_list_response
from crawl_dashboard.domain.exceptions import InvalidQueryError
from crawl_dashboard.domain.model import JobStatus, SortOrder


@pytest.mark.parametrize(
    "query",
    [
        JobListQuery(),
        JobListQuery.initial(),
        JobListQuery(page=3, limit=25, search="blog"),
        JobListQuery(sort_by="url", sort_order=SortOrder.ASC, status=JobStatus.ERROR),
    ],
)
def test_query_params_round_trip(query):
    assert JobListQuery.from_params(query.to_params()) == query


def test_to_params_omits_empty_optionals():
    params = JobListQuery(page=2, limit=10, search="").to_params()

    assert params == {"page": "2", "limit": "10"}


def test_to_params_uses_wire_values():
    params = JobListQuery(
        sort_by="completed_at", sort_order=SortOrder.DESC, status=JobStatus.RUNNING
    ).to_params()

    assert params["sort_by"] == "completed_at"
    assert params["sort_order"] == "desc"
    assert params["status"] == "running"


def test_initial_query_is_newest_first():
    query = JobListQuery.initial(limit=20)

    assert query.page == 1
    assert query.limit == 20
    assert query.sort_by == "created_at"
    assert query.sort_order is SortOrder.DESC


@pytest.mark.parametrize(
    "kwargs",
    [
        {"page": 0},
        {"limit": 0},
        {"sort_by": "password"},
        {"sort_order": "sideways"},
        {"status": "paused"},
    ],
)
def test_invalid_query_is_rejected(kwargs):
    with pytest.raises(InvalidQueryError):
        JobListQuery(**kwargs)


def test_from_params_rejects_unknown_status():
    with pytest.raises(InvalidQueryError):
        JobListQuery.from_params({"page": "1", "status": "paused"})


def test_with_page_keeps_other_conditions():
    query = JobListQuery(search="shop", status=JobStatus.QUEUED)

    assert query.with_page(4) == JobListQuery(
        page=4, search="shop", status=JobStatus.QUEUED
    )


def test_decode_list_response():
    jobs, pagination = decode_list_response(
        {
            "jobs": [
                {"id": i, "url": f"https://example.com/{i}", "status": "completed"}
                for i in range(10)
            ],
            "total": 35,
            "page": 1,
            "limit": 10,
        }
    )

    assert len(jobs) == 10
    assert pagination.total == 35
    assert pagination.total_pages == 4


def test_decode_empty_list_response():
    jobs, pagination = decode_list_response({"jobs": None, "total": 0})

    assert jobs == []
    assert pagination.total_pages == 0
