from datetime import datetime, timezone

import pytest

from crawl_dashboard.domain.exceptions import DomainError, InvalidUrlError
from crawl_dashboard.domain.model import (
    BrokenLink,
    Job,
    JobDetail,
    JobStatus,
    PaginationInfo,
    has_active_jobs,
    validate_url,
)


def test_job_from_dict_reads_server_fields():
    job = Job.from_dict(
        {
            "id": 7,
            "url": "https://example.com",
            "status": "completed",
            "page_title": "Example",
            "html_version": "HTML5",
            "h1_count": 1,
            "h2_count": 4,
            "h6_count": 2,
            "internal_links": 12,
            "external_links": 3,
            "broken_links": 1,
            "has_login_form": True,
            "has_jsonld": True,
            "created_at": "2024-05-01T12:00:00Z",
            "completed_at": None,
            "unknown_field": "ignored",
        }
    )

    assert job.id == 7
    assert job.status is JobStatus.COMPLETED
    assert job.headings.as_tuple() == (1, 4, 0, 0, 0, 2)
    assert job.internal_links == 12
    assert job.has_login_form is True
    assert job.has_jsonld is True
    assert job.has_rdfa is False
    assert job.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert job.completed_at is None
    assert job.error_message is None


def test_job_from_dict_rejects_unknown_status():
    with pytest.raises(ValueError):
        Job.from_dict({"id": 1, "url": "https://example.com", "status": "paused"})


def test_with_status_only_changes_status():
    job = Job.from_dict(
        {"id": 1, "url": "https://example.com", "status": "error", "page_title": "t"}
    )

    patched = job.with_status(JobStatus.QUEUED)

    assert patched.status is JobStatus.QUEUED
    assert patched.page_title == "t"
    assert job.status is JobStatus.ERROR


def test_job_detail_from_dict_maps_broken_links():
    detail = JobDetail.from_dict(
        {
            "job": {"id": 3, "url": "https://example.com", "status": "completed"},
            "broken_links": [
                {
                    "id": 10,
                    "crawl_job_id": 3,
                    "url": "https://example.com/missing",
                    "status_code": 404,
                }
            ],
        }
    )

    assert detail.job.id == 3
    assert detail.broken_links == [
        BrokenLink(id=10, job_id=3, url="https://example.com/missing", status_code=404)
    ]


def test_job_detail_without_broken_links():
    detail = JobDetail.from_dict(
        {"job": {"id": 3, "url": "https://example.com", "status": "running"}, "broken_links": None}
    )

    assert detail.broken_links == []


@pytest.mark.parametrize(
    "total, limit, expected",
    [(35, 10, 4), (30, 10, 3), (0, 10, 0), (1, 10, 1), (5, 0, 0)],
)
def test_total_pages(total, limit, expected):
    assert PaginationInfo(page=1, limit=limit, total=total).total_pages == expected


def test_active_statuses():
    assert {status for status in JobStatus if status.is_active} == {
        JobStatus.QUEUED,
        JobStatus.RUNNING,
    }


def test_has_active_jobs():
    done = Job(id=1, url="https://a.com", status=JobStatus.COMPLETED)
    stopped = Job(id=2, url="https://b.com", status=JobStatus.STOPPED)
    running = Job(id=3, url="https://c.com", status=JobStatus.RUNNING)

    assert has_active_jobs([]) is False
    assert has_active_jobs([done, stopped]) is False
    assert has_active_jobs((done, running)) is True


def test_validate_url_strips_whitespace():
    assert validate_url("  https://example.com/path  ") == "https://example.com/path"


@pytest.mark.parametrize(
    "url", ["", "example.com", "ftp://example.com", "https://", "not a url"]
)
def test_validate_url_rejects_malformed(url):
    with pytest.raises(InvalidUrlError) as exc_info:
        validate_url(url)

    assert isinstance(exc_info.value, DomainError)
