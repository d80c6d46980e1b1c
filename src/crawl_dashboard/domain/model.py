import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from crawl_dashboard.domain.exceptions import InvalidUrlError

# --- Enums for Status ---


class JobStatus(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    STOPPED = "stopped"

    @property
    def is_active(self) -> bool:
        """서버에서 진행 중인 상태인지 여부. 폴링을 유지시키는 유일한 상태들입니다."""
        return self in (JobStatus.QUEUED, JobStatus.RUNNING)

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


# --- Value Objects ---


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        # Go 서버는 RFC3339 ("...Z") 형식으로 내려줍니다.
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class HeadingCounts:
    """h1~h6 태그 개수를 순서대로 담는 Value Object"""

    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    h5: int = 0
    h6: int = 0

    def as_tuple(self) -> tuple[int, int, int, int, int, int]:
        return (self.h1, self.h2, self.h3, self.h4, self.h5, self.h6)


@dataclass(frozen=True)
class BrokenLink:
    """크롤 작업에서 발견된 깨진 링크. 클라이언트 입장에서는 읽기 전용입니다."""

    id: int
    job_id: int
    url: str
    status_code: int
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BrokenLink":
        return cls(
            id=int(data["id"]),
            job_id=int(data.get("crawl_job_id", 0)),
            url=data.get("url", ""),
            status_code=int(data.get("status_code") or 0),
            created_at=_parse_timestamp(data.get("created_at")),
        )


@dataclass(frozen=True)
class PaginationInfo:
    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)


# --- Entities ---


@dataclass(frozen=True)
class Job:
    """서버가 관리하는 크롤 작업 하나의 캐시된 사본.

    결과 필드들은 status가 completed/error 일 때만 의미가 있으며,
    queued/running 동안에는 비어 있거나 이전 실행의 값일 수 있습니다.
    """

    id: int
    url: str
    status: JobStatus
    user_id: int | None = None
    page_title: str = ""
    html_version: str = ""
    headings: HeadingCounts = field(default_factory=HeadingCounts)
    internal_links: int = 0
    external_links: int = 0
    broken_links: int = 0
    has_login_form: bool = False
    meta_title: str = ""
    meta_description: str = ""
    canonical: str = ""
    has_jsonld: bool = False
    has_microdata: bool = False
    has_rdfa: bool = False
    jsonld_snippet: str = ""
    microdata_snippet: str = ""
    rdfa_snippet: str = ""
    is_orphan: bool = False
    inbound_internal_links: int = 0
    error_message: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        """서버 JSON 한 건을 Job으로 변환합니다. 알 수 없는 키는 무시합니다."""
        return cls(
            id=int(data["id"]),
            url=data.get("url", ""),
            status=JobStatus(data.get("status", JobStatus.QUEUED.value)),
            user_id=data.get("user_id"),
            page_title=data.get("page_title") or "",
            html_version=data.get("html_version") or "",
            headings=HeadingCounts(
                *(int(data.get(f"h{level}_count") or 0) for level in range(1, 7))
            ),
            internal_links=int(data.get("internal_links") or 0),
            external_links=int(data.get("external_links") or 0),
            broken_links=int(data.get("broken_links") or 0),
            has_login_form=bool(data.get("has_login_form")),
            meta_title=data.get("meta_title") or "",
            meta_description=data.get("meta_description") or "",
            canonical=data.get("canonical") or "",
            has_jsonld=bool(data.get("has_jsonld")),
            has_microdata=bool(data.get("has_microdata")),
            has_rdfa=bool(data.get("has_rdfa")),
            jsonld_snippet=data.get("jsonld_snippet") or "",
            microdata_snippet=data.get("microdata_snippet") or "",
            rdfa_snippet=data.get("rdfa_snippet") or "",
            is_orphan=bool(data.get("is_orphan")),
            inbound_internal_links=int(data.get("inbound_internal_links") or 0),
            error_message=data.get("error_message") or None,
            created_at=_parse_timestamp(data.get("created_at")),
            started_at=_parse_timestamp(data.get("started_at")),
            completed_at=_parse_timestamp(data.get("completed_at")),
        )

    def with_status(self, status: JobStatus) -> "Job":
        """status 필드만 바꾼 사본을 반환합니다."""
        return replace(self, status=status)


@dataclass(frozen=True)
class JobDetail:
    """상세 화면용 Job과 깨진 링크 목록"""

    job: Job
    broken_links: list[BrokenLink] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobDetail":
        return cls(
            job=Job.from_dict(data["job"]),
            broken_links=[
                BrokenLink.from_dict(link) for link in data.get("broken_links") or []
            ],
        )


def has_active_jobs(jobs: "tuple[Job, ...] | list[Job]") -> bool:
    return any(job.status.is_active for job in jobs)


def validate_url(url: str) -> str:
    """작업 생성 전에 URL 형식을 검증하고 앞뒤 공백을 제거해 반환합니다."""
    candidate = url.strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidUrlError(f"Invalid URL: {url!r}")
    return candidate
