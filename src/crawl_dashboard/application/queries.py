from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Final

from crawl_dashboard.domain.exceptions import InvalidQueryError
from crawl_dashboard.domain.model import Job, JobStatus, PaginationInfo, SortOrder

DEFAULT_PAGE_SIZE: Final = 10
DEFAULT_SORT_BY: Final = "created_at"
SORTABLE_FIELDS: Final = frozenset(
    {"created_at", "url", "status", "page_title", "started_at", "completed_at"}
)


# 1. Queries
class Query:
    """Marker class for queries."""
    pass


@dataclass(frozen=True)
class JobListQuery(Query):
    """목록 화면의 조회 조건 (페이지, 정렬, 검색, 상태 필터).

    화면 조건이 바뀔 때마다 새로 만들어지며, 마지막으로 성공한 조회는
    폴링에서 같은 조건으로 재사용됩니다.
    """

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: str | None = None
    sort_order: SortOrder | None = None
    search: str | None = None
    status: JobStatus | None = None

    def __post_init__(self):
        if self.page < 1:
            raise InvalidQueryError(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise InvalidQueryError(f"limit must be >= 1, got {self.limit}")
        if self.sort_by is not None and self.sort_by not in SORTABLE_FIELDS:
            raise InvalidQueryError(f"Unknown sort field: {self.sort_by!r}")
        if self.sort_order is not None and not isinstance(self.sort_order, SortOrder):
            raise InvalidQueryError(f"Unknown sort order: {self.sort_order!r}")
        if self.status is not None and not isinstance(self.status, JobStatus):
            raise InvalidQueryError(f"Unknown status filter: {self.status!r}")

    @classmethod
    def initial(cls, limit: int = DEFAULT_PAGE_SIZE) -> "JobListQuery":
        """대시보드 최초 진입 시의 조회 조건: 최신순 첫 페이지"""
        return cls(limit=limit, sort_by=DEFAULT_SORT_BY, sort_order=SortOrder.DESC)

    def to_params(self) -> dict[str, str]:
        """요청 쿼리스트링용 파라미터. 비어 있는 선택 항목은 아예 보내지 않습니다."""
        params = {"page": str(self.page), "limit": str(self.limit)}
        if self.sort_by:
            params["sort_by"] = self.sort_by
        if self.sort_order:
            params["sort_order"] = self.sort_order.value
        if self.search:
            params["search"] = self.search
        if self.status:
            params["status"] = self.status.value
        return params

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "JobListQuery":
        try:
            return cls(
                page=int(params.get("page", 1)),
                limit=int(params.get("limit", DEFAULT_PAGE_SIZE)),
                sort_by=params.get("sort_by") or None,
                sort_order=SortOrder(params["sort_order"])
                if params.get("sort_order")
                else None,
                search=params.get("search") or None,
                status=JobStatus(params["status"]) if params.get("status") else None,
            )
        except ValueError as e:
            raise InvalidQueryError(str(e)) from e

    def with_page(self, page: int) -> "JobListQuery":
        return replace(self, page=page)


def decode_list_response(payload: Mapping[str, Any]) -> tuple[list[Job], PaginationInfo]:
    """목록 응답에서 Job 목록과 페이지 정보를 함께 꺼냅니다.

    두 값은 항상 같은 응답에서 나오며 따로 적용되지 않습니다.
    """
    jobs = [Job.from_dict(item) for item in payload.get("jobs") or []]
    pagination = PaginationInfo(
        page=int(payload.get("page") or 1),
        limit=int(payload.get("limit") or DEFAULT_PAGE_SIZE),
        total=int(payload.get("total") or 0),
    )
    return jobs, pagination
