from __future__ import annotations

from typing import Final

from loguru import logger

from crawl_dashboard.application.job_store import JOBS_PATH
from crawl_dashboard.domain.model import JobDetail
from crawl_dashboard.infrastructure.exceptions import TransportError
from crawl_dashboard.infrastructure.transport import (
    AuthenticatedTransport,
    decode_payload,
)

DETAIL_ERROR_MESSAGE: Final = "Failed to fetch analysis details"


class DetailFetcher:
    """선택한 Job 한 건의 상세 정보와 깨진 링크 목록을 가져옵니다.

    목록(JobStore)과는 독립된 loading/error 상태를 가지며,
    여기서의 실패는 목록에 아무 영향을 주지 않습니다.
    """

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport: Final = transport
        self._job_id: int | None = None
        self.detail: JobDetail | None = None
        self.loading: bool = False
        self.error: str | None = None

    @property
    def job_id(self) -> int | None:
        return self._job_id

    async def select(self, job_id: int | None) -> None:
        """선택된 Job이 바뀌었을 때 호출합니다. None이면 상세 정보를 비웁니다."""
        if job_id == self._job_id:
            return
        self._job_id = job_id
        self.detail = None
        self.error = None
        if job_id is None:
            self.loading = False
            return
        await self._fetch(job_id)

    async def refresh(self) -> None:
        if self._job_id is not None:
            await self._fetch(self._job_id)

    async def _fetch(self, job_id: int) -> None:
        with logger.contextualize(job_id=job_id):
            self.loading = True
            self.error = None
            try:
                payload = await self._transport.request(
                    "GET", f"{JOBS_PATH}/{job_id}", error_message=DETAIL_ERROR_MESSAGE
                )
                detail = decode_payload(JobDetail.from_dict, payload, DETAIL_ERROR_MESSAGE)
            except TransportError as e:
                if job_id == self._job_id:
                    self.error = e.message
                    self.loading = False
                logger.warning(f"Detail fetch failed: {e.message}")
                return

            if job_id != self._job_id:
                logger.debug("Discarding detail response for a deselected job.")
                return
            self.detail = detail
            self.loading = False
            logger.debug(
                f"Loaded detail for job {job_id} "
                f"with {len(detail.broken_links)} broken links."
            )
