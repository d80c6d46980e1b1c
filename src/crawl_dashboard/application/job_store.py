from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from typing import Final

from loguru import logger

from crawl_dashboard.application.queries import JobListQuery, decode_list_response
from crawl_dashboard.domain.events import (
    Event,
    JobAdded,
    JobListRefreshed,
    JobsRemoved,
    JobsRequeued,
    JobStatusChanged,
)
from crawl_dashboard.domain.message_bus import MessageBus
from crawl_dashboard.domain.model import Job, JobStatus, PaginationInfo
from crawl_dashboard.infrastructure.exceptions import TransportError
from crawl_dashboard.infrastructure.transport import (
    AuthenticatedTransport,
    decode_payload,
)

JOBS_PATH: Final = "/urls"

JobsPatch = Callable[[tuple[Job, ...]], tuple[Job, ...]]


class JobStore:
    """목록 화면이 보고 있는 Job 페이지와 페이지 정보를 들고 있는 저장소.

    - 사용자 작업(추가/시작/중지/삭제/재실행)은 서버 응답이 성공하면 로컬 상태를
      낙관적으로 부분 패치하고, 실패하면 아무것도 바꾸지 않고 예외를 올립니다.
    - 변경이 적용될 때마다 버스로 이벤트를 발행합니다 (PollScheduler가 구독).
    - 목록 요청과 로컬 패치에 단조 증가하는 번호를 매깁니다. 더 늦게 보낸 목록이
      이미 적용되었으면 응답을 버리고, 요청 이후에 적용된 패치는 응답 위에 다시 적용합니다.

    화면 하나가 저장소 하나를 소유하며, 여러 화면 사이의 캐시 일관성은 다루지 않습니다.
    """

    def __init__(self, transport: AuthenticatedTransport, bus: MessageBus) -> None:
        self._transport: Final = transport
        self._bus: Final = bus
        self._jobs: tuple[Job, ...] = ()
        self._pagination = PaginationInfo()
        self._last_query: JobListQuery | None = None
        self._seq = 0
        self._applied_list_seq = 0
        self._in_flight: set[int] = set()
        self._patches: list[tuple[int, JobsPatch]] = []
        self._pending = 0
        self.error: str | None = None

    @property
    def jobs(self) -> tuple[Job, ...]:
        return self._jobs

    @property
    def pagination(self) -> PaginationInfo:
        return self._pagination

    @property
    def last_query(self) -> JobListQuery | None:
        """마지막으로 성공한 목록 조회 조건. 폴링이 같은 조건으로 재조회합니다."""
        return self._last_query

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def get(self, job_id: int) -> Job | None:
        return next((job for job in self._jobs if job.id == job_id), None)

    # --- List ---

    async def list_jobs(self, query: JobListQuery) -> None:
        """목록을 조회해 컬렉션과 페이지 정보를 통째로 교체합니다.

        실패하면 error에 메시지를 남기고 컬렉션은 그대로 둔 채 예외를 올립니다.
        """
        async with self._busy():
            try:
                await self._fetch_and_apply(query, silent=False)
            except TransportError as e:
                self._record_error(e)
                raise

    async def silent_list(self, query: JobListQuery) -> None:
        """폴링 전용 목록 조회. 실패는 로그만 남기고 error/loading은 건드리지 않습니다."""
        try:
            await self._fetch_and_apply(query, silent=True)
        except TransportError as e:
            logger.warning(f"Polling fetch failed: {e}")

    async def _fetch_and_apply(self, query: JobListQuery, silent: bool) -> None:
        request_seq = self._next_seq()
        self._in_flight.add(request_seq)
        try:
            payload = await self._transport.request(
                "GET",
                JOBS_PATH,
                params=query.to_params(),
                error_message="Failed to fetch analyses",
            )
            later_patches = [patch for seq, patch in self._patches if seq > request_seq]
        finally:
            self._in_flight.discard(request_seq)
            self._prune_patches()

        if request_seq < self._applied_list_seq:
            logger.debug(
                f"Discarding stale list response #{request_seq} "
                f"(last applied list #{self._applied_list_seq})."
            )
            return

        jobs, pagination = decode_payload(
            decode_list_response, payload, "Failed to fetch analyses"
        )
        self._jobs = tuple(jobs)
        for patch in later_patches:
            self._jobs = patch(self._jobs)
        self._pagination = pagination
        self._applied_list_seq = request_seq
        self._last_query = query
        if not silent:
            self.error = None
        logger.debug(
            f"Applied list #{request_seq}: {len(jobs)} jobs, "
            f"page {pagination.page}/{pagination.total_pages}, "
            f"{len(later_patches)} local patches replayed."
        )
        await self._publish(JobListRefreshed(jobs=self._jobs, silent=silent))

    # --- Mutations ---

    async def add(self, url: str, auto_start: bool = True) -> Job:
        """새 작업을 만들고 목록 맨 앞에 넣습니다.

        auto_start이면 곧바로 start를 호출하지만, 시작 실패가 추가를 되돌리지는 않습니다.
        """
        async with self._busy():
            try:
                payload = await self._transport.request(
                    "POST", JOBS_PATH, json={"url": url}, error_message="Failed to add URL"
                )
                job = decode_payload(Job.from_dict, payload, "Failed to add URL")
            except TransportError as e:
                self._record_error(e)
                raise
            self._apply(
                lambda jobs: (job, *(other for other in jobs if other.id != job.id))
            )
            logger.info(f"Job {job.id} created for {job.url}.")
            await self._publish(JobAdded(jobs=self._jobs, job_id=job.id))

        if auto_start:
            try:
                await self.start(job.id)
            except TransportError as e:
                logger.warning(f"Failed to auto-start crawl for job {job.id}: {e}")
        return job

    async def start(self, job_id: int) -> None:
        await self._transition(job_id, "start", JobStatus.RUNNING, "Failed to start crawl")

    async def stop(self, job_id: int) -> None:
        await self._transition(job_id, "stop", JobStatus.STOPPED, "Failed to stop crawl")

    async def _transition(
        self, job_id: int, action: str, status: JobStatus, error_message: str
    ) -> None:
        with logger.contextualize(job_id=job_id):
            try:
                await self._transport.request(
                    "POST", f"{JOBS_PATH}/{job_id}/{action}", error_message=error_message
                )
            except TransportError as e:
                self._record_error(e)
                raise
            self._patch_status({job_id}, status)
            logger.info(f"Job {job_id} {action} accepted; status patched to {status.value}.")
            await self._publish(
                JobStatusChanged(jobs=self._jobs, job_id=job_id, status=status)
            )

    async def delete(self, job_ids: Iterable[int]) -> None:
        ids = tuple(job_ids)
        async with self._busy():
            try:
                payload = await self._transport.request(
                    "DELETE",
                    JOBS_PATH,
                    json={"ids": list(ids)},
                    error_message="Failed to delete analyses",
                )
            except TransportError as e:
                self._record_error(e)
                raise
            removed = set(ids)
            self._apply(lambda jobs: tuple(job for job in jobs if job.id not in removed))
            logger.info(f"Deleted {payload.get('deleted', len(ids))} jobs: {list(ids)}")
            await self._publish(JobsRemoved(jobs=self._jobs, job_ids=ids))

    async def rerun(self, job_ids: Iterable[int]) -> None:
        ids = tuple(job_ids)
        async with self._busy():
            try:
                payload = await self._transport.request(
                    "POST",
                    f"{JOBS_PATH}/rerun",
                    json={"ids": list(ids)},
                    error_message="Failed to rerun analyses",
                )
            except TransportError as e:
                self._record_error(e)
                raise
            self._patch_status(set(ids), JobStatus.QUEUED)
            logger.info(f"Queued {payload.get('count', len(ids))} jobs for re-run: {list(ids)}")
            await self._publish(JobsRequeued(jobs=self._jobs, job_ids=ids))

    # --- Internals ---

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _apply(self, patch: JobsPatch) -> None:
        # 진행 중인 목록 요청이 있으면 응답 위에 다시 적용할 수 있도록 패치를 기록합니다.
        self._jobs = patch(self._jobs)
        if self._in_flight:
            self._patches.append((self._next_seq(), patch))

    def _prune_patches(self) -> None:
        if not self._in_flight:
            self._patches.clear()
            return
        oldest = min(self._in_flight)
        self._patches = [(seq, patch) for seq, patch in self._patches if seq > oldest]

    def _patch_status(self, job_ids: set[int], status: JobStatus) -> None:
        self._apply(
            lambda jobs: tuple(
                job.with_status(status) if job.id in job_ids else job for job in jobs
            )
        )

    def _record_error(self, error: TransportError) -> None:
        self.error = error.message
        logger.error(f"Store operation failed: {error.message}")

    @asynccontextmanager
    async def _busy(self) -> AsyncIterator[None]:
        self._pending += 1
        self.error = None
        try:
            yield
        finally:
            self._pending -= 1

    async def _publish(self, event: Event) -> None:
        await self._bus.handle(event)
