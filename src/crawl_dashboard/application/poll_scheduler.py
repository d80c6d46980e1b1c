from __future__ import annotations

import asyncio
from typing import Callable, Final

from loguru import logger

from crawl_dashboard.application.job_store import JobStore
from crawl_dashboard.domain.events import PollingStateChanged
from crawl_dashboard.domain.model import Job, has_active_jobs


class PollScheduler:
    """진행 중인 작업이 있을 때만 마지막 목록 조회를 주기적으로 다시 보내는 타이머.

    활성 조건: 들고 있는 Job 중 하나라도 queued/running 이면 ACTIVE.
    JobStore의 상태가 바뀔 때마다 evaluate()가 호출되어 스스로 시작/중지합니다.

    사용자가 직접 stop()하면 이후의 단순 새로고침으로는 다시 켜지지 않고,
    작업 추가/시작/재실행 같은 새로운 활성화 계기가 있을 때만 다시 평가합니다.
    """

    def __init__(
        self,
        store: JobStore,
        interval: float = 5.0,
        on_state_change: Callable[[PollingStateChanged], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {interval}")
        self._store: Final = store
        self._interval = interval
        self._on_state_change = on_state_change
        self._task: asyncio.Task[None] | None = None
        self._suppressed = False

    @property
    def is_active(self) -> bool:
        return self._task is not None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def suppressed(self) -> bool:
        """사용자가 수동으로 자동 새로고침을 끈 상태인지 여부"""
        return self._suppressed

    def evaluate(self, jobs: tuple[Job, ...] | list[Job], reactivate: bool = False) -> None:
        """현재 Job 목록으로 폴링 여부를 다시 결정합니다. 여러 번 호출해도 안전합니다."""
        if reactivate and self._suppressed:
            logger.debug("New activity after manual stop; polling re-enabled.")
            self._suppressed = False

        if has_active_jobs(jobs):
            if not self._suppressed:
                self._start_timer()
        else:
            self._stop_timer()

    def start(self) -> None:
        """사용자가 자동 새로고침을 켭니다."""
        self._suppressed = False
        self._start_timer()

    def stop(self) -> None:
        """사용자가 자동 새로고침을 끕니다."""
        self._suppressed = True
        self._stop_timer()

    def set_interval(self, interval: float) -> None:
        """주기를 바꿉니다. 동작 중이면 새 주기로 즉시 다시 시작합니다."""
        if interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {interval}")
        if interval == self._interval:
            return
        self._interval = interval
        logger.info(f"Polling interval set to {interval}s.")
        if self.is_active:
            self._stop_timer(notify=False)
            self._start_timer()

    async def aclose(self) -> None:
        """화면이 닫힐 때 호출합니다. 남은 백그라운드 요청이 없도록 타이머를 정리합니다."""
        task = self._task
        self._stop_timer()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    # --- Internals ---

    def _start_timer(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="job-list-poller"
        )
        logger.info(f"Polling started (every {self._interval}s).")
        self._notify()

    def _stop_timer(self, notify: bool = True) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        # tick 안에서(evaluate를 통해) 멈추는 경우 자기 자신을 취소하지 않고
        # 루프가 다음 대기 전에 스스로 빠져나갑니다.
        if task is not asyncio.current_task():
            task.cancel()
        logger.info("Polling stopped.")
        if notify:
            self._notify()

    async def _run(self) -> None:
        # 한 번에 하나의 tick만 진행됩니다: 이전 조회가 끝나야 다음 대기가 시작됩니다.
        while True:
            await asyncio.sleep(self._interval)
            query = self._store.last_query
            if query is None:
                continue
            try:
                await self._store.silent_list(query)
            except Exception:
                logger.exception("Unexpected error during polling tick.")
            if self._task is not asyncio.current_task():
                return

    def _notify(self) -> None:
        if self._on_state_change is not None:
            self._on_state_change(
                PollingStateChanged(active=self.is_active, interval=self._interval)
            )
