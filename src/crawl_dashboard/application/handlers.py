from __future__ import annotations

from typing import Final

from loguru import logger

from crawl_dashboard.application.commands import (
    AddJobCommand,
    DeleteJobsCommand,
    RerunJobsCommand,
    StartJobCommand,
    StopJobCommand,
)
from crawl_dashboard.application.job_store import JobStore
from crawl_dashboard.application.poll_scheduler import PollScheduler
from crawl_dashboard.domain.events import (
    JobAdded,
    JobCollectionChanged,
    JobsRequeued,
    JobStatusChanged,
)
from crawl_dashboard.domain.model import validate_url


class AddJobCommandHandler:
    def __init__(self, store: JobStore):
        self.store: Final = store

    async def handle(self, command: AddJobCommand):
        # 잘못된 URL은 네트워크 요청 전에 여기서 걸러집니다 (InvalidUrlError).
        url = validate_url(command.url)
        logger.debug(f"Handling AddJobCommand for {url} (auto_start={command.auto_start}).")
        await self.store.add(url, auto_start=command.auto_start)


class StartJobCommandHandler:
    def __init__(self, store: JobStore):
        self.store: Final = store

    async def handle(self, command: StartJobCommand):
        with logger.contextualize(job_id=command.job_id):
            logger.debug("Handling StartJobCommand.")
            await self.store.start(command.job_id)


class StopJobCommandHandler:
    def __init__(self, store: JobStore):
        self.store: Final = store

    async def handle(self, command: StopJobCommand):
        with logger.contextualize(job_id=command.job_id):
            logger.debug("Handling StopJobCommand.")
            await self.store.stop(command.job_id)


class DeleteJobsCommandHandler:
    def __init__(self, store: JobStore):
        self.store: Final = store

    async def handle(self, command: DeleteJobsCommand):
        if not command.job_ids:
            logger.warning("DeleteJobsCommand without ids. Ignoring.")
            return
        logger.debug(f"Handling DeleteJobsCommand for {list(command.job_ids)}.")
        await self.store.delete(command.job_ids)


class RerunJobsCommandHandler:
    def __init__(self, store: JobStore):
        self.store: Final = store

    async def handle(self, command: RerunJobsCommand):
        if not command.job_ids:
            logger.warning("RerunJobsCommand without ids. Ignoring.")
            return
        logger.debug(f"Handling RerunJobsCommand for {list(command.job_ids)}.")
        await self.store.rerun(command.job_ids)


class PollActivationHandler:
    """JobStore 상태가 바뀔 때마다 PollScheduler에 폴링 여부를 다시 평가시킵니다.

    작업 추가, 시작, 재실행은 사용자가 수동으로 끈 자동 새로고침도 다시 켤 수 있는
    새로운 활성화 계기로 취급합니다.
    """

    def __init__(self, scheduler: PollScheduler):
        self.scheduler: Final = scheduler

    async def handle(self, event: JobCollectionChanged):
        reactivate = isinstance(event, (JobAdded, JobsRequeued)) or (
            isinstance(event, JobStatusChanged) and event.status.is_active
        )
        self.scheduler.evaluate(event.jobs, reactivate=reactivate)
