from dataclasses import dataclass


class Command:
    """모든 커맨드의 기본 클래스 (마커 역할)"""

    pass


@dataclass(frozen=True)
class AddJobCommand(Command):
    """URL 크롤 작업 생성을 요청하는 커맨드"""

    url: str
    auto_start: bool = True


@dataclass(frozen=True)
class StartJobCommand(Command):
    job_id: int


@dataclass(frozen=True)
class StopJobCommand(Command):
    job_id: int


@dataclass(frozen=True)
class DeleteJobsCommand(Command):
    job_ids: tuple[int, ...]


@dataclass(frozen=True)
class RerunJobsCommand(Command):
    """선택한 작업들을 다시 queued 상태로 돌리는 커맨드"""

    job_ids: tuple[int, ...]
