from dataclasses import dataclass

from crawl_dashboard.domain.model import Job, JobStatus


class Event:
    """모든 도메인 이벤트의 기본 클래스 (마커 인터페이스 역할)"""

    pass


@dataclass(frozen=True)
class JobCollectionChanged(Event):
    """JobStore의 상태가 바뀌었을 때 발생하는 이벤트들의 공통 부모.

    jobs는 변경 직후의 스냅샷입니다.
    """

    jobs: tuple[Job, ...]


@dataclass(frozen=True)
class JobListRefreshed(JobCollectionChanged):
    """목록 조회(사용자 요청 또는 폴링) 결과로 컬렉션이 교체되었을 때"""

    silent: bool = False


@dataclass(frozen=True)
class JobAdded(JobCollectionChanged):
    job_id: int = 0


@dataclass(frozen=True)
class JobStatusChanged(JobCollectionChanged):
    """start/stop 성공 후 특정 Job의 status만 패치되었을 때"""

    job_id: int = 0
    status: JobStatus = JobStatus.QUEUED


@dataclass(frozen=True)
class JobsRemoved(JobCollectionChanged):
    job_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class JobsRequeued(JobCollectionChanged):
    job_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class PollingStateChanged(Event):
    active: bool
    interval: float
