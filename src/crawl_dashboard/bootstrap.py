from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from loguru import logger

from crawl_dashboard.application import handlers
from crawl_dashboard.application.commands import (
    AddJobCommand,
    DeleteJobsCommand,
    RerunJobsCommand,
    StartJobCommand,
    StopJobCommand,
)
from crawl_dashboard.application.detail_fetcher import DetailFetcher
from crawl_dashboard.application.job_store import JobStore
from crawl_dashboard.application.poll_scheduler import PollScheduler
from crawl_dashboard.domain.events import JobCollectionChanged, PollingStateChanged
from crawl_dashboard.infrastructure.credentials import FileCredentialStore
from crawl_dashboard.infrastructure.message_bus import InMemoryMessageBus
from crawl_dashboard.infrastructure.transport import AuthenticatedTransport

if TYPE_CHECKING:
    from crawl_dashboard.domain.message_bus import MessageBus
    from crawl_dashboard.infrastructure.config import Settings


class Application:
    """애플리케이션의 핵심 컴포넌트들을 관리하는 클래스"""

    def __init__(
        self,
        bus: MessageBus,
        transport: AuthenticatedTransport,
        store: JobStore,
        scheduler: PollScheduler,
        detail_fetcher: DetailFetcher,
    ):
        self.bus = bus
        self.transport = transport
        self.store = store
        self.scheduler = scheduler
        self.detail_fetcher = detail_fetcher

    async def aclose(self) -> None:
        """타이머를 멈추고 HTTP 클라이언트를 닫습니다."""
        await self.scheduler.aclose()
        await self.transport.aclose()


def bootstrap(
    settings: Settings,
    transport: AuthenticatedTransport | None = None,
    bus: MessageBus | None = None,
    poll_interval: float | None = None,
    on_polling_change: Callable[[PollingStateChanged], None] | None = None,
) -> Application:
    """애플리케이션을 초기화하고 모든 컴포넌트를 설정합니다.

    Args:
        settings: API 주소, 타임아웃, 데이터 디렉터리 등의 실행 설정
        transport: 테스트에서 주입하는 전송 계층. 없으면 설정으로 만듭니다.
        bus: 테스트에서 주입하는 메시지 버스
        poll_interval: 사용자 환경설정의 새로고침 주기 (없으면 settings 값)
        on_polling_change: 폴링 on/off 변화를 UI에 알리는 콜백

    Returns:
        초기화된 Application 객체
    """
    logger.info("애플리케이션 bootstrap 시작")

    # 1. 메시지 버스 및 전송 계층 생성
    bus = bus or InMemoryMessageBus()
    if transport is None:
        credentials = FileCredentialStore(
            settings.session_path, fallback_api_key=settings.api_key
        )
        transport = AuthenticatedTransport(
            base_url=settings.api_base_url,
            credentials=credentials,
            timeout=settings.request_timeout,
        )
    logger.debug(f"MessageBus 및 Transport 생성 완료 ({settings.api_base_url})")

    # 2. 목록 저장소, 폴링 타이머, 상세 조회기 생성
    store = JobStore(transport=transport, bus=bus)
    scheduler = PollScheduler(
        store,
        interval=poll_interval or settings.poll_interval,
        on_state_change=on_polling_change,
    )
    detail_fetcher = DetailFetcher(transport)

    # 3. 커맨드 핸들러 등록
    bus.register_command(AddJobCommand, handlers.AddJobCommandHandler(store=store))
    bus.register_command(StartJobCommand, handlers.StartJobCommandHandler(store=store))
    bus.register_command(StopJobCommand, handlers.StopJobCommandHandler(store=store))
    bus.register_command(
        DeleteJobsCommand, handlers.DeleteJobsCommandHandler(store=store)
    )
    bus.register_command(RerunJobsCommand, handlers.RerunJobsCommandHandler(store=store))
    logger.debug("커맨드 핸들러 등록 완료")

    # 4. 이벤트 핸들러 등록: 상태가 바뀔 때마다 폴링 여부 재평가
    bus.subscribe_to_event(
        JobCollectionChanged, handlers.PollActivationHandler(scheduler=scheduler)
    )
    logger.debug("이벤트 핸들러 등록 완료")

    logger.info("애플리케이션 bootstrap 완료")

    return Application(
        bus=bus,
        transport=transport,
        store=store,
        scheduler=scheduler,
        detail_fetcher=detail_fetcher,
    )
