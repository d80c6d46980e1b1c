import asyncio
import inspect
from typing import Any, Callable

import pytest

from crawl_dashboard.domain.events import Event
from crawl_dashboard.infrastructure.message_bus import FunctionHandler, InMemoryMessageBus


class FakeTransport:
    """실제 HTTP 요청 없이 (method, path) 별로 미리 정한 응답을 돌려주는 가짜 전송 계층

    응답은 값, (params, json)을 받는 함수, 또는 코루틴 함수일 수 있습니다.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Any, Any]] = []
        self._routes: dict[tuple[str, str], tuple[Any, Exception | None]] = {}

    def route(
        self,
        method: str,
        path: str,
        response: Any = None,
        error: Exception | None = None,
    ) -> None:
        self._routes[(method, path)] = (response, error)

    def calls_to(self, method: str, path: str) -> list[tuple[str, str, Any, Any]]:
        return [call for call in self.calls if call[:2] == (method, path)]

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        error_message: str = "Request failed",
    ) -> Any:
        self.calls.append((method, path, params, json))
        # 실제 네트워크처럼 다른 코루틴에게 실행을 양보합니다.
        await asyncio.sleep(0)
        response, error = self._routes[(method, path)]
        if error is not None:
            raise error
        if callable(response):
            response = response(params, json)
            if inspect.isawaitable(response):
                response = await response
        return response


def make_job_payload(job_id: int, status: str = "queued", **fields: Any) -> dict[str, Any]:
    return {
        "id": job_id,
        "url": fields.pop("url", f"https://example.com/{job_id}"),
        "status": status,
        "created_at": "2024-05-01T12:00:00Z",
        **fields,
    }


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def bus() -> InMemoryMessageBus:
    return InMemoryMessageBus()


@pytest.fixture
def published(bus: InMemoryMessageBus) -> list[Event]:
    """버스로 발행된 모든 이벤트를 순서대로 기록합니다."""
    events: list[Event] = []

    async def record(event: Event) -> None:
        events.append(event)

    bus.subscribe_to_event(Event, FunctionHandler(record))
    return events


@pytest.fixture
def job_payload() -> Callable[..., dict[str, Any]]:
    return make_job_payload
