from typing import Protocol, TypeAlias

from crawl_dashboard.application.commands import Command
from crawl_dashboard.domain.events import Event

Message: TypeAlias = Command | Event


class Handler(Protocol):
    """모든 핸들러가 구현해야 하는 프로토콜"""

    async def handle(self, message: Command | Event) -> None:
        ...


class MessageBus(Protocol):
    """메시지 버스의 추상 인터페이스"""

    def register_command(self, command: type[Command], handler: Handler) -> None:
        ...

    def subscribe_to_event(self, event: type[Event], handler: Handler) -> None:
        ...

    async def handle(self, message: Command | Event) -> None:
        ...
