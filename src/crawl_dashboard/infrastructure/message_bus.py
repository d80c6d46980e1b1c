from __future__ import annotations

from collections import defaultdict
from typing import Awaitable, Callable, Iterator, override

from loguru import logger

from crawl_dashboard.application.commands import Command
from crawl_dashboard.domain.events import Event
from crawl_dashboard.domain.message_bus import Handler, Message, MessageBus


class FunctionHandler(Handler):
    """코루틴 함수(예: 화면의 갱신 메서드)를 Handler로 쓸 수 있게 감쌉니다."""

    def __init__(self, func: Callable[[Message], Awaitable[None]]):
        self._func = func

    @override
    async def handle(self, message: Message) -> None:
        await self._func(message)


class InMemoryMessageBus(MessageBus):
    """한 화면 안에서 커맨드와 이벤트를 바로 처리하는 버스

    - 커맨드는 타입당 핸들러 하나. 핸들러의 예외는 그대로 호출자에게 전달됩니다.
    - 이벤트는 상속 관계를 따라 전달됩니다. JobCollectionChanged를 구독하면
      JobAdded, JobsRemoved 같은 하위 이벤트도 모두 받습니다.
    """

    def __init__(self):
        self._commands: dict[type[Command], Handler] = {}
        self._subscribers: defaultdict[type[Event], list[Handler]] = defaultdict(list)

    @override
    def register_command(self, command: type[Command], handler: Handler) -> None:
        if command in self._commands:
            raise ValueError(f"{command.__name__} is already registered.")
        self._commands[command] = handler

    @override
    def subscribe_to_event(self, event: type[Event], handler: Handler) -> None:
        self._subscribers[event].append(handler)

    @override
    async def handle(self, message: Command | Event) -> None:
        if isinstance(message, Command):
            await self._dispatch_command(message)
        elif isinstance(message, Event):
            for handler in self._subscribers_of(message):
                await handler.handle(message)
        else:
            raise TypeError(
                f"Expected a Command or Event, got {type(message).__name__}"
            )

    async def _dispatch_command(self, command: Command) -> None:
        handler = self._commands.get(type(command))
        if handler is None:
            raise ValueError(f"No handler registered for {type(command).__name__}")
        logger.debug(f"Dispatching {type(command).__name__}.")
        await handler.handle(command)

    def _subscribers_of(self, event: Event) -> Iterator[Handler]:
        for event_type in type(event).__mro__:
            yield from self._subscribers.get(event_type, ())
