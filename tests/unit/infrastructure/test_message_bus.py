from dataclasses import dataclass

import pytest
from pytest_mock import MockerFixture

from crawl_dashboard.application.commands import Command, StartJobCommand
from crawl_dashboard.domain.events import (
    JobAdded,
    JobCollectionChanged,
    PollingStateChanged,
)
from crawl_dashboard.infrastructure.message_bus import FunctionHandler, InMemoryMessageBus


@pytest.mark.asyncio
async def test_command_is_dispatched_to_its_handler(mocker: MockerFixture):
    bus = InMemoryMessageBus()
    handler = mocker.AsyncMock()
    bus.register_command(StartJobCommand, handler)

    await bus.handle(StartJobCommand(job_id=1))

    handler.handle.assert_awaited_once_with(StartJobCommand(job_id=1))


def test_command_can_only_have_one_handler(mocker: MockerFixture):
    bus = InMemoryMessageBus()
    bus.register_command(StartJobCommand, mocker.AsyncMock())

    with pytest.raises(ValueError):
        bus.register_command(StartJobCommand, mocker.AsyncMock())


@pytest.mark.asyncio
async def test_unregistered_command_raises():
    @dataclass(frozen=True)
    class UnknownCommand(Command):
        pass

    with pytest.raises(ValueError):
        await InMemoryMessageBus().handle(UnknownCommand())


@pytest.mark.asyncio
async def test_handler_errors_propagate_unchanged():
    bus = InMemoryMessageBus()

    async def failing(command):
        raise KeyError("missing job")

    bus.register_command(StartJobCommand, FunctionHandler(failing))

    with pytest.raises(KeyError):
        await bus.handle(StartJobCommand(job_id=1))


@pytest.mark.asyncio
async def test_event_reaches_subscribers_of_parent_types():
    bus = InMemoryMessageBus()
    received = []

    async def record(event):
        received.append(type(event).__name__)

    bus.subscribe_to_event(JobCollectionChanged, FunctionHandler(record))
    bus.subscribe_to_event(JobAdded, FunctionHandler(record))

    await bus.handle(JobAdded(jobs=(), job_id=1))
    await bus.handle(PollingStateChanged(active=True, interval=5.0))

    assert received == ["JobAdded", "JobAdded"]


@pytest.mark.asyncio
async def test_non_message_is_rejected():
    with pytest.raises(TypeError):
        await InMemoryMessageBus().handle("not a message")
