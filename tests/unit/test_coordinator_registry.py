from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from app.services.actions.action_coordinator import ActionCoordinator
from app.services.actions.coordinator_registry import CoordinatorRegistry
from app.services.actions.delegate import ActionCoordinatorDelegate, BufferedDelegate, CallbackDelegate
from tests.fakes import FakeCalendar, FakeContacts, FakeExecution, FakeSession, FakeTimezone


def _registry(
    execution: FakeExecution,
    clock: Callable[[], float] | None = None,
) -> CoordinatorRegistry:
    def factory(delegate: ActionCoordinatorDelegate) -> ActionCoordinator:
        return ActionCoordinator(
            execution=execution,
            calendar=FakeCalendar(),
            contacts=FakeContacts(),
            session=FakeSession(),
            timezone=FakeTimezone(),
            delegate=delegate,
            result_display_seconds=0.05,
        )

    if clock is None:
        return CoordinatorRegistry(factory)
    return CoordinatorRegistry(factory, idle_ttl_seconds=60.0, clock=clock)


@pytest.mark.asyncio
async def test_get_or_create_reuses_session_and_binds_conversation_id() -> None:
    execution = FakeExecution()
    registry = _registry(execution)

    session = registry.get_or_create("conv-7")
    assert registry.get_or_create("conv-7") is session
    assert registry.get("missing") is None

    session.coordinator.handle_function_call("sendMessage", {"chatId": "chat-1", "message": "hi"})
    session.coordinator.confirm_action()
    await session.coordinator.wait_idle()

    assert execution.calls[0][2] == "conv-7"
    assert [item.kind for item in session.messages.drain()] == []
    await registry.aclose()


@pytest.mark.asyncio
async def test_remove_closes_session_once() -> None:
    registry = _registry(FakeExecution())
    registry.get_or_create("conv-1")

    assert await registry.remove("conv-1") is True
    assert await registry.remove("conv-1") is False
    assert registry.get("conv-1") is None


def test_buffered_delegate_keeps_latest_items() -> None:
    buffer = BufferedDelegate(max_items=2)
    buffer.did_receive_message("one")
    buffer.did_encounter_error("two")
    buffer.did_receive_message("three")

    drained = buffer.drain()
    assert [(item.kind, item.text) for item in drained] == [("error", "two"), ("message", "three")]
    assert buffer.drain() == []


@pytest.mark.asyncio
async def test_prune_idle_drops_only_stale_sessions() -> None:
    now = [0.0]
    registry = _registry(FakeExecution(), clock=lambda: now[0])
    registry.get_or_create("stale")
    now[0] = 50.0
    registry.get_or_create("fresh")

    now[0] = 70.0
    assert await registry.prune_idle() == 1

    assert registry.get("stale") is None
    assert registry.get("fresh") is not None
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_prune_idle_keeps_session_with_call_in_flight() -> None:
    now = [0.0]
    execution = FakeExecution()
    execution.gate = asyncio.Event()
    registry = _registry(execution, clock=lambda: now[0])
    session = registry.get_or_create("busy")
    session.coordinator.handle_function_call("sendMessage", {"chatId": "chat-1", "message": "hi"})
    session.coordinator.confirm_action()

    now[0] = 120.0
    assert await registry.prune_idle() == 0
    assert len(registry) == 1

    execution.gate.set()
    await session.coordinator.wait_idle()
    assert await registry.prune_idle() == 1
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_callback_delegate_routes_messages_and_errors() -> None:
    messages: list[str] = []
    errors: list[str] = []
    execution = FakeExecution(RuntimeError("backend down"))
    registry = CoordinatorRegistry(
        lambda delegate: ActionCoordinator(
            execution=execution,
            calendar=FakeCalendar(),
            contacts=FakeContacts(),
            session=FakeSession(),
            timezone=FakeTimezone(),
            delegate=CallbackDelegate(messages.append, errors.append),
            result_display_seconds=0.05,
        )
    )
    coordinator = registry.get_or_create("conv-cb").coordinator

    coordinator.handle_function_call("sendMessage", {"chatId": "chat-1", "message": "hi"})
    coordinator.confirm_action()
    await coordinator.wait_idle()
    coordinator.cancel_action()

    assert errors == ["backend down"]
    assert messages == ["Action cancelled."]
    await registry.aclose()
