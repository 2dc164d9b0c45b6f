from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from app.services.actions.action_coordinator import ActionCoordinator
from tests.fakes import (
    FakeCalendar,
    FakeContacts,
    FakeExecution,
    FakeRedis,
    FakeSession,
    FakeTimezone,
    RecordingDelegate,
)


@pytest.fixture
def fake_execution() -> FakeExecution:
    return FakeExecution()


@pytest.fixture
def fake_calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture
def fake_contacts() -> FakeContacts:
    return FakeContacts()


@pytest.fixture
def delegate() -> RecordingDelegate:
    return RecordingDelegate()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def coordinator(
    fake_execution: FakeExecution,
    fake_calendar: FakeCalendar,
    fake_contacts: FakeContacts,
    delegate: RecordingDelegate,
) -> AsyncGenerator[ActionCoordinator, None]:
    instance = ActionCoordinator(
        execution=fake_execution,
        calendar=fake_calendar,
        contacts=fake_contacts,
        session=FakeSession(),
        timezone=FakeTimezone(),
        delegate=delegate,
        result_display_seconds=0.05,
    )
    yield instance
    await instance.aclose()
