from __future__ import annotations

import pytest

from app.domain.enums import SelectionType
from app.domain.parameters import wrap_parameters
from app.services.actions.action_coordinator import SELECTION_CANCELLED, ActionCoordinator
from app.services.actions.models import AISelectionRequest, SelectionContext, SelectionOption
from tests.fakes import FakeExecution, RecordingDelegate


def _selection(
    selection_type: SelectionType,
    function_name: str,
    parameters: dict[str, object],
) -> AISelectionRequest:
    return AISelectionRequest(
        selection_type=selection_type,
        prompt="Pick one",
        options=[],
        context=SelectionContext(original_function=function_name, original_parameters=wrap_parameters(parameters)),
    )


@pytest.mark.asyncio
async def test_contact_selection_sets_client_id_and_name(
    coordinator: ActionCoordinator,
    fake_execution: FakeExecution,
) -> None:
    coordinator.pending_selection = _selection(
        SelectionType.CONTACT,
        "scheduleCall",
        {"clientName": "Sam", "dateTime": "2025-01-01T10:00:00Z", "duration": 30},
    )
    option = SelectionOption(id="u1", title="Sam Smith", metadata=wrap_parameters({"userId": "u1"}))

    assert coordinator.handle_selection(option) is True

    action = coordinator.pending_action
    assert action is not None
    assert action.function_name == "scheduleCall"
    assert action.parameters == {
        "clientName": "Sam Smith",
        "clientId": "u1",
        "dateTime": "2025-01-01T10:00:00Z",
        "duration": 30,
    }
    assert coordinator.pending_selection is None
    assert fake_execution.calls == []


@pytest.mark.asyncio
async def test_contact_selection_for_send_message_sets_chat_id(coordinator: ActionCoordinator) -> None:
    coordinator.pending_selection = _selection(
        SelectionType.CONTACT,
        "sendMessage",
        {"clientName": "Sam", "messageText": "See you"},
    )
    option = SelectionOption(
        id="u2",
        title="Sam Jones",
        metadata=wrap_parameters({"userId": "u2", "chatId": "chat-7"}),
    )

    coordinator.handle_selection(option)

    assert coordinator.pending_action is not None
    assert coordinator.pending_action.parameters["chatId"] == "chat-7"
    assert coordinator.pending_action.parameters["clientName"] == "Sam Jones"
    assert "clientId" not in coordinator.pending_action.parameters


@pytest.mark.asyncio
async def test_contact_selection_ignores_non_string_user_id(coordinator: ActionCoordinator) -> None:
    coordinator.pending_selection = _selection(SelectionType.CONTACT, "setReminder", {"clientName": "Sam"})
    option = SelectionOption(id="u3", title="Sam Lee", metadata=wrap_parameters({"userId": 42}))

    coordinator.handle_selection(option)

    assert coordinator.pending_action is not None
    assert coordinator.pending_action.parameters == {"clientName": "Sam Lee"}


@pytest.mark.asyncio
async def test_time_selection_sets_date_time(coordinator: ActionCoordinator) -> None:
    coordinator.pending_selection = _selection(
        SelectionType.TIME,
        "scheduleCall",
        {"clientName": "Sam", "clientId": "c1"},
    )

    coordinator.handle_selection(SelectionOption(id="2025-01-01T10:00:00Z", title="10:00"))

    assert coordinator.pending_action is not None
    assert coordinator.pending_action.parameters["dateTime"] == "2025-01-01T10:00:00Z"
    assert coordinator.pending_action.parameters["clientName"] == "Sam"


@pytest.mark.asyncio
async def test_generic_selection_passes_parameters_through(coordinator: ActionCoordinator) -> None:
    coordinator.pending_selection = _selection(SelectionType.GENERIC, "searchMessages", {"query": "invoice"})

    coordinator.handle_selection(SelectionOption(id="x", title="Anything"))

    assert coordinator.pending_action is not None
    assert coordinator.pending_action.parameters == {"query": "invoice"}


@pytest.mark.asyncio
async def test_selection_without_context_is_noop(coordinator: ActionCoordinator) -> None:
    coordinator.pending_selection = AISelectionRequest(
        selection_type=SelectionType.CONTACT,
        prompt="Who?",
        options=[],
        context=None,
    )

    assert coordinator.handle_selection(SelectionOption(id="u1", title="Sam")) is False
    assert coordinator.pending_action is None
    assert coordinator.pending_selection is not None


@pytest.mark.asyncio
async def test_cancel_selection_reports_fixed_message(
    coordinator: ActionCoordinator,
    fake_execution: FakeExecution,
    delegate: RecordingDelegate,
) -> None:
    coordinator.pending_selection = _selection(SelectionType.CONTACT, "scheduleCall", {"clientName": "Sam"})

    coordinator.cancel_selection()

    assert coordinator.pending_selection is None
    assert delegate.messages == [SELECTION_CANCELLED]
    assert fake_execution.calls == []
