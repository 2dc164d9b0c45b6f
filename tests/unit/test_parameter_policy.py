from __future__ import annotations

import pytest

from app.services.actions.parameter_policy import should_validate


@pytest.mark.parametrize("function_name", ["scheduleCall", "setReminder"])
def test_client_name_without_client_id_needs_validation(function_name: str) -> None:
    assert should_validate(function_name, {"clientName": "Sam"}) is True
    assert should_validate(function_name, {"clientName": "Sam", "clientId": "c1"}) is False
    assert should_validate(function_name, {"clientName": "Sam", "clientId": None}) is True


def test_send_message_checks_chat_id() -> None:
    assert should_validate("sendMessage", {"clientName": "Sam", "messageText": "hi"}) is True
    assert should_validate("sendMessage", {"clientName": "Sam", "chatId": "chat-1"}) is False
    # clientId does not resolve a message recipient
    assert should_validate("sendMessage", {"clientName": "Sam", "clientId": "c1"}) is True


def test_missing_or_non_string_client_name_skips_validation() -> None:
    assert should_validate("scheduleCall", {}) is False
    assert should_validate("scheduleCall", {"clientName": 7}) is False
    assert should_validate("sendMessage", {"messageText": "hi"}) is False


@pytest.mark.parametrize("function_name", ["searchMessages", "unknown", ""])
def test_other_functions_never_validate(function_name: str) -> None:
    parameters = {"clientName": "Sam"}

    assert should_validate(function_name, parameters) is False
    assert should_validate(function_name, parameters) is should_validate(function_name, parameters)
