from __future__ import annotations

from app.core.datetime_utils import format_datetime, format_long_datetime, parse_datetime_input
from app.domain.enums import FunctionName
from app.services.actions.models import PendingAction

_MESSAGE_PREVIEW_LEN = 50


def _param(action: PendingAction, key: str) -> str | None:
    value = action.parameters.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int | float):
        return str(value)
    return None


def display_text(action: PendingAction, timezone: str = "UTC") -> str:
    name = action.function_name
    when = parse_datetime_input(_param(action, "dateTime"), timezone)

    if name == FunctionName.SCHEDULE_CALL:
        client = _param(action, "clientName") or "client"
        duration = _param(action, "duration") or "30"
        if when is not None:
            return f"Schedule call with {client} on {format_datetime(when, timezone)} ({duration} min)"
        return f"Schedule call with {client}"

    if name == FunctionName.SET_REMINDER:
        reminder = _param(action, "reminderText") or "reminder"
        client = _param(action, "clientName")
        if when is not None:
            formatted = format_datetime(when, timezone)
            if client:
                return f"Remind about {client}: {reminder} on {formatted}"
            return f"Reminder: {reminder} on {formatted}"
        return f"Set reminder: {reminder}"

    if name == FunctionName.SEND_MESSAGE:
        text = _param(action, "messageText") or ""
        ellipsis = "..." if len(text) > _MESSAGE_PREVIEW_LEN else ""
        return f'Send message: "{text[:_MESSAGE_PREVIEW_LEN]}{ellipsis}"'

    if name == FunctionName.SEARCH_MESSAGES:
        query = _param(action, "query") or "messages"
        limit = _param(action, "limit") or "10"
        return f'Search for: "{query}" (up to {limit} results)'

    return f"Unknown action: {name}"


def formatted_parameters(action: PendingAction, timezone: str = "UTC") -> list[tuple[str, str]]:
    """Label/value rows shown on the confirmation card."""
    rows: list[tuple[str, str]] = []
    name = action.function_name
    when = parse_datetime_input(_param(action, "dateTime"), timezone)

    if name == FunctionName.SCHEDULE_CALL:
        if client := _param(action, "clientName"):
            rows.append(("Client", client))
        if when is not None:
            rows.append(("Date & Time", format_long_datetime(when, timezone)))
        if duration := _param(action, "duration"):
            rows.append(("Duration", f"{duration} minutes"))
    elif name == FunctionName.SET_REMINDER:
        if client := _param(action, "clientName"):
            rows.append(("Client", client))
        if reminder := _param(action, "reminderText"):
            rows.append(("Reminder", reminder))
        if when is not None:
            rows.append(("Due Date", format_long_datetime(when, timezone)))
    elif name == FunctionName.SEND_MESSAGE:
        if text := _param(action, "messageText"):
            rows.append(("Message", text))
    elif name == FunctionName.SEARCH_MESSAGES:
        if query := _param(action, "query"):
            rows.append(("Query", query))
        if limit := _param(action, "limit"):
            rows.append(("Max Results", limit))
    return rows
