from __future__ import annotations

from collections.abc import Mapping

from app.domain.enums import FunctionName, ParamKey

# Function -> id parameter that must accompany a free-text client name.
_RESOLVED_BY: dict[str, str] = {
    FunctionName.SCHEDULE_CALL.value: ParamKey.CLIENT_ID.value,
    FunctionName.SET_REMINDER.value: ParamKey.CLIENT_ID.value,
    FunctionName.SEND_MESSAGE.value: ParamKey.CHAT_ID.value,
}


def should_validate(function_name: str, parameters: Mapping[str, object]) -> bool:
    """Return True when a client name still has to be resolved by the backend."""
    id_key = _RESOLVED_BY.get(function_name)
    if id_key is None:
        return False
    has_name = isinstance(parameters.get(ParamKey.CLIENT_NAME.value), str)
    has_id = parameters.get(id_key) is not None
    return has_name and not has_id
