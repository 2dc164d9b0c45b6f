from __future__ import annotations

from app.core.datetime_utils import resolve_zone


class StaticSessionProvider:
    def __init__(self, user_id: str = "") -> None:
        self._user_id = user_id

    def current_user_id(self) -> str:
        return self._user_id


class FixedTimezoneSource:
    def __init__(self, identifier: str) -> None:
        # Unknown zones fall back to UTC instead of failing every execute call.
        self._identifier = resolve_zone(identifier).key

    def current_identifier(self) -> str:
        return self._identifier
