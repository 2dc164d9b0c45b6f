from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from app.domain.enums import EventType, ResultSentinel, SelectionType
from app.domain.parameters import ParamValue, unwrap_parameters, wrap_parameters


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class PendingAction:
    function_name: str
    parameters: dict[str, object]
    created_at: datetime = field(default_factory=_now)
    id: str = field(default_factory=lambda: uuid4().hex)


@dataclass(slots=True)
class FunctionExecutionResult:
    success: bool
    action_id: str | None = None
    result: str | None = None
    data: dict[str, object] | None = None

    @classmethod
    def from_response(cls, payload: Mapping[str, object]) -> FunctionExecutionResult:
        success = payload.get("success")
        action_id = payload.get("actionId")
        result = payload.get("result")
        error = payload.get("error")
        data = payload.get("data")
        message = error if isinstance(error, str) else result
        return cls(
            success=success if isinstance(success, bool) else False,
            action_id=action_id if isinstance(action_id, str) else None,
            result=message if isinstance(message, str) else None,
            data=dict(data) if isinstance(data, Mapping) else None,
        )

    def requires(self, sentinel: ResultSentinel) -> bool:
        return not self.success and self.result == sentinel.value and self.data is not None


@dataclass(slots=True)
class SelectionOption:
    id: str
    title: str
    subtitle: str | None = None
    icon: str | None = None
    metadata: dict[str, ParamValue] | None = None

    def metadata_str(self, key: str) -> str | None:
        if not self.metadata or key not in self.metadata:
            return None
        return self.metadata[key].as_str()


@dataclass(slots=True)
class SelectionContext:
    original_function: str
    original_parameters: dict[str, ParamValue]

    def raw_parameters(self) -> dict[str, object]:
        return unwrap_parameters(self.original_parameters)


@dataclass(slots=True)
class AISelectionRequest:
    selection_type: SelectionType
    prompt: str
    options: list[SelectionOption]
    context: SelectionContext | None = None
    id: str = field(default_factory=lambda: uuid4().hex)

    @classmethod
    def from_response(cls, data: Mapping[str, object]) -> AISelectionRequest | None:
        """Build a selection request from a SELECTION_REQUIRED payload.

        Returns ``None`` when the type, prompt or options list is missing or
        malformed. Individual options without an id or title are skipped.
        """
        type_raw = data.get("selectionType")
        prompt = data.get("prompt")
        options_raw = data.get("options")
        if not isinstance(type_raw, str) or not isinstance(prompt, str) or not isinstance(options_raw, list):
            return None
        try:
            selection_type = SelectionType(type_raw)
        except ValueError:
            return None

        options: list[SelectionOption] = []
        for item in options_raw:
            if not isinstance(item, Mapping):
                continue
            option_id = item.get("id")
            title = item.get("title")
            if not isinstance(option_id, str) or not isinstance(title, str):
                continue
            subtitle = item.get("subtitle")
            icon = item.get("icon")
            metadata_raw = item.get("metadata")
            options.append(
                SelectionOption(
                    id=option_id,
                    title=title,
                    subtitle=subtitle if isinstance(subtitle, str) else None,
                    icon=icon if isinstance(icon, str) else None,
                    metadata=wrap_parameters(metadata_raw) if isinstance(metadata_raw, Mapping) else None,
                )
            )

        context: SelectionContext | None = None
        context_raw = data.get("context")
        if isinstance(context_raw, Mapping):
            function_name = context_raw.get("originalFunction")
            parameters = context_raw.get("originalParameters")
            if isinstance(function_name, str) and isinstance(parameters, Mapping):
                context = SelectionContext(
                    original_function=function_name,
                    original_parameters=wrap_parameters(parameters),
                )

        return cls(selection_type=selection_type, prompt=prompt, options=options, context=context)


@dataclass(slots=True)
class ConflictingEvent:
    id: str
    title: str
    start_time: datetime
    end_time: datetime


@dataclass(slots=True)
class PendingEventConfirmation:
    event_type: EventType
    title: str
    client_name: str
    start_time: datetime
    end_time: datetime
    client_id: str | None = None
    prospect_id: str | None = None
    location: str | None = None
    notes: str | None = None


@dataclass(slots=True)
class PendingConflictResolution:
    conflicting_event: ConflictingEvent
    suggested_times: list[datetime]
    event_type: EventType
    title: str
    client_name: str
    duration_minutes: int
    start_time: datetime
    client_id: str | None = None
    prospect_id: str | None = None
    location: str | None = None
    notes: str | None = None

    @property
    def end_time(self) -> datetime:
        return self.end_time_for(self.start_time)

    def end_time_for(self, start_time: datetime) -> datetime:
        return start_time + timedelta(minutes=self.duration_minutes)


@dataclass(slots=True)
class PendingProspectCreation:
    event_type: EventType
    title: str
    client_name: str
    start_time: datetime
    end_time: datetime
    location: str | None = None
    notes: str | None = None
