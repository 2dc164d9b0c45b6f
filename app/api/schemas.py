from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.core.datetime_utils import ensure_utc
from app.domain.enums import EventType
from app.services.actions.action_display import display_text, formatted_parameters
from app.services.actions.coordinator_registry import ConversationSession
from app.services.actions.models import PendingEventConfirmation, PendingProspectCreation


class FunctionCallRequest(BaseModel):
    name: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)


class SelectionChoice(BaseModel):
    option_id: str


class AlternativeTimeChoice(BaseModel):
    start_time: datetime


class EventConfirmationRequest(BaseModel):
    event_type: EventType
    title: str
    client_name: str
    start_time: datetime
    end_time: datetime
    client_id: str | None = None
    prospect_id: str | None = None
    location: str | None = None
    notes: str | None = None

    def to_pending(self) -> PendingEventConfirmation:
        return PendingEventConfirmation(
            event_type=self.event_type,
            title=self.title,
            client_name=self.client_name,
            start_time=ensure_utc(self.start_time),
            end_time=ensure_utc(self.end_time),
            client_id=self.client_id,
            prospect_id=self.prospect_id,
            location=self.location,
            notes=self.notes,
        )


class ProspectCreationRequest(BaseModel):
    event_type: EventType
    title: str
    client_name: str = Field(min_length=1)
    start_time: datetime
    end_time: datetime
    location: str | None = None
    notes: str | None = None

    def to_pending(self) -> PendingProspectCreation:
        return PendingProspectCreation(
            event_type=self.event_type,
            title=self.title,
            client_name=self.client_name,
            start_time=ensure_utc(self.start_time),
            end_time=ensure_utc(self.end_time),
            location=self.location,
            notes=self.notes,
        )


def _iso(value: datetime) -> str:
    return ensure_utc(value).isoformat()


def conversation_state(session: ConversationSession, timezone: str) -> dict[str, object]:
    coordinator = session.coordinator
    state: dict[str, object] = {
        "conversation_id": session.conversation_id,
        "is_executing_action": coordinator.is_executing_action,
        "pending_action": None,
        "last_action_result": None,
        "pending_selection": None,
        "pending_event_confirmation": None,
        "pending_conflict_resolution": None,
        "pending_prospect_creation": None,
        "messages": [{"kind": item.kind, "text": item.text} for item in session.messages.drain()],
    }

    if (action := coordinator.pending_action) is not None:
        state["pending_action"] = {
            "id": action.id,
            "function_name": action.function_name,
            "parameters": action.parameters,
            "created_at": _iso(action.created_at),
            "display_text": display_text(action, timezone),
            "formatted_parameters": [list(row) for row in formatted_parameters(action, timezone)],
        }
    if (result := coordinator.last_action_result) is not None:
        state["last_action_result"] = {
            "success": result.success,
            "action_id": result.action_id,
            "result": result.result,
        }
    if (selection := coordinator.pending_selection) is not None:
        state["pending_selection"] = {
            "id": selection.id,
            "selection_type": selection.selection_type.value,
            "prompt": selection.prompt,
            "options": [
                {"id": option.id, "title": option.title, "subtitle": option.subtitle, "icon": option.icon}
                for option in selection.options
            ],
        }
    if (event := coordinator.pending_event_confirmation) is not None:
        state["pending_event_confirmation"] = {
            "event_type": event.event_type.value,
            "title": event.title,
            "client_name": event.client_name,
            "start_time": _iso(event.start_time),
            "end_time": _iso(event.end_time),
        }
    if (conflict := coordinator.pending_conflict_resolution) is not None:
        state["pending_conflict_resolution"] = {
            "event_type": conflict.event_type.value,
            "title": conflict.title,
            "client_name": conflict.client_name,
            "duration_minutes": conflict.duration_minutes,
            "conflicting_event": {
                "id": conflict.conflicting_event.id,
                "title": conflict.conflicting_event.title,
                "start_time": _iso(conflict.conflicting_event.start_time),
                "end_time": _iso(conflict.conflicting_event.end_time),
            },
            "suggested_times": [_iso(item) for item in conflict.suggested_times],
        }
    if (prospect := coordinator.pending_prospect_creation) is not None:
        state["pending_prospect_creation"] = {
            "event_type": prospect.event_type.value,
            "title": prospect.title,
            "client_name": prospect.client_name,
            "start_time": _iso(prospect.start_time),
            "end_time": _iso(prospect.end_time),
        }
    return state
