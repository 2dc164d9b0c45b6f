from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from app.domain.enums import EventType
from app.services.actions.models import FunctionExecutionResult


@dataclass(slots=True)
class EventHandle:
    id: str
    title: str
    start_time: datetime
    end_time: datetime


@dataclass(slots=True)
class ContactHandle:
    id: str
    display_name: str


class ExecutionService(Protocol):
    async def execute(
        self,
        function_name: str,
        parameters: dict[str, object],
        conversation_id: str | None,
    ) -> FunctionExecutionResult:
        ...


class CalendarService(Protocol):
    async def create_event(
        self,
        *,
        trainer_id: str,
        event_type: EventType,
        title: str,
        start_time: datetime,
        end_time: datetime,
        client_id: str | None = None,
        prospect_id: str | None = None,
        location: str | None = None,
        notes: str | None = None,
        created_by: str = "trainer",
    ) -> EventHandle:
        ...


class ContactService(Protocol):
    async def add_prospect(self, name: str) -> ContactHandle:
        ...


class SessionProvider(Protocol):
    def current_user_id(self) -> str:
        ...


class TimezoneSource(Protocol):
    def current_identifier(self) -> str:
        ...
