from __future__ import annotations

from dataclasses import dataclass, field

from redis.asyncio import Redis

from app.core.config import Settings
from app.integrations.backend.base import (
    CalendarService,
    ContactService,
    ExecutionService,
    SessionProvider,
    TimezoneSource,
)
from app.services.actions.action_coordinator import ActionCoordinator
from app.services.actions.coordinator_registry import CoordinatorRegistry
from app.services.actions.delegate import ActionCoordinatorDelegate
from app.services.stores.idempotency_store import CommandIdempotencyStore


@dataclass(slots=True)
class AppContainer:
    settings: Settings
    redis: Redis
    execution: ExecutionService
    calendar: CalendarService
    contacts: ContactService
    session_provider: SessionProvider
    timezone_source: TimezoneSource
    registry: CoordinatorRegistry = field(init=False)

    def __post_init__(self) -> None:
        self.registry = CoordinatorRegistry(
            self.create_coordinator,
            idle_ttl_seconds=self.settings.conversation_idle_seconds,
        )

    def create_coordinator(self, delegate: ActionCoordinatorDelegate | None = None) -> ActionCoordinator:
        return ActionCoordinator(
            execution=self.execution,
            calendar=self.calendar,
            contacts=self.contacts,
            session=self.session_provider,
            timezone=self.timezone_source,
            delegate=delegate,
            result_display_seconds=self.settings.result_display_seconds,
        )

    def create_idempotency_store(self) -> CommandIdempotencyStore:
        return CommandIdempotencyStore(self.redis, ttl_seconds=self.settings.idempotency_ttl_seconds)
