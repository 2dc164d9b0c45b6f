from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from app.services.actions.action_coordinator import ActionCoordinator
from app.services.actions.delegate import ActionCoordinatorDelegate, BufferedDelegate

logger = structlog.get_logger(__name__)

CoordinatorFactory = Callable[[ActionCoordinatorDelegate], ActionCoordinator]


@dataclass(slots=True)
class ConversationSession:
    conversation_id: str
    coordinator: ActionCoordinator
    messages: BufferedDelegate
    last_seen: float = field(default=0.0)


class CoordinatorRegistry:
    """Holds one coordinator per conversation and drops the ones left idle."""

    def __init__(
        self,
        factory: CoordinatorFactory,
        idle_ttl_seconds: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock
        self._sessions: dict[str, ConversationSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, conversation_id: str) -> ConversationSession | None:
        session = self._sessions.get(conversation_id)
        if session is not None:
            session.last_seen = self._clock()
        return session

    def get_or_create(self, conversation_id: str) -> ConversationSession:
        session = self.get(conversation_id)
        if session is not None:
            return session

        messages = BufferedDelegate()
        coordinator = self._factory(messages)
        coordinator.set_conversation_id(conversation_id)
        session = ConversationSession(
            conversation_id=conversation_id,
            coordinator=coordinator,
            messages=messages,
            last_seen=self._clock(),
        )
        self._sessions[conversation_id] = session
        logger.info("actions.conversation_opened", conversation_id=conversation_id)
        return session

    async def prune_idle(self) -> int:
        # Sessions with a backend call in flight are kept until it settles.
        deadline = self._clock() - self._idle_ttl
        expired = [
            session.conversation_id
            for session in self._sessions.values()
            if session.last_seen <= deadline and not session.coordinator.is_executing_action
        ]
        for conversation_id in expired:
            await self.remove(conversation_id)
        if expired:
            logger.info("actions.conversations_pruned", count=len(expired))
        return len(expired)

    async def remove(self, conversation_id: str) -> bool:
        session = self._sessions.pop(conversation_id, None)
        if session is None:
            return False
        await session.coordinator.aclose()
        logger.info("actions.conversation_closed", conversation_id=conversation_id)
        return True

    async def aclose(self) -> None:
        for conversation_id in list(self._sessions):
            await self.remove(conversation_id)
