from __future__ import annotations

from typing import cast

from fastapi import Depends, HTTPException, Request

from app.core.container import AppContainer
from app.services.actions.coordinator_registry import ConversationSession


def get_container(request: Request) -> AppContainer:
    return cast(AppContainer, request.app.state.container)


async def open_conversation(
    conversation_id: str,
    container: AppContainer = Depends(get_container),
) -> ConversationSession:
    await container.registry.prune_idle()
    return container.registry.get_or_create(conversation_id)


def existing_conversation(
    conversation_id: str,
    container: AppContainer = Depends(get_container),
) -> ConversationSession:
    session = container.registry.get(conversation_id)
    if session is None:
        raise HTTPException(status_code=404, detail="conversation not found")
    return session
