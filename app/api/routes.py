from __future__ import annotations

import inspect

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException
from structlog.contextvars import bound_contextvars

from app.api.deps import existing_conversation, get_container, open_conversation
from app.api.schemas import (
    AlternativeTimeChoice,
    EventConfirmationRequest,
    FunctionCallRequest,
    ProspectCreationRequest,
    SelectionChoice,
    conversation_state,
)
from app.core.container import AppContainer
from app.services.actions.coordinator_registry import ConversationSession

logger = structlog.get_logger(__name__)
router = APIRouter()


async def _respond(
    container: AppContainer,
    session: ConversationSession,
    wait: bool,
) -> dict[str, object]:
    if wait:
        await session.coordinator.wait_idle()
    return conversation_state(session, container.timezone_source.current_identifier())


async def _already_handled(
    container: AppContainer,
    session: ConversationSession,
    command: str,
    key: str | None,
) -> bool:
    if not key:
        return False
    store = container.create_idempotency_store()
    handled = await store.is_claimed(session.conversation_id, command, key)
    if handled:
        logger.info("api.duplicate_command", conversation_id=session.conversation_id, command=command, key=key)
    return handled


async def _remember(
    container: AppContainer,
    session: ConversationSession,
    command: str,
    key: str | None,
    accepted: bool,
) -> None:
    # A command the coordinator ignored leaves the key free for a later retry.
    if not key or not accepted:
        return
    store = container.create_idempotency_store()
    await store.claim(session.conversation_id, command, key)


@router.get("/health/live")
async def health_live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(container: AppContainer = Depends(get_container)) -> dict[str, str]:
    try:
        ping_result = container.redis.ping()
        if inspect.isawaitable(ping_result):
            await ping_result
    except Exception as exc:
        logger.exception("health.ready_failed", error=str(exc))
        raise HTTPException(status_code=503, detail="dependencies unavailable") from exc
    return {"status": "ready"}


@router.get("/conversations/{conversation_id}/state")
async def get_state(
    wait: bool = False,
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    return await _respond(container, session, wait)


@router.delete("/conversations/{conversation_id}")
async def close_conversation(
    conversation_id: str,
    container: AppContainer = Depends(get_container),
) -> dict[str, str]:
    removed = await container.registry.remove(conversation_id)
    if not removed:
        raise HTTPException(status_code=404, detail="conversation not found")
    return {"status": "closed"}


@router.post("/conversations/{conversation_id}/function-calls")
async def handle_function_call(
    body: FunctionCallRequest,
    wait: bool = False,
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(open_conversation),
) -> dict[str, object]:
    with bound_contextvars(conversation_id=session.conversation_id):
        logger.info("api.function_call_received", function_name=body.name)
        session.coordinator.handle_function_call(body.name, body.parameters)
    return await _respond(container, session, wait)


@router.post("/conversations/{conversation_id}/action/confirm")
async def confirm_action(
    wait: bool = False,
    idempotency_key: str | None = Header(default=None),
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    if await _already_handled(container, session, "confirm_action", idempotency_key):
        return {"status": "duplicate"}
    with bound_contextvars(conversation_id=session.conversation_id):
        accepted = session.coordinator.confirm_action()
    await _remember(container, session, "confirm_action", idempotency_key, accepted)
    return await _respond(container, session, wait)


@router.post("/conversations/{conversation_id}/action/cancel")
async def cancel_action(
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    session.coordinator.cancel_action()
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/action/dismiss")
async def dismiss_action_result(
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    session.coordinator.dismiss_action_result()
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/selection")
async def handle_selection(
    body: SelectionChoice,
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    selection = session.coordinator.pending_selection
    if selection is None:
        raise HTTPException(status_code=409, detail="no selection pending")
    option = next((item for item in selection.options if item.id == body.option_id), None)
    if option is None:
        raise HTTPException(status_code=404, detail="option not found")
    session.coordinator.handle_selection(option)
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/selection/cancel")
async def cancel_selection(
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    session.coordinator.cancel_selection()
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/events")
async def stage_event_confirmation(
    body: EventConfirmationRequest,
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(open_conversation),
) -> dict[str, object]:
    if body.start_time >= body.end_time:
        raise HTTPException(status_code=422, detail="start_time must be before end_time")
    session.coordinator.stage_event_confirmation(body.to_pending())
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/events/confirm")
async def confirm_event_creation(
    wait: bool = False,
    idempotency_key: str | None = Header(default=None),
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    if await _already_handled(container, session, "confirm_event", idempotency_key):
        return {"status": "duplicate"}
    accepted = session.coordinator.confirm_event_creation()
    await _remember(container, session, "confirm_event", idempotency_key, accepted)
    return await _respond(container, session, wait)


@router.post("/conversations/{conversation_id}/events/cancel")
async def cancel_event_creation(
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    session.coordinator.cancel_event_creation()
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/conflict/alternative")
async def select_alternative_time(
    body: AlternativeTimeChoice,
    wait: bool = False,
    idempotency_key: str | None = Header(default=None),
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    if session.coordinator.pending_conflict_resolution is None:
        raise HTTPException(status_code=409, detail="no conflict pending")
    if await _already_handled(container, session, "select_alternative_time", idempotency_key):
        return {"status": "duplicate"}
    accepted = session.coordinator.select_alternative_time(body.start_time)
    await _remember(container, session, "select_alternative_time", idempotency_key, accepted)
    return await _respond(container, session, wait)


@router.post("/conversations/{conversation_id}/conflict/cancel")
async def cancel_conflict_resolution(
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    session.coordinator.cancel_conflict_resolution()
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/prospects")
async def stage_prospect_creation(
    body: ProspectCreationRequest,
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(open_conversation),
) -> dict[str, object]:
    if body.start_time >= body.end_time:
        raise HTTPException(status_code=422, detail="start_time must be before end_time")
    session.coordinator.stage_prospect_creation(body.to_pending())
    return await _respond(container, session, False)


@router.post("/conversations/{conversation_id}/prospects/confirm")
async def confirm_prospect_creation(
    wait: bool = False,
    idempotency_key: str | None = Header(default=None),
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    if await _already_handled(container, session, "confirm_prospect", idempotency_key):
        return {"status": "duplicate"}
    accepted = session.coordinator.confirm_prospect_creation()
    await _remember(container, session, "confirm_prospect", idempotency_key, accepted)
    return await _respond(container, session, wait)


@router.post("/conversations/{conversation_id}/prospects/cancel")
async def cancel_prospect_creation(
    container: AppContainer = Depends(get_container),
    session: ConversationSession = Depends(existing_conversation),
) -> dict[str, object]:
    session.coordinator.cancel_prospect_creation()
    return await _respond(container, session, False)
