from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from datetime import datetime
from typing import Any

import structlog

from app.core.datetime_utils import ensure_utc, format_datetime
from app.domain.enums import FunctionName, ParamKey, ResultSentinel, SelectionType
from app.integrations.backend.base import (
    CalendarService,
    ContactService,
    ExecutionService,
    SessionProvider,
    TimezoneSource,
)
from app.services.actions.conflict_parser import parse_conflict_resolution
from app.services.actions.delegate import ActionCoordinatorDelegate
from app.services.actions.models import (
    AISelectionRequest,
    FunctionExecutionResult,
    PendingAction,
    PendingConflictResolution,
    PendingEventConfirmation,
    PendingProspectCreation,
    SelectionOption,
)
from app.services.actions.parameter_policy import should_validate

logger = structlog.get_logger(__name__)

CREATED_BY_AI = "ai"

ACTION_CANCELLED = "Action cancelled."
SELECTION_CANCELLED = "Okay, I've cancelled that request."
EVENT_CANCELLED = "Okay, I've cancelled that event."
CONFLICT_CANCELLED = "Okay, I've cancelled that scheduling request."
PROSPECT_CANCELLED = "Okay, I've cancelled that request."
CONFLICT_FOUND = "There's a conflict at that time. I found some alternative times for you."

_CLIENT_ID_FUNCTIONS = {FunctionName.SCHEDULE_CALL.value, FunctionName.SET_REMINDER.value}


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class ActionCoordinator:
    """Owns the confirmation state for AI function calls of one conversation.

    Commands are plain methods: they check preconditions, update state and, when
    the backend has to be called, schedule a task on the running loop. All state
    is mutated from that loop only. Outcomes reach the UI through ``delegate``.
    """

    def __init__(
        self,
        *,
        execution: ExecutionService,
        calendar: CalendarService,
        contacts: ContactService,
        session: SessionProvider,
        timezone: TimezoneSource,
        delegate: ActionCoordinatorDelegate | None = None,
        result_display_seconds: float = 5.0,
    ) -> None:
        self._execution = execution
        self._calendar = calendar
        self._contacts = contacts
        self._session = session
        self._timezone = timezone
        self._result_display_seconds = result_display_seconds
        self._conversation_id: str | None = None
        self._work: set[asyncio.Task[None]] = set()
        self._timers: set[asyncio.Task[None]] = set()
        self.delegate = delegate

        self.pending_action: PendingAction | None = None
        self.is_executing_action = False
        self.last_action_result: FunctionExecutionResult | None = None
        self.pending_selection: AISelectionRequest | None = None
        self.pending_event_confirmation: PendingEventConfirmation | None = None
        self.pending_conflict_resolution: PendingConflictResolution | None = None
        self.pending_prospect_creation: PendingProspectCreation | None = None

    @property
    def conversation_id(self) -> str | None:
        return self._conversation_id

    def set_conversation_id(self, conversation_id: str | None) -> None:
        self._conversation_id = conversation_id

    # Function calls

    def handle_function_call(self, name: str, parameters: dict[str, object]) -> None:
        if should_validate(name, parameters):
            logger.info("actions.validation_required", function_name=name)
            self._validate_and_resolve(name, dict(parameters))
        else:
            self._show_confirmation(name, dict(parameters))

    def confirm_action(self) -> bool:
        action = self.pending_action
        if action is None:
            logger.info("actions.confirm_without_pending")
            return False
        if self.is_executing_action:
            logger.info("actions.confirm_while_executing", function_name=action.function_name)
            return False

        self.is_executing_action = True
        self.last_action_result = None
        self._spawn(self._run_confirm(action))
        return True

    def cancel_action(self) -> None:
        self.pending_action = None
        self._notify(ACTION_CANCELLED)

    def dismiss_action_result(self) -> None:
        self.last_action_result = None

    # Selection

    def handle_selection(self, option: SelectionOption) -> bool:
        selection = self.pending_selection
        if selection is None or selection.context is None:
            logger.info("actions.selection_without_context")
            return False

        context = selection.context
        parameters = context.raw_parameters()

        if selection.selection_type == SelectionType.CONTACT:
            if context.original_function in _CLIENT_ID_FUNCTIONS:
                user_id = option.metadata_str("userId")
                if user_id is not None:
                    parameters[ParamKey.CLIENT_ID.value] = user_id
            if context.original_function == FunctionName.SEND_MESSAGE:
                chat_id = option.metadata_str("chatId")
                if chat_id is not None:
                    parameters[ParamKey.CHAT_ID.value] = chat_id
            parameters[ParamKey.CLIENT_NAME.value] = option.title
        elif selection.selection_type == SelectionType.TIME:
            parameters[ParamKey.DATE_TIME.value] = option.id

        self.pending_selection = None
        self._show_confirmation(context.original_function, parameters)
        return True

    def cancel_selection(self) -> None:
        self.pending_selection = None
        self._notify(SELECTION_CANCELLED)

    # Event confirmation

    def stage_event_confirmation(self, pending: PendingEventConfirmation) -> None:
        self.pending_event_confirmation = pending

    def confirm_event_creation(self) -> bool:
        pending = self.pending_event_confirmation
        if pending is None or not self._begin_execution("event"):
            return False
        self._spawn(self._run_event_creation(pending))
        return True

    def cancel_event_creation(self) -> None:
        self.pending_event_confirmation = None
        self._notify(EVENT_CANCELLED)

    # Conflict resolution

    def select_alternative_time(self, start_time: datetime) -> bool:
        pending = self.pending_conflict_resolution
        if pending is None or not self._begin_execution("conflict"):
            return False
        self._spawn(self._run_conflict_resolution(pending, ensure_utc(start_time)))
        return True

    def cancel_conflict_resolution(self) -> None:
        self.pending_conflict_resolution = None
        self._notify(CONFLICT_CANCELLED)

    # Prospect creation

    def stage_prospect_creation(self, pending: PendingProspectCreation) -> None:
        self.pending_prospect_creation = pending

    def confirm_prospect_creation(self) -> bool:
        pending = self.pending_prospect_creation
        if pending is None or not self._begin_execution("prospect"):
            return False
        self._spawn(self._run_prospect_creation(pending))
        return True

    def cancel_prospect_creation(self) -> None:
        self.pending_prospect_creation = None
        self._notify(PROSPECT_CANCELLED)

    # Task bookkeeping

    async def wait_idle(self) -> None:
        """Wait until no backend call is in flight. Dismiss timers are not awaited."""
        while self._work:
            await asyncio.gather(*list(self._work), return_exceptions=True)

    async def aclose(self) -> None:
        await self.wait_idle()
        timers = list(self._timers)
        for timer in timers:
            timer.cancel()
        await asyncio.gather(*timers, return_exceptions=True)

    # Internals

    def _show_confirmation(self, function_name: str, parameters: dict[str, object]) -> None:
        self.pending_action = PendingAction(function_name=function_name, parameters=parameters)
        logger.info("actions.confirmation_staged", function_name=function_name, action_id=self.pending_action.id)

    def _validate_and_resolve(self, function_name: str, parameters: dict[str, object]) -> None:
        self.is_executing_action = True
        self._spawn(self._run_validation(function_name, parameters))

    async def _run_confirm(self, action: PendingAction) -> None:
        parameters = self._with_timezone(action.parameters)
        logger.info("actions.confirm_started", function_name=action.function_name)
        try:
            result = await self._execution.execute(action.function_name, parameters, self._conversation_id)
        except Exception as exc:
            logger.exception("actions.execution_failed", function_name=action.function_name)
            self._handle_execution_error(exc)
            return

        self.is_executing_action = False
        if self._stage_selection(result) or self._stage_conflict(result, parameters):
            self._discard_pending_action(action)
            return

        self._store_result(result)
        self._discard_pending_action(action)
        if result.result:
            self._notify(result.result)

    async def _run_validation(self, function_name: str, parameters: dict[str, object]) -> None:
        parameters = self._with_timezone(parameters)
        try:
            result = await self._execution.execute(function_name, parameters, self._conversation_id)
        except Exception as exc:
            logger.exception("actions.validation_failed", function_name=function_name)
            self._handle_execution_error(exc)
            return

        self.is_executing_action = False
        if self._stage_selection(result) or self._stage_conflict(result, parameters):
            return

        self._store_result(result)
        if result.success and result.result:
            self._notify(result.result)
        elif not result.success:
            logger.info("actions.validation_rejected", function_name=function_name, reason=result.result)

    async def _run_event_creation(self, pending: PendingEventConfirmation) -> None:
        try:
            await self._create_event(
                event_type=pending.event_type,
                title=pending.title,
                client_id=pending.client_id,
                prospect_id=pending.prospect_id,
                start_time=pending.start_time,
                end_time=pending.end_time,
                location=pending.location,
                notes=pending.notes,
            )
        except Exception as exc:
            logger.exception("actions.event_creation_failed", client_name=pending.client_name)
            self.is_executing_action = False
            self._report_error(f"Failed to create event: {_describe(exc)}")
            return

        self.is_executing_action = False
        if self.pending_event_confirmation is pending:
            self.pending_event_confirmation = None
        self._notify(self._scheduled_message(pending.event_type.value, pending.client_name, pending.start_time))

    async def _run_conflict_resolution(self, pending: PendingConflictResolution, start_time: datetime) -> None:
        try:
            await self._create_event(
                event_type=pending.event_type,
                title=pending.title,
                client_id=pending.client_id,
                prospect_id=pending.prospect_id,
                start_time=start_time,
                end_time=pending.end_time_for(start_time),
                location=pending.location,
                notes=pending.notes,
            )
        except Exception as exc:
            logger.exception("actions.alternative_time_failed", client_name=pending.client_name)
            self.is_executing_action = False
            self._report_error(f"Failed to create event: {_describe(exc)}")
            return

        self.is_executing_action = False
        if self.pending_conflict_resolution is pending:
            self.pending_conflict_resolution = None
        self._notify(self._scheduled_message(pending.event_type.value, pending.client_name, start_time))

    async def _run_prospect_creation(self, pending: PendingProspectCreation) -> None:
        prospect_id: str | None = None
        try:
            prospect = await self._contacts.add_prospect(pending.client_name)
            prospect_id = prospect.id
            await self._create_event(
                event_type=pending.event_type,
                title=pending.title,
                client_id=None,
                prospect_id=prospect_id,
                start_time=pending.start_time,
                end_time=pending.end_time,
                location=pending.location,
                notes=pending.notes,
            )
        except Exception as exc:
            # A prospect created before the event call failed is kept.
            logger.exception(
                "actions.prospect_creation_failed",
                client_name=pending.client_name,
                prospect_id=prospect_id,
            )
            self.is_executing_action = False
            self._report_error(f"Failed to create prospect and event: {_describe(exc)}")
            return

        self.is_executing_action = False
        if self.pending_prospect_creation is pending:
            self.pending_prospect_creation = None
        when = format_datetime(pending.start_time, self._timezone.current_identifier())
        self._notify(
            f"Added {pending.client_name} as a prospect and scheduled {pending.event_type.value} for {when}"
        )

    async def _create_event(self, **fields: Any) -> None:
        trainer_id = self._session.current_user_id()
        await self._calendar.create_event(trainer_id=trainer_id, created_by=CREATED_BY_AI, **fields)

    def _begin_execution(self, flow: str) -> bool:
        if self.is_executing_action:
            logger.info("actions.confirm_while_executing", flow=flow)
            return False
        self.is_executing_action = True
        return True

    def _stage_selection(self, result: FunctionExecutionResult) -> bool:
        if result.data is None or not result.requires(ResultSentinel.SELECTION_REQUIRED):
            return False
        request = AISelectionRequest.from_response(result.data)
        if request is None:
            logger.warning("actions.selection_payload_malformed", action_id=result.action_id)
            return False

        self.pending_selection = request
        self._notify(request.prompt)
        return True

    def _stage_conflict(self, result: FunctionExecutionResult, parameters: dict[str, object]) -> bool:
        if result.data is None or not result.requires(ResultSentinel.CONFLICT_DETECTED):
            return False
        resolution = parse_conflict_resolution(result.data, parameters)
        if resolution is None:
            logger.warning("actions.conflict_payload_malformed", action_id=result.action_id)
            return False

        self.pending_conflict_resolution = resolution
        self._notify(CONFLICT_FOUND)
        return True

    def _handle_execution_error(self, exc: BaseException) -> None:
        self.is_executing_action = False
        description = _describe(exc)
        self._store_result(FunctionExecutionResult(success=False, action_id=None, result=description, data=None))
        self._report_error(description)

    def _store_result(self, result: FunctionExecutionResult) -> None:
        self.last_action_result = result
        self._schedule_auto_dismiss(result)

    def _schedule_auto_dismiss(self, result: FunctionExecutionResult) -> None:
        timer = asyncio.create_task(self._auto_dismiss(result))
        self._timers.add(timer)
        timer.add_done_callback(self._timers.discard)

    async def _auto_dismiss(self, result: FunctionExecutionResult) -> None:
        await asyncio.sleep(self._result_display_seconds)
        current = self.last_action_result
        if current is None:
            return
        same_action = result.action_id is not None and current.action_id == result.action_id
        if current is result or same_action:
            self.last_action_result = None

    def _discard_pending_action(self, action: PendingAction) -> None:
        # A newer action staged while this one was in flight stays.
        if self.pending_action is action:
            self.pending_action = None

    def _with_timezone(self, parameters: dict[str, object]) -> dict[str, object]:
        updated = dict(parameters)
        updated[ParamKey.TIMEZONE.value] = self._timezone.current_identifier()
        return updated

    def _scheduled_message(self, event_type: str, client_name: str, start_time: datetime) -> str:
        when = format_datetime(start_time, self._timezone.current_identifier())
        return f"Scheduled {event_type} with {client_name} for {when}"

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._work.add(task)
        task.add_done_callback(self._work.discard)

    def _notify(self, text: str) -> None:
        if self.delegate is not None:
            self.delegate.did_receive_message(text)

    def _report_error(self, message: str) -> None:
        if self.delegate is not None:
            self.delegate.did_encounter_error(message)
