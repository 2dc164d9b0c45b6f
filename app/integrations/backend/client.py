from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.datetime_utils import ensure_utc, parse_datetime_input
from app.domain.enums import EventType
from app.integrations.backend.base import ContactHandle, EventHandle
from app.integrations.backend.errors import (
    BackendError,
    InvalidNameError,
    InvalidRequestError,
    InvalidResponseError,
    InvalidTimeRangeError,
    NetworkError,
    NotAuthenticatedError,
    RateLimitExceededError,
    RequestTimeoutError,
    ServerError,
    ServiceUnavailableError,
    UnknownError,
)
from app.services.actions.models import FunctionExecutionResult

logger = structlog.get_logger(__name__)


def _jsonable(value: object) -> object:
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(item) for item in value]
    return value


def _error_for_status(response: httpx.Response) -> BackendError:
    detail: str | None = None
    try:
        body = response.json()
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            detail = body["error"]
    except ValueError:
        detail = response.text or None

    status = response.status_code
    if status == 401:
        return NotAuthenticatedError()
    if status in {400, 403, 422}:
        return InvalidRequestError()
    if status == 429:
        return RateLimitExceededError()
    if status == 503:
        return ServiceUnavailableError()
    return ServerError(detail or f"HTTP {status}")


class _HTTPBackendClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._transport = transport

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._send(path, payload)
        except httpx.TimeoutException as exc:
            logger.warning("backend.request_timed_out", path=path, error=str(exc))
            raise RequestTimeoutError() from exc
        except httpx.TransportError as exc:
            logger.warning("backend.transport_failed", path=path, error=str(exc))
            raise NetworkError() from exc
        except httpx.HTTPError as exc:
            logger.exception("backend.request_failed", path=path)
            raise UnknownError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            raise _error_for_status(response)
        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError() from exc
        if not isinstance(data, dict):
            raise InvalidResponseError()
        return data

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
    )
    async def _send(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.post(f"{self._base_url}{path}", headers=headers, json=_jsonable(payload))


class HTTPExecutionClient(_HTTPBackendClient):
    async def execute(
        self,
        function_name: str,
        parameters: dict[str, object],
        conversation_id: str | None,
    ) -> FunctionExecutionResult:
        payload: dict[str, Any] = {"functionName": function_name, "parameters": parameters}
        if conversation_id is not None:
            payload["conversationId"] = conversation_id

        logger.info("backend.execute_started", function_name=function_name, conversation_id=conversation_id)
        data = await self._post("/functions/execute", payload)
        result = FunctionExecutionResult.from_response(data)
        logger.info("backend.execute_finished", function_name=function_name, success=result.success)
        return result


class HTTPCalendarClient(_HTTPBackendClient):
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
        if start_time >= end_time:
            raise InvalidTimeRangeError()

        data = await self._post(
            "/calendar/events",
            {
                "trainerId": trainer_id,
                "eventType": event_type.value,
                "title": title,
                "clientId": client_id,
                "prospectId": prospect_id,
                "startTime": start_time,
                "endTime": end_time,
                "location": location,
                "notes": notes,
                "createdBy": created_by,
            },
        )
        event_id = data.get("id")
        if not isinstance(event_id, str):
            raise InvalidResponseError()
        return EventHandle(
            id=event_id,
            title=str(data.get("title") or title),
            start_time=parse_datetime_input(data.get("startTime")) or ensure_utc(start_time),
            end_time=parse_datetime_input(data.get("endTime")) or ensure_utc(end_time),
        )


class HTTPContactClient(_HTTPBackendClient):
    async def add_prospect(self, name: str) -> ContactHandle:
        display_name = name.strip()
        if not display_name:
            raise InvalidNameError()

        data = await self._post("/contacts/prospects", {"name": display_name})
        prospect_id = data.get("id")
        if not isinstance(prospect_id, str):
            raise InvalidResponseError()
        return ContactHandle(id=prospect_id, display_name=str(data.get("displayName") or display_name))
