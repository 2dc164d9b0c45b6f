from __future__ import annotations

from collections.abc import Mapping

import structlog

from app.core.datetime_utils import parse_datetime_input
from app.domain.enums import EventType, ParamKey
from app.services.actions.models import ConflictingEvent, PendingConflictResolution

logger = structlog.get_logger(__name__)


def _optional_str(payload: Mapping[str, object], key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else None


def parse_conflict_resolution(
    data: Mapping[str, object],
    original_parameters: Mapping[str, object],
) -> PendingConflictResolution | None:
    """Parse a CONFLICT_DETECTED payload.

    Expects ``conflictingEvent`` (id, title, startTime, endTime), a list of ISO
    ``suggestions`` and the ``originalRequest`` (clientName, integer duration in
    minutes, eventType, optional clientId/prospectId/location/notes). Any missing
    or unparseable required piece, or an empty suggestion list, yields ``None``.
    """
    conflicting_raw = data.get("conflictingEvent")
    suggestions_raw = data.get("suggestions")
    original_request = data.get("originalRequest")
    if (
        not isinstance(conflicting_raw, Mapping)
        or not isinstance(suggestions_raw, list)
        or not isinstance(original_request, Mapping)
    ):
        return None

    timezone_raw = original_parameters.get(ParamKey.TIMEZONE.value)
    timezone = timezone_raw if isinstance(timezone_raw, str) else "UTC"

    event_id = _optional_str(conflicting_raw, "id")
    event_title = _optional_str(conflicting_raw, "title")
    start = parse_datetime_input(conflicting_raw.get("startTime"), timezone)
    end = parse_datetime_input(conflicting_raw.get("endTime"), timezone)
    if event_id is None or event_title is None or start is None or end is None:
        return None

    suggested_times = [parse_datetime_input(item, timezone) for item in suggestions_raw]
    parsed_suggestions = [item for item in suggested_times if item is not None]
    if len(parsed_suggestions) != len(suggestions_raw):
        logger.warning("actions.conflict_suggestions_unparseable", suggestions=suggestions_raw)
        return None
    if not parsed_suggestions:
        logger.warning("actions.conflict_without_suggestions", conflicting_event_id=event_id)
        return None

    client_name = _optional_str(original_request, "clientName")
    duration = original_request.get("duration")
    event_type_raw = _optional_str(original_request, "eventType")
    if client_name is None or event_type_raw is None or isinstance(duration, bool) or not isinstance(duration, int):
        return None

    try:
        event_type = EventType(event_type_raw)
    except ValueError:
        event_type = EventType.ADHOC

    requested_start = parse_datetime_input(original_parameters.get(ParamKey.DATE_TIME.value), timezone)
    if requested_start is None:
        requested_start = start

    return PendingConflictResolution(
        conflicting_event=ConflictingEvent(id=event_id, title=event_title, start_time=start, end_time=end),
        suggested_times=parsed_suggestions,
        event_type=event_type,
        title=f"{event_type.value.capitalize()} with {client_name}",
        client_name=client_name,
        duration_minutes=duration,
        start_time=requested_start,
        client_id=_optional_str(original_request, "clientId"),
        prospect_id=_optional_str(original_request, "prospectId"),
        location=_optional_str(original_request, "location"),
        notes=_optional_str(original_request, "notes"),
    )
