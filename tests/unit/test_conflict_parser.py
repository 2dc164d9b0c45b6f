from __future__ import annotations

from datetime import UTC, datetime, timedelta

from app.domain.enums import EventType
from app.services.actions.conflict_parser import parse_conflict_resolution


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "conflictingEvent": {
            "id": "evt-9",
            "title": "Training with Alex",
            "startTime": "2025-01-01T15:00:00.000Z",
            "endTime": "2025-01-01T16:00:00.000Z",
        },
        "suggestions": ["2025-01-01T17:00:00.000Z", "2025-01-01T18:00:00Z"],
        "originalRequest": {
            "clientName": "Sam",
            "duration": 45,
            "eventType": "call",
            "clientId": "c1",
            "location": "Gym",
        },
    }
    payload.update(overrides)
    return payload


def test_parses_full_payload() -> None:
    resolution = parse_conflict_resolution(
        _payload(),
        {"dateTime": "2025-01-01T10:00:00", "timezone": "America/New_York"},
    )

    assert resolution is not None
    assert resolution.conflicting_event.id == "evt-9"
    assert resolution.suggested_times == [
        datetime(2025, 1, 1, 17, 0, tzinfo=UTC),
        datetime(2025, 1, 1, 18, 0, tzinfo=UTC),
    ]
    assert resolution.event_type == EventType.CALL
    assert resolution.title == "Call with Sam"
    assert resolution.client_id == "c1"
    assert resolution.location == "Gym"
    assert resolution.start_time == datetime(2025, 1, 1, 15, 0, tzinfo=UTC)
    assert resolution.end_time == resolution.start_time + timedelta(minutes=45)


def test_unknown_event_type_falls_back_to_adhoc() -> None:
    payload = _payload(originalRequest={"clientName": "Sam", "duration": 30, "eventType": "yoga"})

    resolution = parse_conflict_resolution(payload, {})

    assert resolution is not None
    assert resolution.event_type == EventType.ADHOC
    assert resolution.title == "Adhoc with Sam"
    assert resolution.start_time == datetime(2025, 1, 1, 15, 0, tzinfo=UTC)


def test_unparseable_suggestion_rejects_payload() -> None:
    assert parse_conflict_resolution(_payload(suggestions=["2025-01-01T17:00:00Z", "soon"]), {}) is None


def test_missing_pieces_reject_payload() -> None:
    assert parse_conflict_resolution(_payload(conflictingEvent={"id": "evt-9"}), {}) is None
    assert parse_conflict_resolution(_payload(suggestions="tomorrow"), {}) is None
    assert (
        parse_conflict_resolution(
            _payload(originalRequest={"clientName": "Sam", "duration": "60", "eventType": "call"}),
            {},
        )
        is None
    )
    assert parse_conflict_resolution({}, {}) is None


def test_empty_suggestions_reject_payload() -> None:
    assert parse_conflict_resolution(_payload(suggestions=[]), {}) is None
