from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as dateutil_parser


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def resolve_zone(timezone: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def parse_datetime_input(value: object, timezone: str = "UTC") -> datetime | None:
    # Naive timestamps are read as wall time in the caller's zone.
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = dateutil_parser.isoparse(value.strip())
        except (ValueError, TypeError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=resolve_zone(timezone))
    return ensure_utc(parsed)


def format_datetime(value: datetime, timezone: str = "UTC") -> str:
    local = ensure_utc(value).astimezone(resolve_zone(timezone))
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{local.strftime('%b')} {local.day}, {local.year} at {hour}:{local.minute:02d} {suffix}"


def format_long_datetime(value: datetime, timezone: str = "UTC") -> str:
    local = ensure_utc(value).astimezone(resolve_zone(timezone))
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{local.strftime('%B')} {local.day}, {local.year} at {hour}:{local.minute:02d} {suffix}"
