#!/usr/bin/env python3
"""
Datetime Utility Functions

Centralized datetime parsing and calendar-day bucketing used by the query
handlers.

Handles common patterns:
- App Center ISO timestamps with 'Z' suffix
- ISO-8601 request parameters
- Timezone-local calendar days ("local" means the host's zone)
- Day sequences spanning a time range
"""

from datetime import UTC, date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

LOCAL_TIMEZONE = "local"

# "browser" is what dashboards send when the viewer's zone should be used
LOCAL_TIMEZONE_ALIASES = frozenset({"", LOCAL_TIMEZONE, "browser"})


def resolve_timezone(name: str | None) -> tzinfo | None:
    """
    Resolve a timezone name to a tzinfo.

    Args:
        name: IANA zone name, "utc", or a local sentinel ("local", "browser", "")

    Returns:
        tzinfo for the zone, or None for the host's local zone

    Raises:
        ValueError: If the zone name is unknown

    Examples:
        >>> resolve_timezone("Europe/Lisbon")
        zoneinfo.ZoneInfo(key='Europe/Lisbon')

        >>> resolve_timezone("local") is None
        True
    """
    normalized = (name or "").strip()
    if normalized.lower() in LOCAL_TIMEZONE_ALIASES:
        return None
    if normalized.lower() == "utc":
        return UTC

    try:
        return ZoneInfo(normalized)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def to_zone(instant: datetime, timezone_name: str | None = LOCAL_TIMEZONE) -> datetime:
    """
    Express an instant in the given zone.

    Naive datetimes carry no offset and are taken as UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)

    zone = resolve_timezone(timezone_name)
    if zone is None:
        return instant.astimezone()
    return instant.astimezone(zone)


def local_day(instant: datetime, timezone_name: str | None = LOCAL_TIMEZONE) -> datetime:
    """
    Map an instant to the start of its calendar day in the given zone.

    Args:
        instant: Absolute timestamp (naive values are taken as UTC)
        timezone_name: IANA zone name, "utc", or "local"

    Returns:
        Timezone-aware datetime at midnight of the instant's local day

    Examples:
        >>> local_day(datetime(2026, 2, 10, 23, 30, tzinfo=UTC), "Asia/Tokyo")
        datetime.datetime(2026, 2, 11, 0, 0, tzinfo=zoneinfo.ZoneInfo(key='Asia/Tokyo'))
    """
    return start_of_day(to_zone(instant, timezone_name).date(), resolve_timezone(timezone_name))


def start_of_day(day: date, zone: tzinfo | None) -> datetime:
    """
    Midnight of a calendar date in ``zone``.

    The host zone (None) is looked up per date, so days on either side of a
    DST change carry their own UTC offset.
    """
    midnight = datetime.combine(day, time())
    if zone is None:
        return midnight.astimezone()
    return midnight.replace(tzinfo=zone)


def day_sequence(start: datetime, end: datetime, timezone_name: str | None = LOCAL_TIMEZONE) -> list[datetime]:
    """
    List every calendar day from start's day through end's day, inclusive.

    Entries are built from calendar dates, so each one is a local midnight
    across DST transitions and equals the local_day() key of that day.

    Examples:
        >>> len(day_sequence(datetime(2026, 2, 1, tzinfo=UTC), datetime(2026, 2, 4, tzinfo=UTC), "utc"))
        4
    """
    zone = resolve_timezone(timezone_name)
    current = to_zone(start, timezone_name).date()
    last = to_zone(end, timezone_name).date()

    days: list[datetime] = []
    while current <= last:
        days.append(start_of_day(current, zone))
        current += timedelta(days=1)
    return days


def parse_timestamp(value: str | int | float | datetime | None) -> datetime | None:
    """
    Parse an App Center timestamp to an aware datetime.

    Accepts ISO 8601 strings (with or without 'Z'), epoch milliseconds and
    datetime objects. Values without an offset are taken as UTC.

    Raises:
        ValueError: If the value cannot be parsed

    Examples:
        >>> parse_timestamp("2026-02-10T10:00:00.123Z")
        datetime.datetime(2026, 2, 10, 10, 0, 0, 123000, tzinfo=datetime.timezone.utc)

        >>> parse_timestamp(None)
        None
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError(f"Invalid timestamp format: {value}") from e
    else:
        raise ValueError(f"Timestamp must be a string, number or datetime, got {type(value)}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_iso(instant: datetime) -> str:
    """
    Format an instant as a UTC ISO-8601 string with millisecond precision.

    Example:
        >>> to_iso(datetime(2026, 2, 10, 10, 0, tzinfo=UTC))
        '2026-02-10T10:00:00.000Z'
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_epoch_ms(instant: datetime) -> int:
    """Milliseconds since the Unix epoch (naive values are taken as UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return int(instant.timestamp() * 1000)
