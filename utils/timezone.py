"""UTC-everywhere time handling. Local time only at the print boundary."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def get_zone(tz_name: str) -> ZoneInfo:
    """
    Resolve an IANA zone name.

    Raises:
        ValueError: If the zone is unknown
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert an aware datetime to a named zone for display.

    Invoice numbers and printed dates are the only local-time values;
    stored timestamps stay in UTC.

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )
    return dt.astimezone(get_zone(tz_name))


def local_date(dt: datetime, tz_name: str) -> date:
    """Calendar date of an aware datetime as seen in tz_name."""
    return to_local(dt, tz_name).date()


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime read back from storage to aware UTC.

    Naive values are taken to already be UTC (psycopg2 returns naive
    datetimes for timestamp without time zone columns).
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
