"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, get_zone, to_local, local_date, ensure_utc
