"""Datetime helpers for values written to and read from Cassandra."""

from datetime import UTC, date, datetime
from typing import Any


def utc_now() -> datetime:
    """Current time, UTC-aware, truncated to milliseconds.

    Cassandra TIMESTAMP columns keep milliseconds only; a value returned
    before the write must equal the same value read back.
    """
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def to_date(value: Any) -> date | None:
    """Normalize a DATE column value.

    The driver returns ``cassandra.util.Date`` for DATE columns; it exposes
    ``.date()`` like ``datetime`` does.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return value.date()
