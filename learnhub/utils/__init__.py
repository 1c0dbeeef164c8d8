"""Shared helpers."""

from learnhub.utils.timeutils import ensure_utc_aware, to_date, utc_now


__all__ = ["ensure_utc_aware", "to_date", "utc_now"]
