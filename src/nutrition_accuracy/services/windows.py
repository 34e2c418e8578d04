"""Trailing time windows for correction and failure queries."""

from datetime import UTC, datetime, timedelta

MAX_WINDOW_DAYS = 36500


def window_start(days: int) -> datetime:
    """Return the start of a window covering the last ``days`` days.

    Windows longer than ``MAX_WINDOW_DAYS`` are clamped to it.
    """
    days = max(0, min(days, MAX_WINDOW_DAYS))
    return datetime.now(tz=UTC) - timedelta(days=days)
