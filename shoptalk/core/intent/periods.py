"""Resolve relative date phrases to absolute time windows.

Rules are checked in priority order and only the first match applies:
today, tomorrow, this week, next week. Weeks run Sunday to Saturday.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any

from .taxonomy import Period

_END_OF_DAY = time(23, 59, 59, 999000)


def _day_window(day: date, days: int = 1) -> Period:
    return Period(
        start=datetime.combine(day, time.min),
        end=datetime.combine(day + timedelta(days=days - 1), _END_OF_DAY),
    )


def _week_start(day: date) -> date:
    """Sunday on or before the given day."""
    # date.weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


class PeriodResolver:
    """Map "today", "tomorrow", "this week" and "next week" to windows."""

    def resolve_period(self, text: Any, now: datetime | None = None) -> Period | None:
        """Resolve the first relative date phrase found in text.

        Args:
            text: User input text
            now: Reference time (defaults to the local current time)

        Returns:
            Period covering whole days, or None when no phrase matched
        """
        if not isinstance(text, str):
            return None

        text_lower = text.lower()
        today = (now or datetime.now()).date()

        if "today" in text_lower:
            return _day_window(today)

        if "tomorrow" in text_lower:
            return _day_window(today + timedelta(days=1))

        if "this week" in text_lower:
            return _day_window(_week_start(today), days=7)

        if "next week" in text_lower:
            return _day_window(_week_start(today) + timedelta(days=7), days=7)

        return None
