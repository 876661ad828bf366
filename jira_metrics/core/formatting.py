"""Small text helpers shared by report and chart data builders."""

from __future__ import annotations

from datetime import datetime


def label_days(days: int) -> str:
    return "1 day" if days == 1 else f"{days} days"


def label_issues(count: int) -> str:
    return "1 item" if count == 1 else f"{count} items"


def time_as_english(from_time: datetime, to_time: datetime) -> str:
    """Describe an elapsed time in the largest whole unit that fits.

    >>> from datetime import datetime
    >>> time_as_english(datetime(2022, 1, 1), datetime(2022, 1, 3, 5))
    '2 days'
    """
    delta = int((to_time - from_time).total_seconds())
    if delta < 60:
        return f"{delta} seconds"
    delta //= 60
    if delta < 60:
        return f"{delta} minutes"
    delta //= 60
    if delta < 24:
        return f"{delta} hours"
    delta //= 24
    return f"{delta} days"


def format_status(name: str | None, *, is_category: bool = False) -> str:
    if name is None:
        return "(unknown category)" if is_category else "(unknown status)"
    return f'"{name}"'
