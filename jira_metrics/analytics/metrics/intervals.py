"""Run-length segmentation of a date range by a per-day predicate.

Chart data builders use this to turn "blocked on this day?" style questions
into contiguous bars.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(slots=True, frozen=True)
class DateInterval:
    start: date
    end: date

    @property
    def days(self) -> int:
        """Inclusive length in days."""
        return (self.end - self.start).days + 1


def segment_days(start: date, end: date, predicate: Callable[[date], bool]) -> list[DateInterval]:
    """Return the maximal runs of days in ``[start, end]`` where ``predicate`` holds.

    Runs are disjoint and ascending. When the predicate never holds (or the
    range is empty) the result is an empty list; callers decide whether that
    means "no dataset".

    Examples
    --------
    >>> from datetime import date
    >>> segment_days(date(2022, 1, 1), date(2022, 1, 5), lambda d: d.day in (2, 3))
    [DateInterval(start=datetime.date(2022, 1, 2), end=datetime.date(2022, 1, 3))]
    """
    intervals: list[DateInterval] = []
    run_start: date | None = None
    run_end: date | None = None

    day = start
    while day <= end:
        if predicate(day):
            if run_start is None:
                run_start = day
            run_end = day
        elif run_start is not None:
            intervals.append(DateInterval(run_start, run_end))
            run_start = run_end = None
        day += timedelta(days=1)

    if run_start is not None:
        intervals.append(DateInterval(run_start, run_end))
    return intervals
