"""Status flow and duration analysis utilities.

This module walks an issue's status changes to find how long it spent in
each status.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

import pandas as pd

from jira_metrics.core.models import Issue
from jira_metrics.core.status import StatusCollection


@dataclass(slots=True, frozen=True)
class StatusPeriod:
    status: str | None
    status_id: int | None
    category: str | None
    start: datetime
    end: datetime

    @property
    def duration_days(self) -> float:
        return (self.end - self.start).total_seconds() / 86400.0


def status_periods(issue: Issue, statuses: StatusCollection, until: datetime) -> list[StatusPeriod]:
    """Split the issue's history into consecutive periods, one per status.

    The last period runs up to ``until`` and is dropped if ``until`` comes
    before the last change.

    Parameters
    ----------
    issue : Issue
        Issue whose status changes are walked in order.
    statuses : StatusCollection
        Used to look up the category of each status.
    until : datetime
        End of the final period, usually "now" or the stop time.

    Returns
    -------
    list[StatusPeriod]
        Periods in time order.
    """
    periods: list[StatusPeriod] = []
    previous = None
    for change in issue.status_changes():
        if previous is not None:
            periods.append(_period(previous, change.time, statuses, issue))
        previous = change
    if previous is not None and until >= previous.time:
        periods.append(_period(previous, until, statuses, issue))
    return periods


def _period(change, end: datetime, statuses: StatusCollection, issue: Issue) -> StatusPeriod:
    status = statuses.find_by_id(change.new_value_id)
    category = status.category_name if status else statuses.category_for(change.new_value, issue.type)
    return StatusPeriod(
        status=change.new_value,
        status_id=change.new_value_id,
        category=category,
        start=change.time,
        end=end,
    )


def extract_issue_status_durations(issue: Issue, statuses: StatusCollection, now: datetime) -> dict[str, float]:
    durations: defaultdict[str, float] = defaultdict(float)
    for period in status_periods(issue, statuses, now):
        durations[period.status or "Unknown"] += period.duration_days
    return dict(durations)


def build_status_duration_frame(
    issues: Iterable[Issue], statuses: StatusCollection, now: datetime
) -> pd.DataFrame:
    """Long-form DataFrame of time spent by each issue in each status.

    Returns
    -------
    pd.DataFrame
        Columns: key, status, category, duration_days. Empty DataFrame if no
        durations could be computed.
    """
    records: list[dict[str, object]] = []
    for issue in issues:
        for status_name, days in extract_issue_status_durations(issue, statuses, now).items():
            records.append(
                {
                    "key": issue.key,
                    "status": status_name,
                    "category": statuses.category_for(status_name, issue.type),
                    "duration_days": float(days),
                }
            )
    if not records:
        return pd.DataFrame()
    return pd.DataFrame(records)
