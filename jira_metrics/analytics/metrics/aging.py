"""Aging work: issues that have started but not finished."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

import pandas as pd
import pytz

from jira_metrics.analytics.metrics.activity import blocked_on_date, expedited_on_date, stalled_on_date
from jira_metrics.analytics.metrics.cycletime import CycleTimeConfig
from jira_metrics.core.config import DEFAULT_EXPEDITED_PRIORITY, DEFAULT_STALLED_THRESHOLD_DAYS, TIMEZONE
from jira_metrics.core.models import Issue

AGING_COLUMNS = ("key", "summary", "type", "status", "started", "age_days", "blocked", "stalled", "expedited")


def select_aging_issues(issues: Iterable[Issue], config: CycleTimeConfig, today: datetime) -> list[Issue]:
    """Started but not stopped, oldest first."""
    aging = [issue for issue in issues if config.in_progress(issue)]
    return sorted(aging, key=lambda issue: config.age(issue, today), reverse=True)


def expedited_but_not_started(
    issues: Iterable[Issue],
    config: CycleTimeConfig,
    priority_name: str = DEFAULT_EXPEDITED_PRIORITY,
) -> list[Issue]:
    waiting = [
        issue
        for issue in issues
        if config.started_time(issue) is None
        and config.stopped_time(issue) is None
        and issue.priority == priority_name
    ]
    return sorted(waiting, key=lambda issue: issue.created)


def current_status(issue: Issue) -> str | None:
    status_changes = issue.status_changes()
    return status_changes[-1].new_value if status_changes else None


def aging_work_frame(
    issues: Iterable[Issue],
    config: CycleTimeConfig,
    today: datetime,
    *,
    blocked_statuses: Iterable[str] = (),
    stalled_threshold_days: int = DEFAULT_STALLED_THRESHOLD_DAYS,
    expedited_priority: str = DEFAULT_EXPEDITED_PRIORITY,
    include_expedited_not_started: bool = True,
    tz=None,
) -> pd.DataFrame:
    """Build a table of aging work, oldest first.

    Expedited issues that have not started yet are appended at the bottom
    (ordered by creation) since they are about to become aging work.

    Parameters
    ----------
    issues : Iterable[Issue]
        Issues to consider.
    config : CycleTimeConfig
        Rules deciding started/stopped.
    today : datetime
        Timezone-aware reference instant for ages and day flags.

    Returns
    -------
    pd.DataFrame
        Columns from ``AGING_COLUMNS``; empty (with those columns) when there
        is no aging work.
    """
    tz = tz or pytz.timezone(TIMEZONE)
    issues = list(issues)
    rows = select_aging_issues(issues, config, today)
    if include_expedited_not_started:
        rows += expedited_but_not_started(issues, config, expedited_priority)

    day = today.astimezone(tz).date()
    blocked_statuses = list(blocked_statuses)
    records = []
    for issue in rows:
        age = config.age(issue, today)
        records.append(
            {
                "key": issue.key,
                "summary": issue.summary,
                "type": issue.type,
                "status": current_status(issue),
                "started": config.started_time(issue),
                "age_days": age.total_seconds() / 86400.0 if age is not None else None,
                "blocked": blocked_on_date(issue, day, blocked_statuses=blocked_statuses, tz=tz),
                "stalled": stalled_on_date(issue, day, threshold_days=stalled_threshold_days, tz=tz),
                "expedited": expedited_on_date(issue, day, expedited_priority, tz=tz),
            }
        )
    if not records:
        return pd.DataFrame(columns=list(AGING_COLUMNS))
    return pd.DataFrame(records, columns=list(AGING_COLUMNS))
