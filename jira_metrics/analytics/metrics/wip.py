"""Work in progress per day."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

import pandas as pd
import pytz

from jira_metrics.analytics.metrics.activity import to_local_date
from jira_metrics.analytics.metrics.cycletime import CycleTimeConfig
from jira_metrics.core.config import TIMEZONE
from jira_metrics.core.models import Issue


def wip_by_day(issues: Iterable[Issue], config: CycleTimeConfig, start: date, end: date, *, tz=None) -> pd.DataFrame:
    """Count issues started on or before each day and not stopped before it.

    An issue stopped on a given day still counts as WIP on that day.
    """
    tz = tz or pytz.timezone(TIMEZONE)
    spans = []
    for issue in issues:
        started, stopped = config.started_stopped_times(issue)
        if started is None:
            continue
        spans.append((to_local_date(started, tz), to_local_date(stopped, tz) if stopped else None))

    days = pd.date_range(start, end, freq="D").date
    counts = [
        sum(1 for first, last in spans if first <= day and (last is None or last >= day)) for day in days
    ]
    return pd.DataFrame({"date": list(days), "wip": counts})
