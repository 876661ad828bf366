"""Per-day activity predicates: blocked, stalled and expedited work."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

import pandas as pd
import pytz

from jira_metrics.core.config import DEFAULT_STALLED_THRESHOLD_DAYS, TIMEZONE
from jira_metrics.core.models import ChangeItem, Issue

BLOCKED_FLAG_VALUES = frozenset({"Impediment", "Flagged"})


def normalize_timestamp(value, target_tz) -> pd.Timestamp | None:
    """Normalize a timestamp-like value into ``target_tz``.

    Naive values are assumed to be UTC. Returns None when the input cannot be
    parsed.
    """
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    try:
        if getattr(ts, "tzinfo", None) is None:
            ts = ts.tz_localize(pytz.UTC)
        return ts.tz_convert(target_tz)
    except (TypeError, ValueError):
        return None


def to_local_date(value, tz=None) -> date | None:
    ts = normalize_timestamp(value, tz or pytz.timezone(TIMEZONE))
    return ts.date() if ts is not None else None


def _changes_until(issue: Issue, day: date, tz) -> list[ChangeItem]:
    return [change for change in issue.changes if to_local_date(change.time, tz) <= day]


def blocked_on_date(issue: Issue, day: date, *, blocked_statuses: Iterable[str] = (), tz=None) -> bool:
    """True if, at the end of ``day``, the issue is flagged or sits in a blocked status."""
    blocked_statuses = set(blocked_statuses)
    flagged = False
    status = None
    for change in _changes_until(issue, day, tz):
        if change.flagged:
            flagged = change.new_value in BLOCKED_FLAG_VALUES
        elif change.status:
            status = change.new_value
    return flagged or (status is not None and status in blocked_statuses)


def stalled_on_date(
    issue: Issue, day: date, *, threshold_days: int = DEFAULT_STALLED_THRESHOLD_DAYS, tz=None
) -> bool:
    """True if nothing changed on the issue in the ``threshold_days`` up to ``day``."""
    changes = _changes_until(issue, day, tz)
    last_activity = to_local_date(changes[-1].time if changes else issue.created, tz)
    if last_activity is None or last_activity > day:
        return False
    return (day - last_activity).days >= threshold_days


def expedited_on_date(issue: Issue, day: date, priority_name: str, *, tz=None) -> bool:
    """True if the issue's priority at the end of ``day`` is ``priority_name``."""
    priority_changes = [change for change in issue.changes if change.priority]
    if not priority_changes:
        return issue.priority == priority_name
    current = priority_changes[0].old_value
    for change in priority_changes:
        if to_local_date(change.time, tz) > day:
            break
        current = change.new_value
    return current == priority_name
