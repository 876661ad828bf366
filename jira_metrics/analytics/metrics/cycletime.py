"""Cycle time rules: which change marks the start and the stop of an issue.

A rule is any callable ``Issue -> ChangeItem | None``. The builders below
cover the common cases; callers can pass their own lambdas.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from jira_metrics.core.errors import ConfigurationError
from jira_metrics.core.models import ChangeItem, Issue
from jira_metrics.core.status import StatusCollection

Rule = Callable[[Issue], ChangeItem | None]


@dataclass(slots=True, frozen=True)
class CycleTimeConfig:
    start_rule: Rule
    stop_rule: Rule
    label: str = "default"

    def __post_init__(self):
        if not callable(self.start_rule):
            raise ConfigurationError(f"Cycle time {self.label!r}: start_rule must be callable")
        if not callable(self.stop_rule):
            raise ConfigurationError(f"Cycle time {self.label!r}: stop_rule must be callable")
        if not isinstance(self.label, str) or not self.label.strip():
            raise ConfigurationError(f"Cycle time label must be a non-empty string, got {self.label!r}")

    def started_time(self, issue: Issue) -> datetime | None:
        change = self.start_rule(issue)
        return change.time if change is not None else None

    def stopped_time(self, issue: Issue) -> datetime | None:
        change = self.stop_rule(issue)
        return change.time if change is not None else None

    def started_stopped_times(self, issue: Issue) -> tuple[datetime | None, datetime | None]:
        return self.started_time(issue), self.stopped_time(issue)

    def in_progress(self, issue: Issue) -> bool:
        started, stopped = self.started_stopped_times(issue)
        return started is not None and stopped is None

    def done(self, issue: Issue) -> bool:
        return self.stopped_time(issue) is not None

    def cycletime(self, issue: Issue) -> timedelta | None:
        started, stopped = self.started_stopped_times(issue)
        if started is None or stopped is None:
            return None
        return stopped - started

    def age(self, issue: Issue, today: datetime) -> timedelta | None:
        started, stopped = self.started_stopped_times(issue)
        if started is None:
            return None
        return (stopped or today) - started


def percentile_cycletime(
    issues: Iterable[Issue], config: CycleTimeConfig, percentage: int = 85
) -> timedelta | None:
    """Cycle time that ``percentage`` percent of completed issues fall within."""
    times = sorted(t for t in (config.cycletime(issue) for issue in issues) if t is not None)
    if not times:
        return None
    return times[min(len(times) * percentage // 100, len(times) - 1)]


def completed_issues_in_range(
    issues: Iterable[Issue],
    config: CycleTimeConfig,
    time_range: tuple[datetime, datetime],
    *,
    include_unstarted: bool = True,
) -> list[Issue]:
    """Issues stopped within ``time_range`` (inclusive), in input order."""
    start, end = time_range
    completed = []
    for issue in issues:
        started, stopped = config.started_stopped_times(issue)
        if stopped is None or not start <= stopped <= end:
            continue
        if started is None and not include_unstarted:
            continue
        completed.append(issue)
    return completed


# ------------------ Rule Builders ------------------
def first_status_change_after_created(issue: Issue) -> ChangeItem | None:
    for change in issue.changes:
        if change.status and not change.artificial:
            return change
    return None


def first_time_in_status(*names_or_ids: str | int) -> Rule:
    wanted = set(names_or_ids)

    def rule(issue: Issue) -> ChangeItem | None:
        for change in issue.changes:
            if change.status and (change.new_value in wanted or change.new_value_id in wanted):
                return change
        return None

    return rule


def first_time_in_status_category(statuses: StatusCollection, category: str) -> Rule:
    def rule(issue: Issue) -> ChangeItem | None:
        for change in issue.changes:
            if change.status and _category_of(statuses, change, issue) == category:
                return change
        return None

    return rule


def still_in_status_category(statuses: StatusCollection, category: str) -> Rule:
    """Most recent entry into ``category``, only if the issue never left it since."""

    def rule(issue: Issue) -> ChangeItem | None:
        last_entry = None
        for change in issue.changes:
            if not change.status:
                continue
            if _category_of(statuses, change, issue) == category:
                if last_entry is None:
                    last_entry = change
            else:
                last_entry = None
        return last_entry

    return rule


def first_resolution(issue: Issue) -> ChangeItem | None:
    for change in issue.changes:
        if change.resolution and change.new_value:
            return change
    return None


def last_resolution(issue: Issue) -> ChangeItem | None:
    """Latest resolution, or None if the resolution was cleared afterwards."""
    last = None
    for change in issue.changes:
        if change.resolution:
            last = change if change.new_value else None
    return last


def _category_of(statuses: StatusCollection, change: ChangeItem, issue: Issue) -> str | None:
    status = statuses.find_by_id(change.new_value_id)
    if status is not None:
        return status.category_name
    return statuses.category_for(change.new_value, issue.type)
