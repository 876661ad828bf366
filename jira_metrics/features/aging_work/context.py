"""Pure helpers to build aging work bar and table data (no rendering)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import pandas as pd

from jira_metrics.analytics.metrics.activity import (
    blocked_on_date,
    expedited_on_date,
    stalled_on_date,
    to_local_date,
)
from jira_metrics.analytics.metrics.aging import aging_work_frame, select_aging_issues
from jira_metrics.analytics.metrics.cycletime import completed_issues_in_range, percentile_cycletime
from jira_metrics.analytics.metrics.intervals import segment_days
from jira_metrics.analytics.metrics.status_flow import status_periods
from jira_metrics.core.config import CATEGORY_DONE, CATEGORY_IN_PROGRESS, CATEGORY_NONE, CATEGORY_TODO
from jira_metrics.core.formatting import label_days
from jira_metrics.core.models import Issue
from jira_metrics.core.status import Status, StatusCollection
from jira_metrics.features.report.context import ReportContext

logger = logging.getLogger(__name__)

BLUES = ("#B0E0E6", "#ADD8E6", "#87CEFA", "#87CEEB", "#00BFFF", "#B0C4DE", "#1E90FF", "#6495ED")
YELLOWS = ("#FFEFD5", "#FFE4B5", "#FFDAB9", "#EEE8AA", "#F0E68C", "#BDB76B", "#FFFF00")
GREENS = (
    "#7CFC00",
    "#7FFF00",
    "#32CD32",
    "#00FF00",
    "#228B22",
    "#008000",
    "#006400",
    "#ADFF2F",
    "#9ACD32",
    "#00FF7F",
    "#00FA9A",
    "#90EE90",
)
UNKNOWN_COLOR = "gray"


def pick_status_colors(statuses: StatusCollection) -> dict[Status, str]:
    """Assign a color per status: blues for To Do, yellows for In Progress, greens for Done.

    Statuses sharing a name and category (one per issue type) share a color.
    """
    palettes = {CATEGORY_TODO: BLUES, CATEGORY_IN_PROGRESS: YELLOWS, CATEGORY_DONE: GREENS}
    next_index = {category: 0 for category in palettes}
    by_name: dict[tuple[str, str | None], str] = {}
    colors: dict[Status, str] = {}

    for status in statuses:
        shared = by_name.get((status.name, status.category_name))
        if shared is not None:
            colors[status] = shared
            continue
        palette = palettes.get(status.category_name)
        if palette is None:
            if status.category_name != CATEGORY_NONE:
                logger.warning("Unexpected status category %r for %s", status.category_name, status)
            color = UNKNOWN_COLOR
        else:
            color = palette[next_index[status.category_name] % len(palette)]
            next_index[status.category_name] += 1
        colors[status] = color
        by_name[(status.name, status.category_name)] = color
    return colors


@dataclass(slots=True)
class AgingWorkBarData:
    datasets: list[dict] = field(default_factory=list)
    issue_labels: list[str] = field(default_factory=list)
    percent_line_date: date | None = None


def data_set_by_block(
    issue: Issue,
    *,
    issue_label: str,
    title_label: str,
    stack: str,
    color: str,
    start_date: date,
    end_date: date,
    predicate: Callable[[date], bool],
) -> dict | None:
    """One stacked bar dataset covering the days where ``predicate`` holds.

    Returns None, not an empty dataset, when the predicate never holds.
    """
    intervals = segment_days(start_date, end_date, predicate)
    if not intervals:
        return None
    return {
        "type": "bar",
        "data": [
            {
                "x": [interval.start.isoformat(), interval.end.isoformat()],
                "y": issue_label,
                "title": f"{issue.type} : {title_label} {label_days(interval.days)}",
            }
            for interval in intervals
        ],
        "backgroundColor": color,
        "stacked": True,
        "stack": stack,
    }


class AgingWorkBarSection:
    """Bars per aging issue: time in each status plus blocked/stalled/expedited days."""

    def run(self, context: ReportContext) -> AgingWorkBarData:
        cycletime = context.cycletime
        settings = context.settings
        tz = context.timezone
        today = context.time_range[1]
        _, range_end = context.date_range
        colors = pick_status_colors(context.statuses)

        result = AgingWorkBarData()
        for issue in select_aging_issues(context.issues, cycletime, today):
            started = cycletime.started_time(issue)
            start_date = to_local_date(started, tz)
            age_days = (range_end - start_date).days + 1
            issue_label = f"[{label_days(age_days)}] {issue.key}: {issue.summary or ''}"[:61]
            result.issue_labels.append(issue_label)

            result.datasets.extend(self.status_data_sets(issue, issue_label, started, today, context, colors))

            def blocked(day, issue=issue):
                return blocked_on_date(issue, day, blocked_statuses=settings.blocked_statuses, tz=tz)

            def stalled(day, issue=issue):
                # Blocked wins over stalled
                return not blocked(day) and stalled_on_date(
                    issue, day, threshold_days=settings.stalled_threshold_days, tz=tz
                )

            def expedited(day, issue=issue):
                return expedited_on_date(issue, day, settings.expedited_priority, tz=tz)

            blocks = [
                ("Blocked", "blocked", "red", blocked),
                ("Stalled", "blocked", "orange", stalled),
                ("Expedited", "expedited", "red", expedited),
            ]
            for title_label, stack, color, predicate in blocks:
                data_set = data_set_by_block(
                    issue,
                    issue_label=issue_label,
                    title_label=title_label,
                    stack=stack,
                    color=color,
                    start_date=start_date,
                    end_date=range_end,
                    predicate=predicate,
                )
                if data_set is not None:
                    result.datasets.append(data_set)

        completed = completed_issues_in_range(context.issues, cycletime, context.time_range)
        percent_line = percentile_cycletime(completed, cycletime, percentage=settings.percentile)
        if percent_line is not None:
            result.percent_line_date = range_end - timedelta(days=percent_line.days)
        return result

    def status_data_sets(
        self,
        issue: Issue,
        issue_label: str,
        started: datetime,
        today: datetime,
        context: ReportContext,
        colors: dict[Status, str],
    ) -> list[dict]:
        range_start, _ = context.date_range
        data = []
        for period in status_periods(issue, context.statuses, today):
            if period.start < started or to_local_date(period.end, context.timezone) < range_start:
                continue
            status = context.statuses.find_by_id(period.status_id)
            data.append(
                {
                    "type": "bar",
                    "label": context.label_counter.next_label(issue.key),
                    "data": [
                        {
                            "x": [period.start.isoformat(), period.end.isoformat()],
                            "y": issue_label,
                            "title": f"{issue.type} : {period.status}",
                        }
                    ],
                    "backgroundColor": colors.get(status, UNKNOWN_COLOR),
                    "borderRadius": 0,
                    "stacked": True,
                    "stack": "status",
                }
            )
        return data


class AgingWorkTableSection:
    """Aging work as a table, plus expedited work that hasn't started yet."""

    def run(self, context: ReportContext) -> pd.DataFrame:
        settings = context.settings
        return aging_work_frame(
            context.issues,
            context.cycletime,
            context.time_range[1],
            blocked_statuses=settings.blocked_statuses,
            stalled_threshold_days=settings.stalled_threshold_days,
            expedited_priority=settings.expedited_priority,
            tz=context.timezone,
        )

