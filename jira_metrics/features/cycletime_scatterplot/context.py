"""Pure helpers to build cycle time scatterplot data (no rendering)."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime

import numpy as np
import pytz

from jira_metrics.analytics.metrics.activity import to_local_date
from jira_metrics.analytics.metrics.cycletime import CycleTimeConfig, completed_issues_in_range
from jira_metrics.core.config import (
    BACKWARDS_THROUGH_STATUS_CATEGORIES,
    BACKWARDS_THROUGH_STATUSES,
    COMPLETED_BUT_NOT_STARTED,
    CREATED_IN_WRONG_STATUS,
    STATUS_CHANGES_AFTER_DONE,
    STATUS_NOT_ON_BOARD,
    STOPPED_BEFORE_STARTED,
)
from jira_metrics.core.formatting import label_days
from jira_metrics.core.models import Issue
from jira_metrics.features.report.context import ReportContext
from jira_metrics.quality.report import DataQualityReport

logger = logging.getLogger(__name__)

TYPE_COLORS = {
    "Story": "#4BC14B",
    "Task": "blue",
    "Bug": "orange",
    "Defect": "orange",
    "Epic": "yellow",
    "Spike": "#9400D3",
}
DEFAULT_TYPE_COLOR = "black"
OVERALL_COLOR = "gray"

# Problems that make a dot on this chart misleading
SCATTERPLOT_PROBLEM_KEYS = (
    STATUS_CHANGES_AFTER_DONE,
    COMPLETED_BUT_NOT_STARTED,
    BACKWARDS_THROUGH_STATUSES,
    BACKWARDS_THROUGH_STATUS_CATEGORIES,
    CREATED_IN_WRONG_STATUS,
    STATUS_NOT_ON_BOARD,
    STOPPED_BEFORE_STARTED,
)


def color_for_type(issue_type: str) -> str:
    return TYPE_COLORS.get(issue_type, DEFAULT_TYPE_COLOR)


def cycletime_days(issue: Issue, config: CycleTimeConfig, tz=None) -> int | None:
    """Calendar days from start to stop, counting both ends."""
    started, stopped = config.started_stopped_times(issue)
    if started is None or stopped is None:
        return None
    return (to_local_date(stopped, tz) - to_local_date(started, tz)).days + 1


def percent_line(days: list[int], percentage: int = 85) -> int | None:
    if not days:
        return None
    ordered = sorted(days)
    return ordered[min(len(ordered) * percentage // 100, len(ordered) - 1)]


def trend_line_points(points: list[tuple[float, float]], x_start: float, x_end: float):
    """Least squares line through ``points``, evaluated at both ends of the range.

    Ends falling below zero are moved to where the line crosses zero. Returns
    an empty list when fewer than two distinct x values make a line impossible.
    """
    if len({x for x, _ in points}) < 2:
        return []
    xs = np.array([x for x, _ in points], dtype=float)
    ys = np.array([y for _, y in points], dtype=float)
    slope, intercept = np.polyfit(xs, ys, 1)

    result = []
    for x in (x_start, x_end):
        y = int(slope * x + intercept)
        if y < 0:
            x = -intercept / slope
            y = 0
        result.append((x, y))
    return result


@dataclass(slots=True)
class CycletimeScatterplotData:
    datasets: list[dict] = field(default_factory=list)
    percentage_lines: list[tuple[int, str]] = field(default_factory=list)
    highest_cycletime: int = 0
    data_quality: dict[str, list[tuple[Issue, str]]] = field(default_factory=dict)


class CycletimeScatterplotSection:
    """Completed work as dots: completion day against cycle time, grouped by issue type.

    Each group gets its own percentile line; the overall line is gray. Trend
    line datasets are always present so a renderer can toggle them, and are
    hidden unless ``show_trend_lines`` is set.
    """

    def __init__(self, show_trend_lines: bool = False):
        self.show_trend_lines = show_trend_lines

    def run(self, context: ReportContext) -> CycletimeScatterplotData:
        cycletime = context.cycletime
        percentage = context.settings.percentile
        completed = completed_issues_in_range(
            context.issues, cycletime, context.time_range, include_unstarted=False
        )

        groups: dict[str, list[Issue]] = {}
        for issue in completed:
            groups.setdefault(issue.type, []).append(issue)

        result = CycletimeScatterplotData()
        all_days = []
        for issue_type, issues in groups.items():
            color = color_for_type(issue_type)
            data = [self.data_for_issue(issue, context, result) for issue in issues]
            days = [point["y"] for point in data]
            all_days.extend(days)
            group_line = percent_line(days, percentage)

            result.datasets.append(
                {
                    "label": f"{issue_type} ({percentage}% at {label_days(group_line)})",
                    "data": data,
                    "fill": False,
                    "showLine": False,
                    "backgroundColor": color,
                }
            )
            result.datasets.append(self.trend_line_data_set(issue_type, issues, data, color, context))
            result.percentage_lines.append((group_line, color))

        overall = percent_line(all_days, percentage)
        if overall is not None:
            result.percentage_lines.append((overall, OVERALL_COLOR))
        logger.debug("Scatterplot: %d completed issues in %d groups", len(completed), len(groups))

        stopped = tuple(issue for issue in context.issues if cycletime.stopped_time(issue) is not None)
        quality = DataQualityReport().run(dataclasses.replace(context, issues=stopped))
        result.data_quality = {
            key: problems for key, problems in quality.problems_by_key.items() if key in SCATTERPLOT_PROBLEM_KEYS
        }
        return result

    def data_for_issue(self, issue: Issue, context: ReportContext, result: CycletimeScatterplotData) -> dict:
        days = cycletime_days(issue, context.cycletime, context.timezone)
        result.highest_cycletime = max(result.highest_cycletime, days)
        stopped = context.cycletime.stopped_time(issue)
        return {
            "y": days,
            "x": stopped.astimezone(context.timezone).isoformat(),
            "title": [f"{issue.key} : {issue.summary or ''} ({label_days(days)})"],
        }

    def trend_line_data_set(
        self, label: str, issues: list[Issue], data: list[dict], color: str, context: ReportContext
    ) -> dict:
        points = [
            (context.cycletime.stopped_time(issue).timestamp(), point["y"]) for issue, point in zip(issues, data)
        ]
        start, end = context.time_range
        data_points = [
            {"x": datetime.fromtimestamp(x, pytz.UTC).astimezone(context.timezone).isoformat(), "y": y}
            for x, y in trend_line_points(points, start.timestamp(), end.timestamp())
        ]
        return {
            "type": "line",
            "label": f"{label} Trendline",
            "data": data_points,
            "fill": False,
            "borderWidth": 1,
            "markerType": "none",
            "borderColor": color,
            "borderDash": [6, 3],
            "pointStyle": "dash",
            "hidden": not self.show_trend_lines,
        }
