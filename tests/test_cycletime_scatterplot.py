import pytest

from conftest import at
from jira_metrics.analytics.metrics.cycletime import completed_issues_in_range
from jira_metrics.core.config import COMPLETED_BUT_NOT_STARTED
from jira_metrics.features.cycletime_scatterplot.context import (
    DEFAULT_TYPE_COLOR,
    CycletimeScatterplotSection,
    color_for_type,
    cycletime_days,
    percent_line,
    trend_line_points,
)
from jira_metrics.features.report.context import ReportBuilder


@pytest.fixture
def issues(make_issue):
    return [
        make_issue("SP-1", [("2021-06-02", "In Progress"), ("2021-06-04", "Done")], summary="Login"),
        make_issue("SP-2", [("2021-06-03", "In Progress"), ("2021-06-08", "Done")], summary="Logout"),
        make_issue("SP-3", [("2021-06-02", "In Progress"), ("2021-06-03", "Done")], type="Bug", summary="Crash"),
        make_issue("SP-4", [("2021-06-05", "Done")], summary="Skipped ahead"),
        make_issue("SP-5", [("2021-06-05", "In Progress")], summary="Still going"),
    ]


def _context(issues, cycletime, statuses):
    return (
        ReportBuilder()
        .issues(issues)
        .cycletime(cycletime)
        .time_range(at("2021-06-01"), at("2021-06-10"))
        .statuses(statuses)
        .build()
    )


def test_completed_issues_in_range(issues, cycletime):
    time_range = (at("2021-06-01"), at("2021-06-10"))
    completed = completed_issues_in_range(issues, cycletime, time_range)
    assert [issue.key for issue in completed] == ["SP-1", "SP-2", "SP-3", "SP-4"]
    started_only = completed_issues_in_range(issues, cycletime, time_range, include_unstarted=False)
    assert [issue.key for issue in started_only] == ["SP-1", "SP-2", "SP-3"]
    early = completed_issues_in_range(issues, cycletime, (at("2021-06-01"), at("2021-06-04")))
    assert [issue.key for issue in early] == ["SP-1", "SP-3"]


def test_cycletime_days_counts_both_ends(issues, cycletime):
    assert cycletime_days(issues[0], cycletime) == 3
    assert cycletime_days(issues[3], cycletime) is None
    assert cycletime_days(issues[4], cycletime) is None


def test_percent_line():
    assert percent_line([]) is None
    assert percent_line([5]) == 5
    assert percent_line([6, 3]) == 6
    assert percent_line([1, 2, 3, 4, 5, 6, 7, 8, 9, 10], 50) == 6


def test_trend_line_points_clamps_below_zero():
    points = trend_line_points([(0, 10.5), (10, 0.5)], 0, 20)
    assert points[0] == (0, 10)
    assert points[1][0] == pytest.approx(10.5)
    assert points[1][1] == 0
    # A single day cannot define a line
    assert trend_line_points([(5, 1), (5, 3)], 0, 20) == []


def test_scatterplot_groups_by_type(issues, cycletime, statuses):
    data = CycletimeScatterplotSection().run(_context(issues, cycletime, statuses))

    dots = [d for d in data.datasets if d.get("type") != "line"]
    assert [d["label"] for d in dots] == ["Story (85% at 6 days)", "Bug (85% at 2 days)"]
    assert dots[0]["data"][0] == {
        "y": 3,
        "x": "2021-06-04T00:00:00+00:00",
        "title": ["SP-1 : Login (3 days)"],
    }
    assert [point["y"] for point in dots[0]["data"]] == [3, 6]
    assert dots[1]["backgroundColor"] == color_for_type("Bug")
    assert data.percentage_lines == [(6, color_for_type("Story")), (2, color_for_type("Bug")), (6, "gray")]
    assert data.highest_cycletime == 6


def test_scatterplot_trend_lines(issues, cycletime, statuses):
    data = CycletimeScatterplotSection().run(_context(issues, cycletime, statuses))
    story_trend, bug_trend = [d for d in data.datasets if d.get("type") == "line"]

    assert story_trend["label"] == "Story Trendline"
    assert story_trend["hidden"] is True
    assert story_trend["data"] == [
        {"x": "2021-06-01T00:00:00+00:00", "y": 0},
        {"x": "2021-06-10T00:00:00+00:00", "y": 7},
    ]
    # Still emitted so it can be toggled, just with nothing to draw
    assert bug_trend["data"] == []

    shown = CycletimeScatterplotSection(show_trend_lines=True).run(_context(issues, cycletime, statuses))
    assert all(not d["hidden"] for d in shown.datasets if d.get("type") == "line")


def test_scatterplot_data_quality_only_covers_completed_work(issues, cycletime, statuses):
    data = CycletimeScatterplotSection().run(_context(issues, cycletime, statuses))
    assert list(data.data_quality) == [COMPLETED_BUT_NOT_STARTED]
    assert [(issue.key, detail) for issue, detail in data.data_quality[COMPLETED_BUT_NOT_STARTED]] == [
        ("SP-4", 'Status changes: "Backlog" → "Done"')
    ]


def test_unknown_type_color():
    assert color_for_type("Sub-task") == DEFAULT_TYPE_COLOR
