from datetime import date, datetime

import pytest

from conftest import at
from jira_metrics.analytics.metrics.cycletime import CycleTimeConfig, first_resolution
from jira_metrics.core.config import ReportSettings
from jira_metrics.core.errors import ConfigurationError
from jira_metrics.features.report.context import LabelCounter, ReportBuilder, run_sections


def _builder(make_issue, cycletime, statuses):
    return (
        ReportBuilder()
        .issues([make_issue()])
        .cycletime(cycletime)
        .time_range(at("2021-06-01"), at("2021-06-30T23:00:00"))
        .statuses(statuses)
    )


def test_build_populates_context(make_issue, cycletime, statuses):
    context = _builder(make_issue, cycletime, statuses).settings(ReportSettings(timezone="Australia/Sydney")).build()
    assert len(context.issues) == 1
    assert context.cycletime is cycletime
    assert context.timezone.zone == "Australia/Sydney"
    assert context.date_range == (date(2021, 6, 1), date(2021, 7, 1))
    assert isinstance(context.label_counter, LabelCounter)


def test_build_reports_everything_missing(cycletime):
    with pytest.raises(ConfigurationError, match="issues, time_range, statuses"):
        ReportBuilder().cycletime(cycletime).build()


def test_second_cycletime_is_rejected(cycletime):
    other = CycleTimeConfig(start_rule=first_resolution, stop_rule=first_resolution, label="other")
    builder = ReportBuilder().cycletime(cycletime)
    with pytest.raises(ConfigurationError, match="'default' is already configured, cannot add 'other'"):
        builder.cycletime(other)


def test_cycletime_must_be_a_config():
    with pytest.raises(ConfigurationError, match="Expected a CycleTimeConfig"):
        ReportBuilder().cycletime({"start_rule": first_resolution})


def test_time_range_is_validated():
    with pytest.raises(ConfigurationError, match="timezone aware"):
        ReportBuilder().time_range(datetime(2021, 6, 1), at("2021-06-02"))
    with pytest.raises(ConfigurationError, match="starts after it ends"):
        ReportBuilder().time_range(at("2021-06-02"), at("2021-06-01"))


def test_unknown_timezone(make_issue, cycletime, statuses):
    with pytest.raises(ConfigurationError, match="Mars/Olympus"):
        _builder(make_issue, cycletime, statuses).settings(ReportSettings(timezone="Mars/Olympus")).build()


def test_settings_apply_project_id_and_category_mappings(make_issue, cycletime, statuses):
    settings = ReportSettings(project_id=10, status_category_mappings=[{"status": "Parked", "category": "To Do"}])
    context = _builder(make_issue, cycletime, statuses).settings(settings).build()
    assert context.statuses.project_id == 10
    assert "Parked" in context.statuses.todo()


def test_build_leaves_callers_statuses_untouched(make_issue, cycletime, statuses):
    settings = ReportSettings(project_id=10, status_category_mappings=[{"status": "Parked", "category": "To Do"}])
    before = (len(statuses), statuses.project_id)
    context = _builder(make_issue, cycletime, statuses).settings(settings).build()
    assert (len(statuses), statuses.project_id) == before == (5, None)
    assert "Parked" not in statuses.todo()
    assert context.statuses is not statuses
    assert len(context.statuses) == 6


def test_run_sections_in_order(make_issue, cycletime, statuses):
    class Counting:
        def __init__(self, name):
            self.name = name

        def run(self, context):
            return context.label_counter.next_label(self.name)

    context = _builder(make_issue, cycletime, statuses).build()
    assert run_sections(context, [Counting("a"), Counting("b")]) == ["a-1", "b-2"]
