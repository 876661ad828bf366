"""Report context: everything a report section needs, assembled up front.

Sections receive a fully populated ``ReportContext`` and implement
``run(context)``; nothing is injected into them after construction.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Protocol

import pytz

from jira_metrics.analytics.metrics.cycletime import CycleTimeConfig
from jira_metrics.core.config import ReportSettings
from jira_metrics.core.errors import ConfigurationError
from jira_metrics.core.models import Issue
from jira_metrics.core.status import StatusCollection, apply_status_category_mappings


@dataclass(slots=True)
class LabelCounter:
    """Hands out unique dataset labels for a single report run."""

    value: int = 0

    def next_label(self, prefix: str) -> str:
        self.value += 1
        return f"{prefix}-{self.value}"


@dataclass(slots=True, frozen=True)
class ReportContext:
    issues: tuple[Issue, ...]
    cycletime: CycleTimeConfig
    time_range: tuple[datetime, datetime]
    statuses: StatusCollection
    settings: ReportSettings
    timezone: Any
    label_counter: LabelCounter = field(default_factory=LabelCounter)

    @property
    def date_range(self) -> tuple[date, date]:
        start, end = self.time_range
        return start.astimezone(self.timezone).date(), end.astimezone(self.timezone).date()


class ReportSection(Protocol):
    def run(self, context: ReportContext) -> Any: ...


class ReportBuilder:
    """Collects report inputs, validating each as it is set."""

    def __init__(self):
        self._issues: list[Issue] | None = None
        self._cycletime: CycleTimeConfig | None = None
        self._time_range: tuple[datetime, datetime] | None = None
        self._statuses: StatusCollection | None = None
        self._settings = ReportSettings()

    def issues(self, issues: Iterable[Issue]) -> ReportBuilder:
        self._issues = list(issues)
        return self

    def cycletime(self, config: CycleTimeConfig) -> ReportBuilder:
        if self._cycletime is not None:
            raise ConfigurationError(
                f"Multiple cycle time configurations are not supported: {self._cycletime.label!r} "
                f"is already configured, cannot add {config.label!r}"
            )
        if not isinstance(config, CycleTimeConfig):
            raise ConfigurationError(f"Expected a CycleTimeConfig, got {type(config).__name__}")
        self._cycletime = config
        return self

    def time_range(self, start: datetime, end: datetime) -> ReportBuilder:
        if start.tzinfo is None or end.tzinfo is None:
            raise ConfigurationError(f"Time range must be timezone aware: {start!r}..{end!r}")
        if start > end:
            raise ConfigurationError(f"Time range starts after it ends: {start.isoformat()} > {end.isoformat()}")
        self._time_range = (start, end)
        return self

    def statuses(self, statuses: StatusCollection) -> ReportBuilder:
        self._statuses = statuses
        return self

    def settings(self, settings: ReportSettings) -> ReportBuilder:
        self._settings = settings
        return self

    def build(self) -> ReportContext:
        missing = [
            name
            for name, value in (
                ("issues", self._issues),
                ("cycletime", self._cycletime),
                ("time_range", self._time_range),
                ("statuses", self._statuses),
            )
            if value is None
        ]
        if missing:
            raise ConfigurationError(f"Report is missing required configuration: {', '.join(missing)}")

        # Caller's collection (often also a board's possible statuses) stays untouched
        project_id = self._statuses.project_id
        if project_id is None:
            project_id = self._settings.project_id
        statuses = StatusCollection(list(self._statuses), project_id=project_id)
        apply_status_category_mappings(statuses, self._settings.status_category_mappings)

        try:
            tz = pytz.timezone(self._settings.timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ConfigurationError(f"Unknown timezone in settings: {self._settings.timezone!r}") from exc

        return ReportContext(
            issues=tuple(self._issues),
            cycletime=self._cycletime,
            time_range=self._time_range,
            statuses=statuses,
            settings=self._settings,
            timezone=tz,
        )


def run_sections(context: ReportContext, sections: Iterable[ReportSection]) -> list[Any]:
    return [section.run(context) for section in sections]
