"""Data quality scanning over resolved issue histories.

Charts are only as good as the data behind them. Each scan here looks for one
kind of anomaly that would make cycle time, aging or WIP numbers misleading,
and records it against the issue instead of failing.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from jira_metrics.analytics.metrics.activity import to_local_date
from jira_metrics.analytics.metrics.cycletime import CycleTimeConfig
from jira_metrics.core.config import (
    BACKWARDS_THROUGH_STATUS_CATEGORIES,
    BACKWARDS_THROUGH_STATUSES,
    COMPLETED_BUT_NOT_STARTED,
    CREATED_IN_WRONG_STATUS,
    DISCARDED_CHANGES,
    INCOMPLETE_SUBTASKS_WHEN_ISSUE_DONE,
    ISSUE_NOT_STARTED_BUT_SUBTASKS_HAVE,
    ISSUE_ON_MULTIPLE_BOARDS,
    PROBLEM_KEYS,
    STATUS_CHANGES_AFTER_DONE,
    STATUS_NOT_ON_BOARD,
    STOPPED_BEFORE_STARTED,
)
from jira_metrics.core.discard import DiscardedHistory
from jira_metrics.core.formatting import format_status, label_days, time_as_english
from jira_metrics.core.models import Issue
from jira_metrics.features.report.context import ReportContext

logger = logging.getLogger(__name__)

TESTABLE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"


@dataclass(slots=True)
class DataQualityEntry:
    started: datetime | None
    stopped: datetime | None
    issue: Issue
    problems: list[tuple[str, str]] = field(default_factory=list)

    def report(self, problem_key: str, detail: str) -> None:
        self.problems.append((problem_key, detail))


@dataclass(slots=True, frozen=True)
class DataQualityResult:
    entries: tuple[DataQualityEntry, ...]

    @property
    def entries_with_problems(self) -> list[DataQualityEntry]:
        return [entry for entry in self.entries if entry.problems]

    @property
    def percentage(self) -> float:
        """Percent of entries with at least one problem."""
        if not self.entries:
            return 0.0
        return round(len(self.entries_with_problems) * 100.0 / len(self.entries), 1)

    def problems_for(self, problem_key: str) -> list[tuple[Issue, str]]:
        return [
            (entry.issue, detail)
            for entry in self.entries
            for key, detail in entry.problems
            if key == problem_key
        ]

    @property
    def problems_by_key(self) -> dict[str, list[tuple[Issue, str]]]:
        grouped = {key: self.problems_for(key) for key in PROBLEM_KEYS}
        return {key: problems for key, problems in grouped.items() if problems}

    def problem_tuples(self) -> list[tuple[Issue, str, str]]:
        return [(entry.issue, key, detail) for entry in self.entries for key, detail in entry.problems]


class DataQualityReport:
    """Builds one entry per issue and runs every scan over it.

    ``original_issue_times`` maps issues whose early history was discarded to
    the ``DiscardedHistory`` describing what was removed.
    """

    def __init__(self, original_issue_times: Mapping[Issue, DiscardedHistory] | None = None):
        self.original_issue_times = dict(original_issue_times or {})
        self.entries: list[DataQualityEntry] = []
        self._cycletime: CycleTimeConfig | None = None
        self._tz = None

    def run(self, context: ReportContext) -> DataQualityResult:
        self.initialize_entries(context)

        for entry in self.entries:
            self.scan_for_completed_issues_without_a_start_time(entry)
            self.scan_for_status_change_after_done(entry)
            self.scan_for_backwards_movement(entry)
            self.scan_for_issues_not_created_in_a_backlog_status(entry)
            self.scan_for_stopped_before_started(entry)
            self.scan_for_issues_not_started_with_subtasks_that_have(entry)
            self.scan_for_incomplete_subtasks_when_issue_done(entry)
            self.scan_for_discarded_data(entry)

        self.scan_for_issues_on_multiple_boards(self.entries)

        result = DataQualityResult(entries=tuple(self.entries))
        logger.info(
            "Data quality: %d of %d issues have problems (%.1f%%)",
            len(result.entries_with_problems),
            len(result.entries),
            result.percentage,
        )
        return result

    def initialize_entries(self, context: ReportContext) -> None:
        self._cycletime = context.cycletime
        self._tz = context.timezone
        window_start, window_end = context.time_range

        entries = []
        for issue in context.issues:
            started, stopped = self._cycletime.started_stopped_times(issue)
            if stopped is not None and stopped < window_start:
                continue
            if started is not None and started > window_end:
                continue
            entries.append(DataQualityEntry(started=started, stopped=stopped, issue=issue))

        self.entries = sorted(entries, key=lambda entry: entry.issue.key_as_int)

    def entries_with_problems(self) -> list[DataQualityEntry]:
        return [entry for entry in self.entries if entry.problems]

    def testable_entries(self) -> list[tuple[str, str, Issue]]:
        """Entries in a form that's easy to assert against."""
        return [
            (
                entry.started.strftime(TESTABLE_TIME_FORMAT) if entry.started else "",
                entry.stopped.strftime(TESTABLE_TIME_FORMAT) if entry.stopped else "",
                entry.issue,
            )
            for entry in self.entries
        ]

    def _date(self, value: datetime):
        return to_local_date(value, self._tz)

    # ------------------ Scans ------------------
    def scan_for_completed_issues_without_a_start_time(self, entry: DataQualityEntry) -> None:
        if entry.stopped is None or entry.started is not None:
            return

        status_names = [format_status(change.new_value) for change in entry.issue.status_changes()]
        entry.report(COMPLETED_BUT_NOT_STARTED, f"Status changes: {' → '.join(status_names)}")

    def scan_for_status_change_after_done(self, entry: DataQualityEntry) -> None:
        if entry.stopped is None:
            return

        status_changes = entry.issue.status_changes()
        stop_change = self._cycletime.stop_rule(entry.issue)
        if stop_change is not None and stop_change.status:
            done_status = stop_change.new_value
            changes_after_done = [
                change for change in status_changes if change.time >= entry.stopped and change is not stop_change
            ]
        else:
            # Stopped by another field (e.g. resolution); a status change at the same instant is
            # part of the completing transition
            before = [change for change in status_changes if change.time <= entry.stopped]
            done_status = before[-1].new_value if before else None
            changes_after_done = [change for change in status_changes if change.time > entry.stopped]
        if not changes_after_done:
            return

        problem = f"Completed on {self._date(entry.stopped)} with status {format_status(done_status)}."
        for change in changes_after_done:
            problem += f" Changed to {format_status(change.new_value)} on {self._date(change.time)}."
        entry.report(STATUS_CHANGES_AFTER_DONE, problem)

    def scan_for_backwards_movement(self, entry: DataQualityEntry) -> None:
        issue = entry.issue
        board = issue.board
        if board is None:
            return
        statuses = board.possible_statuses
        backlog_names = {status.name for status in board.backlog_statuses}

        # Backwards through statuses is bad. Backwards through status categories is almost always worse.
        last_index = -1
        for change in issue.status_changes():
            index = board.column_index_of(change.new_value_id)
            if index is None:
                # Backlog statuses aren't supposed to be visible
                if board.is_backlog(change.new_value_id):
                    continue

                if statuses.find_by_id(change.new_value_id) is None:
                    detail = f"Status {format_status(change.new_value)} cannot be found at all. Was it deleted?"
                else:
                    detail = f"Status {format_status(change.new_value)} is not on the board"

                # Moved back to the backlog under another id; that is reported elsewhere
                if change.new_value not in backlog_names:
                    entry.report(STATUS_NOT_ON_BOARD, detail)
            elif change.old_value is None:
                pass
            elif index < last_index:
                new_category = statuses.category_for(change.new_value, issue.type)
                old_category = statuses.category_for(change.old_value, issue.type)
                moved = (
                    f"Moved from {format_status(change.old_value)} to {format_status(change.new_value)}"
                    f" on {self._date(change.time)}"
                )
                if new_category == old_category:
                    entry.report(BACKWARDS_THROUGH_STATUSES, moved)
                else:
                    entry.report(
                        BACKWARDS_THROUGH_STATUS_CATEGORIES,
                        f"{moved}, crossing from category {format_status(old_category, is_category=True)}"
                        f" to {format_status(new_category, is_category=True)}.",
                    )
            last_index = index if index is not None else -1

    def scan_for_issues_not_created_in_a_backlog_status(self, entry: DataQualityEntry) -> None:
        board = entry.issue.board
        if board is None or not board.backlog_status_ids:
            return

        creation_change = entry.issue.first_status_change()
        if creation_change is None or board.is_backlog(creation_change.new_value_id):
            return

        status_string = ", ".join(format_status(status.name) for status in board.backlog_statuses)
        entry.report(
            CREATED_IN_WRONG_STATUS,
            f"Created in {format_status(creation_change.new_value)}, "
            f"which is not one of the backlog statuses for this board: {status_string}",
        )

    def scan_for_stopped_before_started(self, entry: DataQualityEntry) -> None:
        if entry.stopped is None or entry.started is None or not entry.stopped < entry.started:
            return

        entry.report(
            STOPPED_BEFORE_STARTED,
            f"The stopped time '{entry.stopped.isoformat()}' is before the started time "
            f"'{entry.started.isoformat()}'",
        )

    def scan_for_issues_not_started_with_subtasks_that_have(self, entry: DataQualityEntry) -> None:
        """Subtasks are resolved with the report's cycle time config.

        A report has exactly one ``CycleTimeConfig`` (``ReportBuilder`` rejects a
        second), so it is also the subtask's own resolver.
        """
        if entry.started is not None:
            return

        started_subtasks = [
            subtask for subtask in entry.issue.subtasks if self._cycletime.started_time(subtask) is not None
        ]
        if not started_subtasks:
            return

        entry.report(
            ISSUE_NOT_STARTED_BUT_SUBTASKS_HAVE,
            "; ".join(subtask_label(subtask) for subtask in started_subtasks),
        )

    def scan_for_incomplete_subtasks_when_issue_done(self, entry: DataQualityEntry) -> None:
        """Same single cycle time config as the parent, see above."""
        if entry.stopped is None:
            return

        labels = []
        for subtask in entry.issue.subtasks:
            subtask_started, subtask_stopped = self._cycletime.started_stopped_times(subtask)
            if subtask_started is None and subtask_stopped is None:
                labels.append(f"{subtask_label(subtask)} (Not even started)")
            elif subtask_stopped is None:
                labels.append(f"{subtask_label(subtask)} (Still not done)")
            elif subtask_stopped > entry.stopped:
                labels.append(
                    f"{subtask_label(subtask)} (Closed {time_as_english(entry.stopped, subtask_stopped)} later)"
                )
        if not labels:
            return

        entry.report(INCOMPLETE_SUBTASKS_WHEN_ISSUE_DONE, "; ".join(labels))

    def scan_for_discarded_data(self, entry: DataQualityEntry) -> None:
        discarded = self.original_issue_times.get(entry.issue)
        if discarded is None:
            return

        old_start_date = self._date(discarded.started_time)
        cutoff_date = self._date(discarded.cutoff_time)
        days_ignored = (cutoff_date - old_start_date).days + 1
        # A single day doesn't affect any of the calculations
        if days_ignored == 1:
            return

        entry.report(
            DISCARDED_CHANGES,
            f"Started: {old_start_date}, Discarded: {cutoff_date}, Ignored: {label_days(days_ignored)}",
        )

    def scan_for_issues_on_multiple_boards(self, entries: list[DataQualityEntry]) -> None:
        grouped: defaultdict[str, list[DataQualityEntry]] = defaultdict(list)
        for entry in entries:
            grouped[entry.issue.key].append(entry)

        for entry_list in grouped.values():
            if len(entry_list) == 1:
                continue
            board_names = sorted(
                f'"{entry.issue.board.name}"' if entry.issue.board else "(no board)" for entry in entry_list
            )
            entry_list[0].report(ISSUE_ON_MULTIPLE_BOARDS, f"Found on boards: {', '.join(board_names)}")


def subtask_label(subtask: Issue) -> str:
    if not subtask.summary:
        return subtask.key
    summary = subtask.summary if len(subtask.summary) <= 50 else f"{subtask.summary[:50]}..."
    return f"{subtask.key} {summary!r}"
