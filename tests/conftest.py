"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import jira_metrics` works. Shared fixtures build a small
kanban board and issues on it.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jira_metrics.analytics.metrics.cycletime import (  # noqa: E402
    CycleTimeConfig,
    first_time_in_status_category,
)
from jira_metrics.core.board import Board, BoardColumn  # noqa: E402
from jira_metrics.core.models import ChangeItem, Issue  # noqa: E402
from jira_metrics.core.status import Status, StatusCollection  # noqa: E402

STATUS_IDS = {
    "Backlog": 1,
    "Ready": 2,
    "In Progress": 3,
    "Review": 4,
    "Done": 5,
    "Doing": 6,
    "Open": 7,
    "In Review": 8,
    "Parked": 9,
}


def at(value: str) -> datetime:
    """Parse an ISO date or datetime, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


@pytest.fixture
def statuses():
    return StatusCollection(
        [
            Status("Backlog", id=1, category_name="To Do"),
            Status("Ready", id=2, category_name="To Do"),
            Status("In Progress", id=3, category_name="In Progress"),
            Status("Review", id=4, category_name="In Progress"),
            Status("Done", id=5, category_name="Done"),
        ]
    )


@pytest.fixture
def board(statuses):
    return Board(
        id=1,
        name="Team board",
        columns=[
            BoardColumn("Ready", frozenset({2})),
            BoardColumn("In Progress", frozenset({3})),
            BoardColumn("Review", frozenset({4})),
            BoardColumn("Done", frozenset({5})),
        ],
        backlog_status_ids=[1],
        possible_statuses=statuses,
    )


@pytest.fixture
def cycletime(statuses):
    return CycleTimeConfig(
        start_rule=first_time_in_status_category(statuses, "In Progress"),
        stop_rule=first_time_in_status_category(statuses, "Done"),
    )


@pytest.fixture
def make_issue(board):
    """Factory: ``make_issue("SP-1", [("2021-06-02", "In Progress"), ...])``.

    The issue is created in ``created_in`` at ``created``; each history entry
    is a status change from the previous status. ``extra`` holds further
    (non status) changes merged in time order.
    """

    def factory(
        key="SP-1",
        history=(),
        *,
        created="2021-06-01",
        created_in="Backlog",
        extra=(),
        board=board,
        type="Story",
        summary=None,
        priority=None,
    ):
        created_time = at(created)
        changes = [
            ChangeItem(
                field="status",
                time=created_time,
                new_value=created_in,
                new_value_id=STATUS_IDS.get(created_in),
                artificial=True,
            )
        ]
        previous = created_in
        for when, status_name in history:
            changes.append(
                ChangeItem(
                    field="status",
                    time=at(when),
                    new_value=status_name,
                    new_value_id=STATUS_IDS.get(status_name),
                    old_value=previous,
                    old_value_id=STATUS_IDS.get(previous),
                )
            )
            previous = status_name
        changes.extend(extra)
        changes.sort(key=lambda change: change.time)
        return Issue(
            key=key,
            type=type,
            created=created_time,
            changes=changes,
            summary=summary,
            priority=priority,
            board=board,
        )

    return factory
