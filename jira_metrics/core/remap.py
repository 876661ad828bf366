"""Pure renaming of statuses and board columns.

Every function returns new objects; the inputs are left untouched.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping

from .board import Board, BoardColumn
from .models import Issue
from .status import StatusCollection


def rename_statuses(statuses: StatusCollection, name_map: Mapping[str, str]) -> StatusCollection:
    renamed = StatusCollection(project_id=statuses.project_id)
    for status in statuses:
        renamed.append(dataclasses.replace(status, name=name_map.get(status.name, status.name)))
    return renamed


def rename_issue_statuses(issue: Issue, name_map: Mapping[str, str]) -> Issue:
    changes = []
    for change in issue.changes:
        if change.status:
            change = dataclasses.replace(
                change,
                new_value=name_map.get(change.new_value, change.new_value),
                old_value=name_map.get(change.old_value, change.old_value),
            )
        changes.append(change)
    return dataclasses.replace(issue, changes=changes)


def rename_board_columns(
    board: Board, column_map: Mapping[str, str], statuses: StatusCollection | None = None
) -> Board:
    """Copy of ``board`` with renamed columns, optionally bound to renamed statuses."""
    columns = [
        BoardColumn(name=column_map.get(column.name, column.name), status_ids=column.status_ids)
        for column in board.visible_columns
    ]
    return Board(
        id=board.id,
        name=board.name,
        columns=columns,
        backlog_status_ids=board.backlog_status_ids,
        possible_statuses=statuses if statuses is not None else board.possible_statuses,
        project_id=board.project_id,
        board_type=board.board_type,
    )
