"""Mapping raw Jira JSON (statuses, board configurations, issues) into models."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

import pandas as pd

from .board import Board, BoardColumn
from .config import CATEGORY_NONE, STATUS_CATEGORY_KEYS, STATUS_FIELD
from .models import ChangeItem, Issue, IssueLink
from .status import Status, StatusCollection


def parse_dt(val) -> datetime | None:
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ------------------ Statuses ------------------
def map_status(raw: dict[str, Any], issue_type: str | None = None) -> Status:
    category = raw.get("statusCategory") or {}
    category_name = category.get("name") or STATUS_CATEGORY_KEYS.get(category.get("key") or "", CATEGORY_NONE)
    scope = raw.get("scope") or {}
    project_id = None
    if scope.get("type") == "PROJECT":
        project_id = _to_int((scope.get("project") or {}).get("id"))
    return Status(
        name=raw.get("name"),
        id=_to_int(raw.get("id")),
        category_name=category_name,
        category_id=_to_int(category.get("id")),
        type=issue_type,
        project_id=project_id,
    )


def load_statuses(raw_statuses: Iterable[dict[str, Any]], *, project_id: int | None = None) -> StatusCollection:
    """Build a collection from a flat status list.

    Global statuses are merged before project scoped ones so that overrides
    apply on top of the defaults.
    """
    statuses = [map_status(raw) for raw in raw_statuses]
    collection = StatusCollection(project_id=project_id)
    for status in statuses:
        if status.is_global:
            collection.add(status)
    for status in statuses:
        if status.is_project_scoped:
            collection.add(status)
    return collection


def load_project_statuses(raw_issue_types: Iterable[dict[str, Any]], *, project_id: int | None = None) -> StatusCollection:
    """Build a collection from the per issue type project statuses payload."""
    collection = StatusCollection(project_id=project_id)
    for issue_type in raw_issue_types:
        type_name = issue_type.get("name")
        for raw in issue_type.get("statuses") or []:
            collection.add(map_status(raw, issue_type=type_name))
    return collection


# ------------------ Boards ------------------
def map_board(raw: dict[str, Any], possible_statuses: StatusCollection) -> Board:
    """Map a board configuration.

    On kanban boards the first configured column is the backlog; it is not a
    visible column.
    """
    board_type = raw.get("type") or "kanban"
    columns = []
    for column in (raw.get("columnConfig") or {}).get("columns") or []:
        status_ids = frozenset(
            status_id
            for status_id in (_to_int(s.get("id")) for s in column.get("statuses") or [])
            if status_id is not None
        )
        columns.append(BoardColumn(name=column.get("name"), status_ids=status_ids))

    backlog_ids: frozenset[int] = frozenset()
    if board_type == "kanban" and columns:
        backlog_ids = columns[0].status_ids
        columns = columns[1:]

    location = raw.get("location") or {}
    return Board(
        id=_to_int(raw.get("id")),
        name=raw.get("name"),
        columns=columns,
        backlog_status_ids=backlog_ids,
        possible_statuses=possible_statuses,
        project_id=_to_int(location.get("projectId") or location.get("id")),
        board_type=board_type,
    )


# ------------------ Issues ------------------
def _map_changes(raw: dict[str, Any]) -> list[ChangeItem]:
    changes = []
    for history in (raw.get("changelog") or {}).get("histories") or []:
        time = parse_dt(history.get("created"))
        if time is None:
            continue
        author = (history.get("author") or {}).get("displayName")
        for item in history.get("items") or []:
            changes.append(
                ChangeItem(
                    field=item.get("field"),
                    time=time,
                    new_value=item.get("toString"),
                    new_value_id=_to_int(item.get("to")),
                    old_value=item.get("fromString"),
                    old_value_id=_to_int(item.get("from")),
                    author=author,
                )
            )
    # Jira returns histories newest first
    changes.sort(key=lambda change: change.time)
    return changes


def _creation_change(fields: dict[str, Any], created: datetime, changes: list[ChangeItem]) -> ChangeItem:
    first_status = next((change for change in changes if change.field == STATUS_FIELD), None)
    if first_status is not None:
        name, status_id = first_status.old_value, first_status.old_value_id
    else:
        status = fields.get("status") or {}
        name, status_id = status.get("name"), _to_int(status.get("id"))
    author = (fields.get("creator") or {}).get("displayName")
    return ChangeItem(
        field=STATUS_FIELD,
        time=created,
        new_value=name,
        new_value_id=status_id,
        author=author,
        artificial=True,
    )


def _map_links(fields: dict[str, Any]) -> list[IssueLink]:
    links = []
    for link in fields.get("issuelinks") or []:
        link_type = link.get("type") or {}
        if link.get("inwardIssue"):
            links.append(IssueLink("inward", link_type.get("inward"), link["inwardIssue"].get("key")))
        if link.get("outwardIssue"):
            links.append(IssueLink("outward", link_type.get("outward"), link["outwardIssue"].get("key")))
    return links


def map_issue(raw: dict[str, Any], board: Board | None = None) -> Issue:
    fields = raw.get("fields", {})
    created = parse_dt(fields.get("created"))
    if created is None:
        raise ValueError(f"Issue {raw.get('key')} has no usable created time: {fields.get('created')!r}")
    changes = _map_changes(raw)
    # Jira occasionally records a change a few milliseconds before creation
    creation_time = min([created] + [change.time for change in changes[:1]])
    changes.insert(0, _creation_change(fields, creation_time, changes))

    return Issue(
        key=raw.get("key"),
        type=(fields.get("issuetype") or {}).get("name"),
        created=created,
        changes=changes,
        summary=fields.get("summary"),
        priority=(fields.get("priority") or {}).get("name") if fields.get("priority") else None,
        assignee=(fields.get("assignee") or {}).get("displayName") if fields.get("assignee") else None,
        board=board,
        links=_map_links(fields),
    )


def map_issues(raw_issues: Iterable[dict[str, Any]], board: Board | None = None) -> list[Issue]:
    """Map issues and attach parents and subtasks found in the same set."""
    raw_issues = list(raw_issues)
    issues = [map_issue(raw, board) for raw in raw_issues]
    by_key = {issue.key: issue for issue in issues}
    for raw, issue in zip(raw_issues, issues):
        fields = raw.get("fields", {})
        for subtask_raw in fields.get("subtasks") or []:
            subtask = by_key.get(subtask_raw.get("key"))
            if subtask is not None:
                issue.subtasks.append(subtask)
        parent = by_key.get((fields.get("parent") or {}).get("key"))
        if parent is not None:
            issue.parent = parent
    return issues
