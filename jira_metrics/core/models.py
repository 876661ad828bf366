"""Domain data models for issues and their change histories."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from .config import FLAGGED_FIELD, LINK_FIELD, PRIORITY_FIELD, RESOLUTION_FIELD, STATUS_FIELD

if TYPE_CHECKING:
    from .board import Board

_KEY_NUMBER = re.compile(r".+-(\d+)$")


@dataclass(slots=True, frozen=True)
class ChangeItem:
    field: str
    time: datetime
    new_value: str | None = None
    new_value_id: int | None = None
    old_value: str | None = None
    old_value_id: int | None = None
    author: str | None = None
    # Synthesized entries, e.g. the status the issue was created in
    artificial: bool = False

    @property
    def status(self) -> bool:
        return self.field == STATUS_FIELD

    @property
    def resolution(self) -> bool:
        return self.field == RESOLUTION_FIELD

    @property
    def priority(self) -> bool:
        return self.field == PRIORITY_FIELD

    @property
    def flagged(self) -> bool:
        return self.field == FLAGGED_FIELD

    @property
    def link(self) -> bool:
        return self.field == LINK_FIELD


@dataclass(slots=True, frozen=True)
class IssueLink:
    direction: str  # "inward" or "outward"
    label: str
    other_issue_key: str


@dataclass(slots=True, eq=False)
class Issue:
    key: str
    type: str | None
    created: datetime
    changes: list[ChangeItem] = field(default_factory=list)
    summary: str | None = None
    priority: str | None = None
    assignee: str | None = None
    board: Board | None = None
    parent: Issue | None = None
    subtasks: list[Issue] = field(default_factory=list)
    links: list[IssueLink] = field(default_factory=list)

    def __post_init__(self):
        for previous, current in zip(self.changes, self.changes[1:]):
            if current.time < previous.time:
                raise ValueError(
                    f"Changes for {self.key} are not in time order: "
                    f"{current.field} at {current.time} follows {previous.field} at {previous.time}"
                )

    @property
    def key_as_int(self) -> int:
        match = _KEY_NUMBER.match(self.key or "")
        return int(match.group(1)) if match else 0

    def status_changes(self) -> list[ChangeItem]:
        return [change for change in self.changes if change.status]

    def first_status_change(self) -> ChangeItem | None:
        for change in self.changes:
            if change.status:
                return change
        return None

    def __repr__(self) -> str:
        return f"Issue({self.key!r})"
