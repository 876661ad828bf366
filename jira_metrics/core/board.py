"""Board columns and backlog statuses."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .errors import ConfigurationError
from .status import Status, StatusCollection


@dataclass(slots=True, frozen=True)
class BoardColumn:
    name: str
    status_ids: frozenset[int]


class Board:
    """Ordered visible columns plus the set of backlog statuses.

    Column order is the expected forward progression of work. Backlog
    statuses are never part of a visible column.
    """

    def __init__(
        self,
        *,
        id: int,
        name: str,
        columns: Sequence[BoardColumn],
        backlog_status_ids: Iterable[int] = (),
        possible_statuses: StatusCollection,
        project_id: int | None = None,
        board_type: str = "kanban",
    ):
        self.id = id
        self.name = name
        self.visible_columns: tuple[BoardColumn, ...] = tuple(columns)
        self.backlog_status_ids: frozenset[int] = frozenset(backlog_status_ids)
        self.possible_statuses = possible_statuses
        self.project_id = project_id
        self.board_type = board_type

        self._column_index: dict[int, int] = {}
        for index, column in enumerate(self.visible_columns):
            for status_id in column.status_ids:
                if status_id in self._column_index:
                    other = self.visible_columns[self._column_index[status_id]]
                    raise ConfigurationError(
                        f"Board {name!r} ({id}): status id {status_id} is in both column "
                        f"{other.name!r} and column {column.name!r}"
                    )
                self._column_index[status_id] = index

        overlap = self.backlog_status_ids & self._column_index.keys()
        if overlap:
            raise ConfigurationError(
                f"Board {name!r} ({id}): backlog status ids {sorted(overlap)} are also in visible columns"
            )

    def column_index_of(self, status_id: int | None) -> int | None:
        """Position of the visible column owning ``status_id``, or None."""
        if status_id is None:
            return None
        return self._column_index.get(status_id)

    def is_backlog(self, status_id: int | None) -> bool:
        return status_id in self.backlog_status_ids

    @property
    def visible_status_ids(self) -> frozenset[int]:
        return frozenset(self._column_index)

    @property
    def backlog_statuses(self) -> list[Status]:
        statuses = []
        for status_id in sorted(self.backlog_status_ids):
            status = self.possible_statuses.find_by_id(status_id)
            if status is not None:
                statuses.append(status)
        return statuses

    @property
    def kanban(self) -> bool:
        return self.board_type == "kanban"

    def __repr__(self) -> str:
        return f"Board(id={self.id!r}, name={self.name!r}, columns={[c.name for c in self.visible_columns]!r})"
