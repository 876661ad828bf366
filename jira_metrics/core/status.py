"""Status value objects and the status/category lookup collection.

Status names are not unique in Jira: the same name can exist once per issue
type, and a project can override the category of a global status. The
collection resolves those cases once, at configuration time, so that every
later lookup is unambiguous.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .config import CATEGORY_DONE, CATEGORY_IN_PROGRESS, CATEGORY_TODO
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Status:
    name: str
    id: int | None = None
    category_name: str | None = None
    category_id: int | None = None
    type: str | None = None
    # None for global statuses, otherwise the owning project
    project_id: int | None = None

    @property
    def is_global(self) -> bool:
        return self.project_id is None

    @property
    def is_project_scoped(self) -> bool:
        return self.project_id is not None

    def __str__(self) -> str:
        parts = [f"name={self.name!r}", f"id={self.id!r}", f"category={self.category_name!r}"]
        if self.type:
            parts.append(f"type={self.type!r}")
        if self.project_id is not None:
            parts.append(f"project_id={self.project_id!r}")
        return f"Status({', '.join(parts)})"


def _same_type(a: str | None, b: str | None) -> bool:
    return a is None or b is None or a == b


class StatusCollection:
    """Ordered collection of statuses with merge rules and category views."""

    def __init__(self, statuses: Iterable[Status] = (), *, project_id: int | None = None):
        self._statuses: list[Status] = list(statuses)
        self.project_id = project_id

    # ------------------ Merging ------------------
    def add(self, status: Status) -> None:
        """Merge ``status`` into the collection.

        Raises
        ------
        ConfigurationError
            When a project scoped status conflicts with an existing one and the
            active project id is unknown, or when a global status would change
            the category of an existing one.
        """
        existing = self._find_existing(status)

        if status.is_project_scoped:
            # Doesn't change anything so it doesn't matter whose project it is
            if existing is not None and existing.category_name == status.category_name:
                return
            if self.project_id is None:
                raise ConfigurationError(
                    "Ambiguous project id: project specific status "
                    f"{status} could affect calculations"
                    + (f" (conflicts with {existing})" if existing is not None else "")
                    + ". Unable to detect the project id automatically; set project_id "
                    "in the configuration."
                )
            if status.project_id != self.project_id:
                logger.debug(
                    "Ignoring %s: belongs to project %s, not %s", status, status.project_id, self.project_id
                )
                return
            if existing is not None:
                self.delete(existing)
            self._statuses.append(status)
            return

        if existing is None:
            self._statuses.append(status)
            return
        # Registered twice
        if existing.category_name == status.category_name:
            return
        raise ConfigurationError(
            f"Redefining status category {status} with {existing}. "
            f"Category {status.category_name!r} conflicts with {existing.category_name!r}; "
            "was one set in the configuration?"
        )

    def append(self, status: Status) -> None:
        self._statuses.append(status)

    def delete(self, status: Status) -> None:
        self._statuses = [s for s in self._statuses if s is not status]

    def _find_existing(self, status: Status) -> Status | None:
        for candidate in self._statuses:
            if candidate.name == status.name and _same_type(candidate.type, status.type):
                return candidate
        return None

    # ------------------ Lookups ------------------
    def find_by_name(self, name: str | None) -> Status | None:
        for status in self._statuses:
            if status.name == name:
                return status
        return None

    def find_all_by_name(self, name: str | None) -> list[Status]:
        return [status for status in self._statuses if status.name == name]

    def expand_statuses(self, name: str | None) -> list[Status]:
        """Return every status sharing ``name`` (one per issue type, typically)."""
        return self.find_all_by_name(name)

    def find_by_id(self, status_id: int | None) -> Status | None:
        if status_id is None:
            return None
        for status in self._statuses:
            if status.id == status_id:
                return status
        return None

    def category_for(self, name: str | None, type: str | None = None) -> str | None:
        for status in self._statuses:
            if status.name == name and _same_type(status.type, type):
                return status.category_name
        return None

    # ------------------ Category Views ------------------
    def todo(self, including=None, excluding=None) -> list[str]:
        return self._category_names(CATEGORY_TODO, including, excluding)

    def in_progress(self, including=None, excluding=None) -> list[str]:
        return self._category_names(CATEGORY_IN_PROGRESS, including, excluding)

    def done(self, including=None, excluding=None) -> list[str]:
        return self._category_names(CATEGORY_DONE, including, excluding)

    def _category_names(self, category: str, including, excluding) -> list[str]:
        names: list[str] = []
        for status in self._statuses:
            if status.category_name == category and status.name not in names:
                names.append(status.name)
        for name in self._resolve_names(including):
            if name not in names:
                names.append(name)
        excluded = set(self._resolve_names(excluding))
        return [name for name in names if name not in excluded]

    def _resolve_names(self, values) -> list[str]:
        if values is None:
            return []
        if isinstance(values, (str, int)):
            values = [values]
        names: list[str] = []
        for value in values:
            if isinstance(value, int):
                status = self.find_by_id(value)
            else:
                status = self.find_by_name(value)
            if status is None:
                raise ConfigurationError(f"Status not found: {value!r}. Known statuses: {self.names()}")
            names.append(status.name)
        return names

    def names(self) -> list[str]:
        return [status.name for status in self._statuses]

    def __iter__(self) -> Iterator[Status]:
        return iter(list(self._statuses))

    def __len__(self) -> int:
        return len(self._statuses)

    def __contains__(self, status: object) -> bool:
        return status in self._statuses

    def __repr__(self) -> str:
        return f"StatusCollection({[str(s) for s in self._statuses]!r}, project_id={self.project_id!r})"


def apply_status_category_mappings(statuses: StatusCollection, mappings: Iterable[dict[str, str]]) -> None:
    """Add manual ``{"status": ..., "category": ...}`` mappings from settings.

    Uses the normal merge rules, so a mapping that contradicts a known status
    raises ``ConfigurationError``.
    """
    for mapping in mappings:
        name = mapping.get("status")
        category = mapping.get("category")
        if not name or not category:
            raise ConfigurationError(f"Status category mapping needs both status and category: {mapping!r}")
        statuses.add(Status(name=name, category_name=category))
