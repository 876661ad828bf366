"""Central configuration, constants, and report defaults."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

# =============================================================================
# Time Settings
# =============================================================================
# Dates (days on a chart, "today", discard cutoffs) are taken in this zone.
TIMEZONE = "UTC"

# =============================================================================
# Status Categories
# =============================================================================
CATEGORY_TODO = "To Do"
CATEGORY_IN_PROGRESS = "In Progress"
CATEGORY_DONE = "Done"
# Theoretically impossible in Jira but seen in production data
CATEGORY_NONE = "No Category"

# Display grouping only; never used to validate transitions
STATUS_CATEGORY_ORDER: Sequence[str] = (
    CATEGORY_TODO,
    CATEGORY_IN_PROGRESS,
    CATEGORY_DONE,
    CATEGORY_NONE,
)

# Jira statusCategory keys seen in raw status payloads
STATUS_CATEGORY_KEYS: dict[str, str] = {
    "new": CATEGORY_TODO,
    "indeterminate": CATEGORY_IN_PROGRESS,
    "done": CATEGORY_DONE,
    "undefined": CATEGORY_NONE,
}

# =============================================================================
# Change History Fields
# =============================================================================
STATUS_FIELD = "status"
RESOLUTION_FIELD = "resolution"
PRIORITY_FIELD = "priority"
FLAGGED_FIELD = "Flagged"
LINK_FIELD = "Link"

# =============================================================================
# Data Quality Problem Keys
# =============================================================================
DISCARDED_CHANGES = "discarded_changes"
COMPLETED_BUT_NOT_STARTED = "completed_but_not_started"
STATUS_CHANGES_AFTER_DONE = "status_changes_after_done"
BACKWARDS_THROUGH_STATUS_CATEGORIES = "backwards_through_status_categories"
BACKWARDS_THROUGH_STATUSES = "backwards_through_statuses"
STATUS_NOT_ON_BOARD = "status_not_on_board"
CREATED_IN_WRONG_STATUS = "created_in_wrong_status"
STOPPED_BEFORE_STARTED = "stopped_before_started"
ISSUE_NOT_STARTED_BUT_SUBTASKS_HAVE = "issue_not_started_but_subtasks_have"
INCOMPLETE_SUBTASKS_WHEN_ISSUE_DONE = "incomplete_subtasks_when_issue_done"
ISSUE_ON_MULTIPLE_BOARDS = "issue_on_multiple_boards"

# Order in which problem kinds are presented in a report
PROBLEM_KEYS: Sequence[str] = (
    DISCARDED_CHANGES,
    COMPLETED_BUT_NOT_STARTED,
    STATUS_CHANGES_AFTER_DONE,
    BACKWARDS_THROUGH_STATUS_CATEGORIES,
    BACKWARDS_THROUGH_STATUSES,
    STATUS_NOT_ON_BOARD,
    CREATED_IN_WRONG_STATUS,
    STOPPED_BEFORE_STARTED,
    ISSUE_NOT_STARTED_BUT_SUBTASKS_HAVE,
    INCOMPLETE_SUBTASKS_WHEN_ISSUE_DONE,
    ISSUE_ON_MULTIPLE_BOARDS,
)

# =============================================================================
# Report Default Values
# =============================================================================
DEFAULT_PERCENTILE: int = 85  # Percent line on aging and cycle time charts
DEFAULT_STALLED_THRESHOLD_DAYS: int = 5  # Days without any change before work is stalled
DEFAULT_EXPEDITED_PRIORITY: str = "Highest"
DEFAULT_SURVIVORSHIP_WARNING_PERCENT: int = 85  # Warn when less data than this is usable
DEFAULT_SETTINGS_FILENAME = "jira_metrics.yaml"


@dataclass(slots=True)
class ReportSettings:
    timezone: str = TIMEZONE
    project_id: int | None = None
    percentile: int = DEFAULT_PERCENTILE
    stalled_threshold_days: int = DEFAULT_STALLED_THRESHOLD_DAYS
    expedited_priority: str = DEFAULT_EXPEDITED_PRIORITY
    blocked_statuses: list[str] = field(default_factory=list)
    # Each mapping is {"status": name, "category": category_name}
    status_category_mappings: list[dict[str, str]] = field(default_factory=list)


SETTINGS = ReportSettings()
