"""Plain-text explanations of each data quality problem kind."""

from __future__ import annotations

from jira_metrics.core.config import (
    BACKWARDS_THROUGH_STATUS_CATEGORIES,
    BACKWARDS_THROUGH_STATUSES,
    COMPLETED_BUT_NOT_STARTED,
    CREATED_IN_WRONG_STATUS,
    DEFAULT_SURVIVORSHIP_WARNING_PERCENT,
    DISCARDED_CHANGES,
    INCOMPLETE_SUBTASKS_WHEN_ISSUE_DONE,
    ISSUE_NOT_STARTED_BUT_SUBTASKS_HAVE,
    ISSUE_ON_MULTIPLE_BOARDS,
    STATUS_CHANGES_AFTER_DONE,
    STATUS_NOT_ON_BOARD,
    STOPPED_BEFORE_STARTED,
)
from jira_metrics.core.formatting import label_issues

_DESCRIPTIONS: dict[str, str] = {
    DISCARDED_CHANGES: (
        "{items} have had information discarded. This configuration is set to \"reset the clock\" if an "
        "item is moved back to the backlog after it's been started. This hides important information and "
        "makes the data less accurate. Moving items back to the backlog is strongly discouraged."
    ),
    COMPLETED_BUT_NOT_STARTED: (
        "{items} were discarded from all charts using cycle time (scatterplot, histogram, etc) as we "
        "couldn't determine when they started."
    ),
    STATUS_CHANGES_AFTER_DONE: (
        "{items} had a status change after being identified as done. We should question whether they were "
        "really done at that point or if we stopped the clock too early."
    ),
    BACKWARDS_THROUGH_STATUS_CATEGORIES: (
        "{items} moved backwards across the board, crossing status categories. This will almost certainly "
        "have impacted timings as the end times are often taken at status category boundaries. Assume that "
        "any timing measurements for these items are wrong."
    ),
    BACKWARDS_THROUGH_STATUSES: (
        "{items} moved backwards across the board. Depending where the start and end points are set, this "
        "may give incorrect timing data. These items did not cross a status category and may not have "
        "affected metrics."
    ),
    STATUS_NOT_ON_BOARD: (
        "{items} were not visible on the board for some period of time. This may impact timings as the "
        "work was likely to have been forgotten if it wasn't visible."
    ),
    CREATED_IN_WRONG_STATUS: (
        "{items} were created in a status not designated as Backlog. This will impact the measurement of "
        "start times and therefore whether they are shown as in progress or not."
    ),
    STOPPED_BEFORE_STARTED: (
        "{items} were stopped before they were started and this will play havoc with any cycle time or WIP "
        "calculations. The most common case is an item that gets closed and then moved back into an "
        "in-progress status."
    ),
    ISSUE_NOT_STARTED_BUT_SUBTASKS_HAVE: (
        "{items} still showing 'not started' while sub-tasks underneath them have started. This is almost "
        "always a mistake; if we're working on subtasks, the top level item should also have started."
    ),
    INCOMPLETE_SUBTASKS_WHEN_ISSUE_DONE: "{items} were marked as done while subtasks were still not done.",
    ISSUE_ON_MULTIPLE_BOARDS: (
        "For {items}, the issue shows up on more than one board. This could result in more data points "
        "showing up on a chart than there really should be."
    ),
}


def describe_problem(problem_key: str, count: int, total_issues: int) -> str:
    """Summary text for ``count`` problems of one kind out of ``total_issues``."""
    try:
        template = _DESCRIPTIONS[problem_key]
    except KeyError:
        raise ValueError(f"Unknown data quality problem: {problem_key!r}") from None
    text = template.format(items=label_issues(count))

    if problem_key == COMPLETED_BUT_NOT_STARTED and total_issues:
        percentage_included = int((total_issues - count) * 100 / total_issues)
        if percentage_included < DEFAULT_SURVIVORSHIP_WARNING_PERCENT:
            text += (
                f" Consider whether looking at only {percentage_included}% of the total data points is "
                "enough to come to any reasonable conclusions (survivorship bias)."
            )
    return text
