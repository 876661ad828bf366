"""Discard early issue history ("reset the clock").

Some teams move started work back to the backlog and later restart it. When
configured, everything before such a reset is dropped so that cycle time is
measured from the restart. The report still needs to know what was thrown
away, so the discard returns a side map describing it.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from .formatting import label_days
from .models import Issue

if TYPE_CHECKING:
    from jira_metrics.analytics.metrics.cycletime import CycleTimeConfig

logger = logging.getLogger(__name__)

CutoffRule = Callable[[Issue], datetime | None]


@dataclass(slots=True, frozen=True)
class DiscardedHistory:
    cutoff_time: datetime
    # Start time as computed before anything was discarded
    started_time: datetime


def discard_changes_before(
    issues: Iterable[Issue], cutoff_for: CutoffRule, config: CycleTimeConfig
) -> tuple[list[Issue], dict[Issue, DiscardedHistory]]:
    """Drop changes before each issue's cutoff.

    Issues are copied, never modified. The artificial creation change is
    always kept so the issue still has a starting status.

    Returns
    -------
    tuple[list[Issue], dict[Issue, DiscardedHistory]]
        The issues (copies where something was discarded, originals otherwise)
        and, for copies whose original start preceded the cutoff, what was
        discarded.
    """
    issues = list(issues)
    result: list[Issue] = []
    discarded: dict[Issue, DiscardedHistory] = {}

    for issue in issues:
        cutoff = cutoff_for(issue)
        if cutoff is None:
            result.append(issue)
            continue
        kept = [change for change in issue.changes if change.artificial or change.time >= cutoff]
        if len(kept) == len(issue.changes):
            result.append(issue)
            continue

        started = config.started_time(issue)
        copy = dataclasses.replace(issue, changes=kept)
        result.append(copy)
        if started is not None and started < cutoff:
            discarded[copy] = DiscardedHistory(cutoff_time=cutoff, started_time=started)
        _log_discard(issue, cutoff)

    if discarded:
        logger.info("Discarded data from %d issues out of a total %d", len(discarded), len(issues))
    return result, discarded


def _log_discard(issue: Issue, cutoff: datetime) -> None:
    first = issue.changes[0].time.date()
    days = (cutoff.date() - first).days + 1
    if days == 1:
        logger.info("%s(%s) discarding 1 day of data on %s", issue.key, issue.type, cutoff.date())
    else:
        logger.info(
            "%s(%s) discarding %s of data from %s to %s", issue.key, issue.type, label_days(days), first, cutoff.date()
        )


def moved_back_to_backlog_cutoff(config: CycleTimeConfig) -> CutoffRule:
    """Cutoff at the last move back into a backlog status after the issue started."""

    def rule(issue: Issue) -> datetime | None:
        board = issue.board
        started = config.started_time(issue)
        if board is None or started is None:
            return None
        cutoff = None
        for change in issue.status_changes():
            if change.time > started and board.is_backlog(change.new_value_id):
                cutoff = change.time
        return cutoff

    return rule
