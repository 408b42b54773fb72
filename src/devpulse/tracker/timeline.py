"""Replay an issue's status transitions into dates and time-in-state intervals.

Issue state is never stored; it is re-derived from the sparse transition log
every time. The analyzer only asks whether a transition's target status
belongs to a bucket, so any workflow graph (skips, loops, re-opens) works.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..math.periods import days_between
from .models import Issue, StatusMapping, StatusTransition


@dataclass(frozen=True)
class BlockedInterval:
    start: datetime
    end: datetime
    open: bool = False  # still blocked; closed against "now"

    @property
    def days(self) -> int:
        return max(0, days_between(self.start, self.end))


def sorted_transitions(transitions: Iterable[StatusTransition]) -> list[StatusTransition]:
    """Ascending by timestamp; ties keep their input order."""
    return sorted(transitions, key=lambda t: t.timestamp)


def fold_transitions(
    transitions: Iterable[StatusTransition],
    mapping: StatusMapping,
    now: Optional[datetime] = None,
) -> list[BlockedInterval]:
    """Fold a transition log into the intervals spent in a blocked-class status.

    An interval opens on a transition into a blocked status and closes on
    the next transition into a non-blocked status. Every transition into a
    blocked status restarts the open interval, so time spent in an earlier
    blocked status is dropped when the issue moves to another one. An
    interval still open at the end is closed against ``now``. Input order
    does not matter.
    """
    intervals: list[BlockedInterval] = []
    blocked_since: Optional[datetime] = None

    for transition in sorted_transitions(transitions):
        if mapping.is_blocked(transition.to_status):
            blocked_since = transition.timestamp
        elif blocked_since is not None:
            intervals.append(BlockedInterval(start=blocked_since, end=transition.timestamp))
            blocked_since = None

    if blocked_since is not None:
        closing = now or datetime.now(timezone.utc)
        intervals.append(BlockedInterval(start=blocked_since, end=closing, open=True))

    return intervals


def blocked_days(issue: Issue, mapping: StatusMapping, now: Optional[datetime] = None) -> int:
    """Total whole days the issue spent blocked (each interval truncated)."""
    return sum(interval.days for interval in fold_transitions(issue.transitions, mapping, now))


def first_in_progress_date(issue: Issue, mapping: StatusMapping) -> Optional[datetime]:
    """Timestamp of the first transition into an in-progress status."""
    for transition in sorted_transitions(issue.transitions):
        if mapping.is_in_progress(transition.to_status):
            return transition.timestamp
    return None


def done_date(issue: Issue, mapping: StatusMapping) -> Optional[datetime]:
    """Explicit resolution time, else the last transition into a done status."""
    if issue.resolved is not None:
        return issue.resolved
    for transition in reversed(sorted_transitions(issue.transitions)):
        if mapping.is_done(transition.to_status):
            return transition.timestamp
    return None
