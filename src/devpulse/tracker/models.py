"""Data models for issue status timelines and the flow metrics derived from them."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

UNASSIGNED = "Unassigned"
NO_PRIORITY = "None"


class StatusCategory(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"


def _normalize(statuses: Iterable[str]) -> frozenset[str]:
    return frozenset(s.strip().lower() for s in statuses)


@dataclass(frozen=True)
class StatusMapping:
    """Classify arbitrary tracker status names into four buckets.

    Membership is case-insensitive. The mapping is data so that custom
    workflows only need a different mapping, not different code.
    """

    todo: tuple[str, ...] = ()
    in_progress: tuple[str, ...] = ()
    blocked: tuple[str, ...] = ()
    done: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        lookup = {
            StatusCategory.TODO: _normalize(self.todo),
            StatusCategory.IN_PROGRESS: _normalize(self.in_progress),
            StatusCategory.BLOCKED: _normalize(self.blocked),
            StatusCategory.DONE: _normalize(self.done),
        }
        object.__setattr__(self, "_lookup", lookup)

    def contains(self, category: StatusCategory, status: Optional[str]) -> bool:
        if not status:
            return False
        return status.strip().lower() in self._lookup[category]  # type: ignore[attr-defined]

    def is_todo(self, status: Optional[str]) -> bool:
        return self.contains(StatusCategory.TODO, status)

    def is_in_progress(self, status: Optional[str]) -> bool:
        return self.contains(StatusCategory.IN_PROGRESS, status)

    def is_blocked(self, status: Optional[str]) -> bool:
        return self.contains(StatusCategory.BLOCKED, status)

    def is_done(self, status: Optional[str]) -> bool:
        return self.contains(StatusCategory.DONE, status)

    def classify(self, status: Optional[str]) -> Optional[StatusCategory]:
        """First matching bucket, or None for statuses the mapping doesn't know."""
        for category in StatusCategory:
            if self.contains(category, status):
                return category
        return None

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Iterable[str]], fallback: Optional[StatusMapping] = None
    ) -> StatusMapping:
        """Build a mapping from a config table; missing buckets come from ``fallback``.

        Accepts ``in_progress`` or ``inProgress`` for the in-progress bucket.
        """
        base = fallback or DEFAULT_STATUS_MAPPING
        in_progress = data.get("in_progress", data.get("inProgress"))
        return cls(
            todo=tuple(data.get("todo", base.todo)),
            in_progress=tuple(in_progress) if in_progress is not None else base.in_progress,
            blocked=tuple(data.get("blocked", base.blocked)),
            done=tuple(data.get("done", base.done)),
        )


DEFAULT_STATUS_MAPPING = StatusMapping(
    todo=("To Do", "Open", "Backlog", "New"),
    in_progress=("In Progress", "In Development", "In Review", "Code Review", "Testing", "QA"),
    blocked=("Blocked", "On Hold", "Waiting", "Impediment"),
    done=("Done", "Closed", "Resolved", "Complete", "Deployed"),
)

# Linear workflow state types
LINEAR_STATUS_MAPPING = StatusMapping(
    todo=("backlog", "unstarted", "triage"),
    in_progress=("started",),
    blocked=(),
    done=("completed",),
)


@dataclass(frozen=True)
class StatusTransition:
    timestamp: datetime
    from_status: Optional[str]
    to_status: Optional[str]


@dataclass(frozen=True)
class IssueCycle:
    """Sprint / cycle an issue was planned into."""

    id: str
    name: str


@dataclass
class Issue:
    key: str
    issue_type: str
    status: str  # current status name
    created: datetime
    assignee: Optional[str] = None
    resolved: Optional[datetime] = None
    priority: Optional[str] = None
    estimate: Optional[float] = None
    cycle: Optional[IssueCycle] = None
    transitions: list[StatusTransition] = field(default_factory=list)

    @property
    def assignee_name(self) -> str:
        return self.assignee or UNASSIGNED

    @property
    def priority_name(self) -> str:
        return self.priority or NO_PRIORITY


# ── Derived metric records ───────────────────────────────────────────


@dataclass
class DurationMetrics:
    """Aggregate of per-issue durations in days (cycle time or lead time)."""

    avg_days: float
    median_days: float
    min_days: int
    max_days: int
    p90_days: float
    count: int
    by_issue_type: dict[str, float] = field(default_factory=dict)


@dataclass
class WIPMetrics:
    current: int = 0
    by_assignee: dict[str, int] = field(default_factory=dict)
    by_issue_type: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)


@dataclass
class BlockedTimeMetrics:
    avg_days: float = 0.0
    total_blocked_issues: int = 0
    percentage_blocked: int = 0


@dataclass
class WeekCount:
    week: str
    count: int


@dataclass
class ThroughputMetrics:
    total: int
    per_week: float
    by_week: list[WeekCount] = field(default_factory=list)
    by_assignee: dict[str, int] = field(default_factory=dict)
    by_issue_type: dict[str, int] = field(default_factory=dict)
    per_cycle: Optional[float] = None


@dataclass
class ResolutionTime:
    avg_days: float = 0.0
    median_days: float = 0.0


@dataclass
class BugRatioMetrics:
    total_issues: int = 0
    total_bugs: int = 0
    ratio: float = 0.0
    bugs_by_priority: dict[str, int] = field(default_factory=dict)
    bug_resolution_time: ResolutionTime = field(default_factory=ResolutionTime)


@dataclass
class CycleStat:
    name: str
    planned: int
    completed: int
    rate: int


@dataclass
class CycleCompletionMetrics:
    avg_rate: int
    cycles: list[CycleStat] = field(default_factory=list)


@dataclass
class EstimateAccuracyMetrics:
    issues_with_estimates: int
    avg_estimate: float
    total_estimated: float
    total_completed: float


@dataclass
class ReportPeriod:
    since: str
    until: str


@dataclass
class IssueMetrics:
    """Flow metrics for one issue collection. Plain data, recomputed per run."""

    available: bool
    issues_analyzed: int
    period: ReportPeriod
    cycle_time: Optional[DurationMetrics]
    lead_time: Optional[DurationMetrics]
    wip: WIPMetrics
    blocked_time: BlockedTimeMetrics
    throughput: Optional[ThroughputMetrics]
    bug_ratio: BugRatioMetrics
    cycle_completion: Optional[CycleCompletionMetrics] = None
    estimate_accuracy: Optional[EstimateAccuracyMetrics] = None
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
