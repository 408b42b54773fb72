"""Data models for metric snapshots, one immutable record per collection run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..temporal.models import AuthorStat, Commit, FileStat, PeriodStat, RepoSummary, TimeStats
from ..tracker.models import IssueMetrics


@dataclass(frozen=True)
class PeriodLabel:
    """Human-readable report range; since/until are None for all-time runs."""

    since: Optional[str]
    until: Optional[str]
    label: str


@dataclass(frozen=True)
class UserIdentity:
    username: str
    email: str


@dataclass
class GitMetricsSection:
    summary: RepoSummary  # repo-wide, no author filter
    user_stats: Optional[AuthorStat]
    activity: TimeStats
    trends: list[PeriodStat] = field(default_factory=list)
    recent_commits: list[Commit] = field(default_factory=list)  # user only, newest first
    top_files: list[FileStat] = field(default_factory=list)  # repo-wide


@dataclass
class MetricsSnapshot:
    """Everything derived in one run. Plain values only, no behaviour beyond export."""

    collected_at: datetime
    period: PeriodLabel
    repository: str
    repo_name: str
    user: UserIdentity
    git: GitMetricsSection
    issues: Optional[IssueMetrics] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict; datetimes become ISO-8601 strings."""
        return _jsonable(asdict(self))


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
