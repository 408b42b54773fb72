"""Data models for commit-history metrics."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from ..math.periods import DAY_NAMES


@dataclass(frozen=True)
class FileChange:
    """One numstat row: lines added/deleted for a path in a commit."""

    path: str
    added: int
    deleted: int


@dataclass(frozen=True)
class Commit:
    """A single commit as read from history. Never mutated after parsing."""

    hash: str
    short_hash: str
    author: str
    email: str
    timestamp: datetime  # aware, in the author's own offset
    message: str
    parents: tuple[str, ...] = ()
    changes: tuple[FileChange, ...] = ()

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def lines_added(self) -> int:
        return sum(c.added for c in self.changes)

    @property
    def lines_deleted(self) -> int:
        return sum(c.deleted for c in self.changes)

    @property
    def files(self) -> tuple[str, ...]:
        return tuple(c.path for c in self.changes)

    @property
    def files_changed(self) -> int:
        return len(self.changes)


@dataclass(frozen=True)
class FilterOptions:
    """Restrictions applied to every history query.

    ``branches`` switches queries to all-branches mode; the restriction and
    deduplication then happen in the reconciler rather than in git.
    """

    since: Optional[str] = None
    until: Optional[str] = None
    author: Optional[str] = None
    email: Optional[str] = None  # preferred over author: names alias across identities
    branch: Optional[str] = None
    branches: tuple[str, ...] = ()
    include_merges: bool = False
    paths: tuple[str, ...] = ()

    def with_changes(self, **changes) -> FilterOptions:
        return replace(self, **changes)

    def for_branch(self, branch: str) -> FilterOptions:
        """Single-branch copy used for one reconciler leg."""
        return replace(self, branch=branch, branches=())


@dataclass
class AuthorStat:
    name: str
    username: str  # email local-part
    email: str
    commits: int
    lines_added: int
    lines_deleted: int
    lines_net: int
    files_changed: int
    first_commit: Optional[datetime]
    last_commit: Optional[datetime]
    active_days: int
    avg_commits_per_day: float
    merge_commits: int


@dataclass
class FileStat:
    path: str
    changes: int
    lines_added: int
    lines_deleted: int
    authors: list[str] = field(default_factory=list)


@dataclass
class FileTypeStat:
    extension: str
    files: int
    lines: int


def _empty_hours() -> dict[int, int]:
    return {hour: 0 for hour in range(24)}


def _empty_days() -> dict[str, int]:
    return {name: 0 for name in DAY_NAMES}


@dataclass
class TimeStats:
    """Commit frequency tables. Hours and weekdays are always fully populated."""

    by_hour: dict[int, int] = field(default_factory=_empty_hours)
    by_day_of_week: dict[str, int] = field(default_factory=_empty_days)
    by_month: dict[str, int] = field(default_factory=dict)
    by_week: dict[str, int] = field(default_factory=dict)


@dataclass
class PeriodStat:
    period: str
    commits: int
    authors: int
    lines_added: int
    lines_deleted: int


@dataclass
class RepoSummary:
    total_commits: int
    total_authors: int
    total_lines_added: int
    total_lines_deleted: int
    total_files_changed: int
    first_commit_date: Optional[datetime]
    last_commit_date: Optional[datetime]
    active_branches: int
    current_branch: str
    branches_analyzed: Optional[list[str]] = None


@dataclass
class BlameStat:
    author: str
    email: str
    lines: int
    percentage: float
