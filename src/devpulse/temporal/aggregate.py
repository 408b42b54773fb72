"""Derive author, time, period and file statistics from a commit list.

These are pure folds over ``Commit`` records. The extractor feeds them one
query's worth of commits; the reconciler feeds them the deduplicated
cross-branch set, so both paths bucket and count identically.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from ..math.periods import GroupBy, day_name, group_by_key, month_key, period_key, week_key
from ..math.statistics import Statistics
from .models import AuthorStat, Commit, FileStat, FileTypeStat, PeriodStat, RepoSummary, TimeStats
from .parsing import file_extension


def username_for(email: str, name: str) -> str:
    """Canonical username: the email local-part, else the email, else the name."""
    if "@" in email:
        return email.split("@", 1)[0]
    return email or name


def _author_stat(group: Sequence[Commit], include_merges: bool) -> AuthorStat:
    first = group[0]
    without_merges = [c for c in group if not c.is_merge]
    counted = list(group) if include_merges else without_merges

    # Merge count is total-with-merges minus total-without-merges
    merge_commits = len(group) - len(without_merges)

    lines_added = sum(c.lines_added for c in counted)
    lines_deleted = sum(c.lines_deleted for c in counted)
    files = {path for c in counted for path in c.files}
    active_dates = {c.timestamp.date() for c in counted}
    timestamps = [c.timestamp for c in counted]

    commits = len(counted)
    active_days = len(active_dates)
    avg_per_day = commits / active_days if active_days > 0 else 0.0

    return AuthorStat(
        name=first.author,
        username=username_for(first.email, first.author),
        email=first.email,
        commits=commits,
        lines_added=lines_added,
        lines_deleted=lines_deleted,
        lines_net=lines_added - lines_deleted,
        files_changed=len(files),
        first_commit=min(timestamps) if timestamps else None,
        last_commit=max(timestamps) if timestamps else None,
        active_days=active_days,
        avg_commits_per_day=Statistics.round_to(avg_per_day, 2),
        merge_commits=merge_commits,
    )


def build_author_stats(commits: Iterable[Commit], include_merges: bool = False) -> list[AuthorStat]:
    """Per-author statistics keyed by email, sorted by commit count descending.

    ``commits`` must include merge commits so merge counts can be derived;
    ``include_merges`` decides whether merges count toward ``commits``.
    """
    groups = group_by_key(commits, lambda c: c.email)
    stats = [_author_stat(group, include_merges) for group in groups.values()]
    return sorted(stats, key=lambda s: s.commits, reverse=True)


def build_time_stats(commits: Iterable[Commit]) -> TimeStats:
    stats = TimeStats()
    for commit in commits:
        when = commit.timestamp
        stats.by_hour[when.hour] += 1
        stats.by_day_of_week[day_name(when)] += 1
        month = month_key(when)
        stats.by_month[month] = stats.by_month.get(month, 0) + 1
        week = week_key(when)
        stats.by_week[week] = stats.by_week.get(week, 0) + 1
    return stats


def build_period_stats(commits: Iterable[Commit], group_by: GroupBy = "month") -> list[PeriodStat]:
    """One row per bucket, ascending by period key."""
    hashes: dict[str, set[str]] = defaultdict(set)
    authors: dict[str, set[str]] = defaultdict(set)
    added: dict[str, int] = defaultdict(int)
    deleted: dict[str, int] = defaultdict(int)

    for commit in commits:
        key = period_key(commit.timestamp, group_by)
        hashes[key].add(commit.hash)
        authors[key].add(commit.author)
        added[key] += commit.lines_added
        deleted[key] += commit.lines_deleted

    return [
        PeriodStat(
            period=key,
            commits=len(hashes[key]),
            authors=len(authors[key]),
            lines_added=added[key],
            lines_deleted=deleted[key],
        )
        for key in sorted(hashes)
    ]


def build_file_stats(commits: Iterable[Commit], limit: Optional[int] = 20) -> list[FileStat]:
    """Most frequently changed files, ties broken by path."""
    stats: dict[str, FileStat] = {}
    for commit in commits:
        for change in commit.changes:
            stat = stats.get(change.path)
            if stat is None:
                stat = stats[change.path] = FileStat(
                    path=change.path, changes=0, lines_added=0, lines_deleted=0
                )
            stat.changes += 1
            stat.lines_added += change.added
            stat.lines_deleted += change.deleted
            if commit.author not in stat.authors:
                stat.authors.append(commit.author)

    ordered = sorted(stats.values(), key=lambda s: (-s.changes, s.path))
    return ordered[:limit] if limit else ordered


def build_file_type_stats(commits: Iterable[Commit]) -> dict[str, FileTypeStat]:
    """Distinct files and added+deleted lines per extension."""
    files: dict[str, set[str]] = defaultdict(set)
    lines: dict[str, int] = defaultdict(int)
    for commit in commits:
        for change in commit.changes:
            ext = file_extension(change.path)
            files[ext].add(change.path)
            lines[ext] += change.added + change.deleted

    return {
        ext: FileTypeStat(extension=ext, files=len(paths), lines=lines[ext])
        for ext, paths in sorted(files.items())
    }


def build_repo_summary(
    commits: Sequence[Commit],
    active_branches: int,
    current_branch: str,
    files: Optional[set[str]] = None,
    branches_analyzed: Optional[list[str]] = None,
) -> RepoSummary:
    """Totals over ``commits``; ``files`` overrides the file set when supplied."""
    if files is None:
        files = {path for c in commits for path in c.files}
    timestamps = [c.timestamp for c in commits]

    return RepoSummary(
        total_commits=len(commits),
        total_authors=len({c.author for c in commits}),
        total_lines_added=sum(c.lines_added for c in commits),
        total_lines_deleted=sum(c.lines_deleted for c in commits),
        total_files_changed=len(files),
        first_commit_date=min(timestamps) if timestamps else None,
        last_commit_date=max(timestamps) if timestamps else None,
        active_branches=active_branches,
        current_branch=current_branch,
        branches_analyzed=branches_analyzed,
    )
