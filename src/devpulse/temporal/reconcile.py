"""Merge per-branch commit histories into one deduplicated set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

from ..exceptions import GitCommandError
from ..logging_config import get_logger
from ..math.periods import GroupBy
from .aggregate import build_author_stats, build_period_stats, build_repo_summary, build_time_stats
from .models import AuthorStat, Commit, FilterOptions, PeriodStat, RepoSummary, TimeStats

if TYPE_CHECKING:
    from .git_extractor import GitExtractor

logger = get_logger(__name__)


@dataclass
class ReconciledHistory:
    commits: list[Commit]  # unique by hash, newest first
    files: set[str]  # union of each branch's touched files
    branches_analyzed: list[str]
    skipped_branches: list[str] = field(default_factory=list)


class BranchReconciler:
    """Collect commits branch by branch and count each commit exactly once.

    A commit reachable from several branches shows up in several per-branch
    queries; the hash-keyed index keeps the first copy seen. A branch whose
    query fails is skipped and the remaining branches still contribute.
    """

    def __init__(self, extractor: GitExtractor):
        self.extractor = extractor

    def collect(
        self,
        branches: Sequence[str],
        options: FilterOptions,
        limit: Optional[int] = None,
    ) -> ReconciledHistory:
        if not branches:
            commits = self.extractor.query_commits(options.with_changes(branches=()), limit)
            return ReconciledHistory(
                commits=commits,
                files={path for c in commits for path in c.files},
                branches_analyzed=[],
            )

        by_hash: dict[str, Commit] = {}
        files: set[str] = set()
        analyzed: list[str] = []
        skipped: list[str] = []

        for branch in branches:
            try:
                branch_commits = self.extractor.query_commits(options.for_branch(branch), limit)
            except GitCommandError as e:
                logger.warning("Skipping branch %s: %s", branch, e)
                skipped.append(branch)
                continue

            analyzed.append(branch)
            for commit in branch_commits:
                by_hash.setdefault(commit.hash, commit)
                files.update(commit.files)

        merged = sorted(by_hash.values(), key=lambda c: (c.timestamp, c.hash), reverse=True)
        if limit:
            merged = merged[:limit]

        logger.debug(
            "Reconciled %d unique commits from %d branches (%d skipped)",
            len(merged),
            len(analyzed),
            len(skipped),
        )
        return ReconciledHistory(
            commits=merged,
            files=files,
            branches_analyzed=analyzed,
            skipped_branches=skipped,
        )

    def repo_summary(self, options: FilterOptions) -> RepoSummary:
        history = self.collect(options.branches, options)
        return build_repo_summary(
            history.commits,
            active_branches=self.extractor.count_branches(),
            current_branch=self.extractor.current_branch(),
            files=history.files,
            branches_analyzed=list(history.branches_analyzed),
        )

    def author_stats(self, options: FilterOptions) -> list[AuthorStat]:
        """Authors grouped by email over the merged set.

        Collected with merges so each author's merge count is the
        with-merges total minus the without-merges total.
        """
        history = self.collect(options.branches, options.with_changes(include_merges=True))
        return build_author_stats(history.commits, include_merges=options.include_merges)

    def time_stats(self, options: FilterOptions) -> TimeStats:
        return build_time_stats(self.collect(options.branches, options).commits)

    def period_stats(self, options: FilterOptions, group_by: GroupBy = "month") -> list[PeriodStat]:
        """Buckets computed locally per deduplicated commit, not re-queried per bucket."""
        return build_period_stats(self.collect(options.branches, options).commits, group_by)
