"""Extract commit-history metrics from a git repository via subprocess."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from ..exceptions import GitCommandError, GitNotFoundError, RepositoryNotFoundError
from ..logging_config import get_logger
from ..math.periods import GroupBy
from ..math.statistics import Statistics
from .aggregate import (
    build_author_stats,
    build_file_stats,
    build_file_type_stats,
    build_period_stats,
    build_repo_summary,
    build_time_stats,
)
from .models import (
    AuthorStat,
    BlameStat,
    Commit,
    FileStat,
    FileTypeStat,
    FilterOptions,
    PeriodStat,
    RepoSummary,
    TimeStats,
)
from .parsing import (
    LOG_FORMAT,
    parse_blame_porcelain,
    parse_branch_list,
    parse_commit_log,
    parse_repo_name,
    unique_lines,
)
from .reconcile import BranchReconciler

if TYPE_CHECKING:
    from ..config import MetricsConfig

logger = get_logger(__name__)

DEFAULT_BLAME_FILE_LIMIT = 100


class GitExtractor:
    """Query a repository's history and turn it into structured statistics.

    Every public method issues fresh read-only git queries and returns new
    records; nothing is cached between calls. When ``FilterOptions.branches``
    is set, commit-based methods hand off to ``BranchReconciler`` which
    queries each branch separately and deduplicates by commit hash.

    Raises:
        RepositoryNotFoundError: If ``repo_path`` is not a git work tree
        GitNotFoundError: If git is not installed
    """

    def __init__(
        self,
        repo_path: str = ".",
        timeout_seconds: int = 60,
        blame_file_limit: int = DEFAULT_BLAME_FILE_LIMIT,
    ):
        self.repo_path = str(Path(repo_path).resolve())
        self.timeout_seconds = timeout_seconds
        self.blame_file_limit = blame_file_limit
        self.reconciler = BranchReconciler(self)
        self._validate_repo()

    @classmethod
    def from_config(cls, repo_path: str, config: MetricsConfig) -> GitExtractor:
        return cls(
            repo_path,
            timeout_seconds=config.git_timeout_seconds,
            blame_file_limit=config.blame_file_limit,
        )

    # ── Command plumbing ─────────────────────────────────────────────

    def _validate_repo(self) -> None:
        if not Path(self.repo_path).is_dir():
            raise RepositoryNotFoundError(self.repo_path, reason="directory does not exist")
        try:
            self._run(["rev-parse", "--git-dir"])
        except GitCommandError as e:
            raise RepositoryNotFoundError(self.repo_path, reason=e.stderr.strip() or "not a git repository")

    def _run(self, args: Sequence[str]) -> str:
        """Run one git command in the repository and return its stdout."""
        cmd = ["git", "-C", self.repo_path, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            raise GitNotFoundError() from None
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(cmd, stderr=f"timed out after {self.timeout_seconds}s") from e

        if result.returncode != 0:
            raise GitCommandError(cmd, result.returncode, result.stderr)
        return result.stdout

    @staticmethod
    def build_log_args(options: FilterOptions) -> list[str]:
        """Translate filter options into git log arguments.

        Email wins over author name when both are given. A branch set turns
        into ``--all``; restricting to those branches is the reconciler's job.
        Path scoping always comes last, after ``--``.
        """
        args: list[str] = []

        if options.since:
            args.append(f"--since={options.since}")
        if options.until:
            args.append(f"--until={options.until}")

        if options.email:
            args.append(f"--author={options.email}")
        elif options.author:
            args.append(f"--author={options.author}")

        if not options.include_merges:
            args.append("--no-merges")

        if options.branches:
            args.append("--all")
        elif options.branch:
            args.append(options.branch)

        if options.paths:
            args.extend(["--", *options.paths])

        return args

    def query_commits(self, options: FilterOptions, limit: Optional[int] = None) -> list[Commit]:
        """Single git log query with per-file numstat rows. Never deduplicates."""
        args = ["log", "--use-mailmap", f"--format={LOG_FORMAT}", "--numstat"]
        if limit:
            args.extend(["-n", str(limit)])
        args.extend(self.build_log_args(options))
        return parse_commit_log(self._run(args))

    # ── Branches ─────────────────────────────────────────────────────

    def get_unmerged_branches(self, main_branch: str = "main") -> list[str]:
        """Remote branches not yet merged into ``main_branch``.

        Returns an empty list when the listing fails (e.g. no remotes).
        """
        try:
            raw = self._run(["branch", "-r", "--no-merged", main_branch])
        except GitCommandError as e:
            logger.debug("Cannot list unmerged branches: %s", e)
            return []
        return parse_branch_list(raw, main_branch)

    def get_all_active_branches(self, main_branch: str = "main") -> list[str]:
        """The main branch followed by every unmerged branch."""
        return [main_branch, *self.get_unmerged_branches(main_branch)]

    def count_branches(self) -> int:
        return len(unique_lines(self._run(["branch", "-a"])))

    def current_branch(self) -> str:
        return self._run(["branch", "--show-current"]).strip() or "HEAD"

    def get_repo_name(self) -> str:
        try:
            name = parse_repo_name(self._run(["remote", "get-url", "origin"]))
        except GitCommandError:
            name = None
        return name or Path(self.repo_path).name

    # ── Statistics ───────────────────────────────────────────────────

    def get_commits(self, options: FilterOptions = FilterOptions(), limit: Optional[int] = None) -> list[Commit]:
        """Commits newest first, optionally limited to ``limit``."""
        if options.branches:
            return self.reconciler.collect(options.branches, options, limit).commits
        return self.query_commits(options, limit)

    def get_repo_summary(self, options: FilterOptions = FilterOptions()) -> RepoSummary:
        if options.branches:
            return self.reconciler.repo_summary(options)

        commits = self.query_commits(options)
        return build_repo_summary(commits, self.count_branches(), self.current_branch())

    def get_author_stats(self, options: FilterOptions = FilterOptions()) -> list[AuthorStat]:
        """Per-author statistics sorted by commit count descending."""
        if options.branches:
            return self.reconciler.author_stats(options)

        commits = self.query_commits(options.with_changes(include_merges=True))
        return build_author_stats(commits, include_merges=options.include_merges)

    def get_time_stats(self, options: FilterOptions = FilterOptions()) -> TimeStats:
        if options.branches:
            return self.reconciler.time_stats(options)
        return build_time_stats(self.query_commits(options))

    def get_stats_by_period(
        self, options: FilterOptions = FilterOptions(), group_by: GroupBy = "month"
    ) -> list[PeriodStat]:
        if options.branches:
            return self.reconciler.period_stats(options, group_by)
        return build_period_stats(self.query_commits(options), group_by)

    def get_file_stats(self, options: FilterOptions = FilterOptions(), limit: int = 20) -> list[FileStat]:
        """Top ``limit`` files by change frequency."""
        return build_file_stats(self.get_commits(options), limit)

    def get_file_type_stats(self, options: FilterOptions = FilterOptions()) -> dict[str, FileTypeStat]:
        return build_file_type_stats(self.get_commits(options))

    def get_blame_stats(self, file_path: Optional[str] = None) -> list[BlameStat]:
        """Line ownership from git blame, sorted by lines owned descending.

        Without ``file_path`` the first ``blame_file_limit`` tracked files are
        blamed. Files that cannot be blamed are skipped and do not count
        toward the total.
        """
        if file_path:
            files = [file_path]
        else:
            files = unique_lines(self._run(["ls-files"]))[: self.blame_file_limit]

        lines_by_author: dict[str, int] = {}
        email_by_author: dict[str, str] = {}
        total_lines = 0

        for path in files:
            try:
                raw = self._run(["blame", "-w", "--line-porcelain", "--", path])
            except GitCommandError as e:
                logger.debug("Skipping blame for %s: %s", path, e)
                continue

            for author, email in parse_blame_porcelain(raw):
                lines_by_author[author] = lines_by_author.get(author, 0) + 1
                email_by_author.setdefault(author, email)
                total_lines += 1

        stats = [
            BlameStat(
                author=author,
                email=email_by_author[author],
                lines=lines,
                percentage=Statistics.percentage(lines, total_lines),
            )
            for author, lines in lines_by_author.items()
        ]
        return sorted(stats, key=lambda s: s.lines, reverse=True)
