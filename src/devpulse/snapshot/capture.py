"""Assemble a MetricsSnapshot from a repository and an optional issue source."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from ..config import MetricsConfig
from ..logging_config import get_logger
from ..math.periods import days_between, parse_timestamp
from ..temporal.git_extractor import GitExtractor
from ..temporal.models import FilterOptions
from ..tracker.analyzer import analyze_issues
from ..tracker.models import Issue, StatusMapping
from .models import GitMetricsSection, MetricsSnapshot, PeriodLabel, UserIdentity

logger = get_logger(__name__)

ALL_TIME_LABEL = "Total (all time)"

IssueFetcher = Callable[[Optional[str]], Sequence[Issue]]


def build_period_label(
    total: bool,
    since: Optional[str],
    until: Optional[str],
    default_since: str,
    default_until: str,
) -> PeriodLabel:
    """Label a report range.

    Ranges up to 7 and 30 days get "Last N days"; "Last 90 days" only
    applies to the untouched default window. Anything else is shown as
    an explicit "since → until" range.
    """
    if total:
        return PeriodLabel(since=None, until=None, label=ALL_TIME_LABEL)

    s = since or default_since
    u = until or default_until
    days = days_between(parse_timestamp(s), parse_timestamp(u))

    if days <= 7:
        label = "Last 7 days"
    elif days <= 30:
        label = "Last 30 days"
    elif days <= 90 and s == default_since and u == default_until:
        label = "Last 90 days"
    else:
        label = f"{s} → {u}"
    return PeriodLabel(since=s, until=u, label=label)


def capture_snapshot(
    repo_path: str,
    email: str,
    username: str,
    config: Optional[MetricsConfig] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    total: bool = False,
    issues: Optional[Sequence[Issue]] = None,
    issue_fetcher: Optional[IssueFetcher] = None,
    status_mapping: Optional[StatusMapping] = None,
    now: Optional[datetime] = None,
) -> MetricsSnapshot:
    """Build one snapshot for ``email`` in ``repo_path``.

    Parameters
    ----------
    repo_path:
        Path inside the git work tree.
    email, username:
        Identity whose stats are reported; git queries filter on email.
    config:
        Run settings; defaults to ``MetricsConfig()``.
    since, until:
        Explicit YYYY-MM-DD window. Without them the last
        ``config.collection_days`` days are used, unless ``total``.
    issues, issue_fetcher:
        Pre-fetched issues, or a callable taking the window start and
        returning every issue. Issue metrics are skipped when neither is
        given.

    Raises
    ------
    SourceUnavailableError
        If the repository cannot be read or the issue fetch fails.
    """
    config = config or MetricsConfig()
    now = now or datetime.now(timezone.utc)
    today = now.date()
    default_since = (today - timedelta(days=config.collection_days)).isoformat()
    default_until = today.isoformat()

    period = build_period_label(total, since, until, default_since, default_until)

    extractor = GitExtractor.from_config(repo_path, config)
    branches: tuple[str, ...] = ()
    if config.all_branches:
        branches = tuple(extractor.get_all_active_branches(config.main_branch))

    repo_options = FilterOptions(since=period.since, until=period.until, branches=branches)
    user_options = repo_options.with_changes(email=email)

    logger.debug("Collecting git metrics for %s (%s)", email, period.label)
    author_stats = extractor.get_author_stats(user_options)
    git = GitMetricsSection(
        summary=extractor.get_repo_summary(repo_options),
        user_stats=author_stats[0] if author_stats else None,
        activity=extractor.get_time_stats(user_options),
        trends=extractor.get_stats_by_period(user_options, config.group_by),
        recent_commits=extractor.get_commits(user_options, limit=config.commit_limit),
        top_files=extractor.get_file_stats(repo_options, limit=config.file_limit),
    )

    issue_metrics = None
    if issues is None and issue_fetcher is not None:
        issues = issue_fetcher(period.since or default_since)
    if issues is not None:
        issue_metrics = analyze_issues(
            issues,
            mapping=status_mapping or config.status_mapping,
            since=period.since or default_since,
            until=period.until or default_until,
            now=now,
        )

    return MetricsSnapshot(
        collected_at=now,
        period=period,
        repository=repo_path,
        repo_name=extractor.get_repo_name(),
        user=UserIdentity(username=username, email=email),
        git=git,
        issues=issue_metrics,
    )
