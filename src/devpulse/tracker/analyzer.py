"""Derive flow metrics (cycle/lead/blocked time, WIP, throughput, bug ratio) from issues."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from ..logging_config import get_logger
from ..math.periods import count_by_key, days_between, group_by_key, parse_timestamp, week_key, weeks_between
from ..math.statistics import Statistics
from .models import (
    DEFAULT_STATUS_MAPPING,
    BlockedTimeMetrics,
    BugRatioMetrics,
    CycleCompletionMetrics,
    CycleStat,
    DurationMetrics,
    EstimateAccuracyMetrics,
    Issue,
    IssueMetrics,
    ReportPeriod,
    ResolutionTime,
    StatusMapping,
    ThroughputMetrics,
    WeekCount,
    WIPMetrics,
)
from .timeline import blocked_days, done_date, first_in_progress_date

logger = get_logger(__name__)

NO_ISSUES_REASON = "No issues found in the specified period"


def _round1(value: float) -> float:
    return Statistics.round_to(value, 1)


def _round_int(value: float) -> int:
    return int(Statistics.round_to(value, 0))


def _duration_metrics(samples: list[tuple[int, str]]) -> Optional[DurationMetrics]:
    """Aggregate (days, issue_type) samples; None when there are none."""
    if not samples:
        return None

    days = [d for d, _ in samples]
    by_type = group_by_key(samples, lambda s: s[1])

    return DurationMetrics(
        avg_days=_round1(Statistics.mean(days)),
        median_days=_round1(Statistics.median(days)),
        min_days=min(days),
        max_days=max(days),
        p90_days=_round1(Statistics.percentile(days, 90)),
        count=len(days),
        by_issue_type={
            issue_type: _round1(Statistics.mean([d for d, _ in group]))
            for issue_type, group in by_type.items()
        },
    )


def calculate_cycle_time(issues: Sequence[Issue], mapping: StatusMapping) -> Optional[DurationMetrics]:
    """Days from first in-progress transition to done.

    Issues without a start, without a done date, or finishing on or before
    their start are excluded rather than counted as zero.
    """
    samples: list[tuple[int, str]] = []
    for issue in issues:
        start = first_in_progress_date(issue, mapping)
        finish = done_date(issue, mapping)
        if start is not None and finish is not None and finish > start:
            samples.append((days_between(start, finish), issue.issue_type))
    return _duration_metrics(samples)


def calculate_lead_time(issues: Sequence[Issue], mapping: StatusMapping) -> Optional[DurationMetrics]:
    """Days from creation to done; issues with no done date are excluded."""
    samples: list[tuple[int, str]] = []
    for issue in issues:
        finish = done_date(issue, mapping)
        if finish is not None:
            samples.append((days_between(issue.created, finish), issue.issue_type))
    return _duration_metrics(samples)


def calculate_wip(issues: Sequence[Issue], mapping: StatusMapping) -> WIPMetrics:
    """Issues whose current status is in progress."""
    in_progress = [i for i in issues if mapping.is_in_progress(i.status)]
    return WIPMetrics(
        current=len(in_progress),
        by_assignee=count_by_key(in_progress, lambda i: i.assignee_name),
        by_issue_type=count_by_key(in_progress, lambda i: i.issue_type),
        by_priority=count_by_key(in_progress, lambda i: i.priority_name),
    )


def calculate_blocked_time(
    issues: Sequence[Issue], mapping: StatusMapping, now: Optional[datetime] = None
) -> BlockedTimeMetrics:
    """Average blocked days over issues that were ever blocked.

    Never-blocked issues stay out of the average but count in the
    denominator of ``percentage_blocked``.
    """
    blocked = [d for d in (blocked_days(i, mapping, now) for i in issues) if d > 0]
    return BlockedTimeMetrics(
        avg_days=_round1(Statistics.mean(blocked)) if blocked else 0.0,
        total_blocked_issues=len(blocked),
        percentage_blocked=_round_int(len(blocked) / len(issues) * 100) if issues else 0,
    )


def calculate_throughput(
    issues: Sequence[Issue], mapping: StatusMapping, period_weeks: int = 0
) -> Optional[ThroughputMetrics]:
    """Completed issues bucketed by ISO week of their done date.

    ``per_week`` is total / period_weeks, or the raw total when no period
    length is known.
    """
    completed = [i for i in issues if mapping.is_done(i.status)]
    if not completed:
        return None

    by_week: dict[str, int] = defaultdict(int)
    for issue in completed:
        finish = done_date(issue, mapping)
        if finish is not None:
            by_week[week_key(finish)] += 1

    cycle_ids = {i.cycle.id for i in completed if i.cycle is not None}
    total = len(completed)

    return ThroughputMetrics(
        total=total,
        per_week=_round1(total / period_weeks) if period_weeks > 0 else total,
        by_week=[WeekCount(week=week, count=count) for week, count in sorted(by_week.items())],
        by_assignee=count_by_key(completed, lambda i: i.assignee_name),
        by_issue_type=count_by_key(completed, lambda i: i.issue_type),
        per_cycle=_round1(total / len(cycle_ids)) if cycle_ids else None,
    )


def calculate_bug_ratio(issues: Sequence[Issue], mapping: StatusMapping) -> BugRatioMetrics:
    """Share of issues typed "Bug", with resolution times for finished bugs."""
    bugs = [i for i in issues if i.issue_type.strip().lower() == "bug"]
    resolution_days: list[int] = []

    for bug in bugs:
        if mapping.is_done(bug.status):
            finish = done_date(bug, mapping)
            if finish is not None:
                resolution_days.append(days_between(bug.created, finish))

    return BugRatioMetrics(
        total_issues=len(issues),
        total_bugs=len(bugs),
        ratio=Statistics.round_to(len(bugs) / len(issues), 2) if issues else 0.0,
        bugs_by_priority=count_by_key(bugs, lambda i: i.priority_name),
        bug_resolution_time=ResolutionTime(
            avg_days=_round1(Statistics.mean(resolution_days)),
            median_days=_round1(Statistics.median(resolution_days)),
        ),
    )


def calculate_cycle_completion(
    issues: Sequence[Issue], mapping: StatusMapping
) -> Optional[CycleCompletionMetrics]:
    """Planned vs. completed issues per sprint/cycle."""
    planned = [i for i in issues if i.cycle is not None]
    if not planned:
        return None

    cycles: list[CycleStat] = []
    for group in group_by_key(planned, lambda i: i.cycle.id).values():
        completed = sum(1 for i in group if mapping.is_done(i.status))
        cycles.append(
            CycleStat(
                name=group[0].cycle.name,
                planned=len(group),
                completed=completed,
                rate=_round_int(completed / len(group) * 100),
            )
        )

    return CycleCompletionMetrics(
        avg_rate=_round_int(Statistics.mean([c.rate for c in cycles])),
        cycles=cycles,
    )


def calculate_estimate_accuracy(
    issues: Sequence[Issue], mapping: StatusMapping
) -> Optional[EstimateAccuracyMetrics]:
    estimated = [i for i in issues if i.estimate and i.estimate > 0]
    if not estimated:
        return None

    estimates = [i.estimate for i in estimated]
    return EstimateAccuracyMetrics(
        issues_with_estimates=len(estimated),
        avg_estimate=_round1(Statistics.mean(estimates)),
        total_estimated=Statistics.total(estimates),
        total_completed=Statistics.total([i.estimate for i in estimated if mapping.is_done(i.status)]),
    )


def _period_weeks(since: Optional[str], until: str) -> int:
    if not since:
        return 0
    return weeks_between(parse_timestamp(since), parse_timestamp(until))


def analyze_issues(
    issues: Sequence[Issue],
    mapping: Optional[StatusMapping] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    now: Optional[datetime] = None,
) -> IssueMetrics:
    """Compute every flow metric for a fully fetched issue collection.

    An empty collection yields an ``available`` record with zeroed and null
    sub-records instead of an error.

    Args:
        issues: Every issue in scope, pagination already drained
        mapping: Status classification (defaults to DEFAULT_STATUS_MAPPING)
        since: Report period start (YYYY-MM-DD); drives throughput per week
        until: Report period end; defaults to today
        now: Clock used to close still-open blocked intervals
    """
    mapping = mapping or DEFAULT_STATUS_MAPPING
    now = now or datetime.now(timezone.utc)
    period = ReportPeriod(since=since or "", until=until or date.today().isoformat())

    if not issues:
        return IssueMetrics(
            available=True,
            reason=NO_ISSUES_REASON,
            issues_analyzed=0,
            period=period,
            cycle_time=None,
            lead_time=None,
            wip=WIPMetrics(),
            blocked_time=BlockedTimeMetrics(),
            throughput=None,
            bug_ratio=BugRatioMetrics(),
        )

    logger.debug("Analyzing %d issues", len(issues))

    return IssueMetrics(
        available=True,
        issues_analyzed=len(issues),
        period=period,
        cycle_time=calculate_cycle_time(issues, mapping),
        lead_time=calculate_lead_time(issues, mapping),
        wip=calculate_wip(issues, mapping),
        blocked_time=calculate_blocked_time(issues, mapping, now),
        throughput=calculate_throughput(issues, mapping, _period_weeks(since, period.until)),
        bug_ratio=calculate_bug_ratio(issues, mapping),
        cycle_completion=calculate_cycle_completion(issues, mapping),
        estimate_accuracy=calculate_estimate_accuracy(issues, mapping),
    )
