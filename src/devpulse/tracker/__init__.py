"""Issue tracking: status timelines and the flow metrics derived from them."""

from .adapters import issue_from_jira, issue_from_linear
from .analyzer import (
    analyze_issues,
    calculate_blocked_time,
    calculate_bug_ratio,
    calculate_cycle_completion,
    calculate_cycle_time,
    calculate_estimate_accuracy,
    calculate_lead_time,
    calculate_throughput,
    calculate_wip,
)
from .models import (
    DEFAULT_STATUS_MAPPING,
    LINEAR_STATUS_MAPPING,
    Issue,
    IssueCycle,
    IssueMetrics,
    StatusCategory,
    StatusMapping,
    StatusTransition,
)
from .pagination import fetch_all_pages, fetch_all_pages_from_config
from .timeline import BlockedInterval, blocked_days, done_date, first_in_progress_date, fold_transitions

__all__ = [
    "Issue",
    "IssueCycle",
    "IssueMetrics",
    "StatusCategory",
    "StatusMapping",
    "StatusTransition",
    "DEFAULT_STATUS_MAPPING",
    "LINEAR_STATUS_MAPPING",
    "BlockedInterval",
    "fold_transitions",
    "blocked_days",
    "first_in_progress_date",
    "done_date",
    "analyze_issues",
    "calculate_cycle_time",
    "calculate_lead_time",
    "calculate_wip",
    "calculate_blocked_time",
    "calculate_throughput",
    "calculate_bug_ratio",
    "calculate_cycle_completion",
    "calculate_estimate_accuracy",
    "issue_from_jira",
    "issue_from_linear",
    "fetch_all_pages",
    "fetch_all_pages_from_config",
]
