"""
devpulse - Developer Metrics Derivation

Derives commit-history statistics from git and flow metrics (cycle time,
lead time, blocked time, WIP, throughput, bug ratio) from issue status
timelines, and assembles both into one snapshot per collection run.
"""

__version__ = "0.1.0"

from .config import MetricsConfig, load_config
from .logging_config import configure_logging, setup_logging
from .snapshot import MetricsSnapshot, capture_snapshot
from .temporal import BranchReconciler, FilterOptions, GitExtractor
from .tracker import Issue, IssueMetrics, StatusMapping, analyze_issues

__all__ = [
    "capture_snapshot",  # Main entry point
    "MetricsSnapshot",
    "GitExtractor",
    "BranchReconciler",
    "FilterOptions",
    "analyze_issues",
    "Issue",
    "IssueMetrics",
    "StatusMapping",
    "MetricsConfig",
    "load_config",
    "setup_logging",
    "configure_logging",
]
