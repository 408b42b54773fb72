"""Snapshot assembly: one combined metrics record per collection run."""

from .capture import build_period_label, capture_snapshot
from .models import GitMetricsSection, MetricsSnapshot, PeriodLabel, UserIdentity

__all__ = [
    "capture_snapshot",
    "build_period_label",
    "MetricsSnapshot",
    "GitMetricsSection",
    "PeriodLabel",
    "UserIdentity",
]
