"""Temporal analysis: commit history extraction and cross-branch reconciliation."""

from .git_extractor import GitExtractor
from .models import (
    AuthorStat,
    BlameStat,
    Commit,
    FileChange,
    FileStat,
    FileTypeStat,
    FilterOptions,
    PeriodStat,
    RepoSummary,
    TimeStats,
)
from .reconcile import BranchReconciler, ReconciledHistory

__all__ = [
    "GitExtractor",
    "BranchReconciler",
    "ReconciledHistory",
    "Commit",
    "FileChange",
    "FilterOptions",
    "AuthorStat",
    "FileStat",
    "FileTypeStat",
    "TimeStats",
    "PeriodStat",
    "RepoSummary",
    "BlameStat",
]
