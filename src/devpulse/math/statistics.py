"""Descriptive statistics: central tendency, nearest-rank percentiles, IQR filtering."""

import math
from typing import Sequence

import numpy as np


class Statistics:
    """Statistical aggregation methods.

    Every method accepts an empty sequence and returns 0 instead of
    raising, so callers can aggregate sparse data without guards.
    """

    @staticmethod
    def mean(values: Sequence[float]) -> float:
        """Compute arithmetic mean."""
        if not len(values):
            return 0.0
        return float(np.mean(values))

    @staticmethod
    def total(values: Sequence[float]) -> float:
        """Sum of values (0 for empty input)."""
        return float(sum(values))

    @staticmethod
    def minimum(values: Sequence[float]) -> float:
        if not len(values):
            return 0.0
        return min(values)

    @staticmethod
    def maximum(values: Sequence[float]) -> float:
        if not len(values):
            return 0.0
        return max(values)

    @staticmethod
    def median(values: Sequence[float]) -> float:
        """
        Middle value of the sorted data.

        For an even count the two middle values are averaged.
        """
        if not len(values):
            return 0.0
        ordered = sorted(values)
        mid = len(ordered) // 2
        if len(ordered) % 2:
            return ordered[mid]
        return (ordered[mid - 1] + ordered[mid]) / 2

    @staticmethod
    def percentile(values: Sequence[float], p: float) -> float:
        """
        Nearest-rank percentile.

        index = ceil(p / 100 * n) - 1, clamped to [0, n - 1]. The result is
        always an observed value, never an interpolation.

        Args:
            values: Observations (any order)
            p: Percentile in [0, 100]

        Returns:
            The percentile value, 0 for empty input
        """
        if not len(values):
            return 0.0
        ordered = sorted(values)
        index = math.ceil((p / 100) * len(ordered)) - 1
        index = min(max(0, index), len(ordered) - 1)
        return ordered[index]

    @staticmethod
    def stdev(values: Sequence[float]) -> float:
        """Population standard deviation (ddof=0)."""
        if not len(values):
            return 0.0
        return float(np.std(values))

    @staticmethod
    def round_to(value: float, decimals: int = 2) -> float:
        """Round half away from zero, matching how reports display numbers."""
        multiplier = 10**decimals
        scaled = abs(value) * multiplier
        rounded = math.floor(scaled + 0.5) / multiplier
        return math.copysign(rounded, value) if value else 0.0

    @staticmethod
    def percentage(part: float, total: float) -> float:
        """part / total * 100 rounded to 2 decimals; 0 when total is 0."""
        if total == 0:
            return 0.0
        return Statistics.round_to((part / total) * 100, 2)

    @staticmethod
    def percentage_change(current: float, previous: float) -> float:
        """
        Relative change from previous to current, in percent.

        With no previous value any positive current counts as a 100%
        increase; otherwise the change is 0.
        """
        if previous == 0:
            return 100.0 if current > 0 else 0.0
        return Statistics.round_to(((current - previous) / previous) * 100, 2)

    @staticmethod
    def filter_outliers(values: Sequence[float], multiplier: float = 1.5) -> list[float]:
        """
        Drop values outside [Q1 - k*IQR, Q3 + k*IQR].

        Quartiles use the nearest-rank percentile. Fewer than 4 samples are
        returned unchanged since quartiles are meaningless at that size.
        """
        if len(values) < 4:
            return list(values)

        q1 = Statistics.percentile(values, 25)
        q3 = Statistics.percentile(values, 75)
        iqr = q3 - q1
        lower_bound = q1 - multiplier * iqr
        upper_bound = q3 + multiplier * iqr

        return [v for v in values if lower_bound <= v <= upper_bound]
