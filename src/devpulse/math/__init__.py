"""Statistical aggregation and time-bucketing primitives."""

from .periods import (
    GroupBy,
    count_by_key,
    day_key,
    days_between,
    group_by_key,
    month_key,
    parse_timestamp,
    period_key,
    week_key,
    year_key,
)
from .statistics import Statistics

__all__ = [
    "Statistics",
    "GroupBy",
    "parse_timestamp",
    "days_between",
    "day_key",
    "week_key",
    "month_key",
    "year_key",
    "period_key",
    "group_by_key",
    "count_by_key",
]
