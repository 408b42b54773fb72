"""Time-bucket keys, timestamp parsing and grouping helpers.

Bucket keys sort lexicographically in chronological order:
    day    -> YYYY-MM-DD
    week   -> YYYY-Www   (ISO 8601 year and week, Monday start)
    month  -> YYYY-MM
    year   -> YYYY
"""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Callable, Hashable, Iterable, Literal, TypeVar, Union

GroupBy = Literal["day", "week", "month", "year"]

GROUP_BY_CHOICES: tuple[str, ...] = ("day", "week", "month", "year")

DAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

DateLike = Union[date, datetime]

# "+0000" / "-0530" offsets (Jira) -> "+00:00" / "-05:30"
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing ``Z``, compact ``+HHMM`` offsets and plain dates.
    Naive values are taken as UTC.

    Raises:
        ValueError: If the string is not an ISO-8601 timestamp
    """
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET_RE.sub(r"\1:\2", text) if "T" in text else text

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, truncated toward zero."""
    return int((end - start).total_seconds() / 86400)


def weeks_between(start: datetime, end: datetime) -> int:
    """Whole weeks from start to end, truncated toward zero."""
    return int(days_between(start, end) / 7)


def day_key(when: DateLike) -> str:
    return f"{when.year:04d}-{when.month:02d}-{when.day:02d}"


def week_key(when: DateLike) -> str:
    iso_year, iso_week, _ = when.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def month_key(when: DateLike) -> str:
    return f"{when.year:04d}-{when.month:02d}"


def year_key(when: DateLike) -> str:
    return f"{when.year:04d}"


_KEY_FUNCS: dict[str, Callable[[DateLike], str]] = {
    "day": day_key,
    "week": week_key,
    "month": month_key,
    "year": year_key,
}


def period_key(when: DateLike, group_by: GroupBy) -> str:
    """Bucket key for ``when`` at the requested granularity.

    Raises:
        ValueError: If group_by is not one of day/week/month/year
    """
    try:
        return _KEY_FUNCS[group_by](when)
    except KeyError:
        raise ValueError(
            f"Unknown period '{group_by}', expected one of {', '.join(GROUP_BY_CHOICES)}"
        )


def day_name(when: DateLike) -> str:
    return DAY_NAMES[when.weekday()]


def group_by_key(items: Iterable[T], key_fn: Callable[[T], K]) -> dict[K, list[T]]:
    """Group items into lists by key, preserving input order within a group."""
    groups: dict[K, list[T]] = defaultdict(list)
    for item in items:
        groups[key_fn(item)].append(item)
    return dict(groups)


def count_by_key(items: Iterable[T], key_fn: Callable[[T], K]) -> dict[K, int]:
    """Count items per key."""
    counts: dict[K, int] = defaultdict(int)
    for item in items:
        counts[key_fn(item)] += 1
    return dict(counts)
