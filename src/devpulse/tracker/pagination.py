"""Drain a cursor-paginated issue source before analysis."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable, Optional, TypeVar

from ..exceptions import DevPulseError, IssueFetchError
from ..logging_config import get_logger

if TYPE_CHECKING:
    from ..config import MetricsConfig

logger = get_logger(__name__)

T = TypeVar("T")

# fetch_page(cursor) -> (items, next_cursor); next_cursor is None on the last page
PageFetcher = Callable[[Optional[str]], tuple[list[T], Optional[str]]]


def fetch_all_pages(
    fetch_page: PageFetcher,
    source: str = "issues",
    delay_seconds: float = 0.1,
    max_pages: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[T]:
    """Collect every page from ``fetch_page``.

    Metrics must see the complete collection, so a failure on any page
    aborts the whole fetch instead of returning a partial list.

    Args:
        fetch_page: Called with the previous page's cursor (None first)
        source: Source name used in error messages
        delay_seconds: Pause between requests to stay under rate limits
        max_pages: Optional hard stop for runaway cursors
        sleep: Injected for tests

    Raises:
        IssueFetchError: If any page request fails
    """
    items: list[T] = []
    cursor: Optional[str] = None
    pages = 0

    while True:
        try:
            page, cursor = fetch_page(cursor)
        except DevPulseError:
            raise
        except Exception as e:
            raise IssueFetchError(source, f"page {pages + 1}: {e}") from e

        items.extend(page)
        pages += 1
        logger.debug("Fetched page %d from %s (%d items)", pages, source, len(page))

        if cursor is None:
            break
        if max_pages is not None and pages >= max_pages:
            logger.warning("Stopped %s pagination after %d pages", source, pages)
            break
        if delay_seconds > 0:
            sleep(delay_seconds)

    return items


def fetch_all_pages_from_config(
    fetch_page: PageFetcher,
    config: MetricsConfig,
    source: str = "issues",
    max_pages: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[T]:
    """:func:`fetch_all_pages` paced by ``config.page_delay_seconds``."""
    return fetch_all_pages(
        fetch_page,
        source=source,
        delay_seconds=config.page_delay_seconds,
        max_pages=max_pages,
        sleep=sleep,
    )
