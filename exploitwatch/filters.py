"""RCE keyword and recency filtering.

Pure functions over ``FeedItem`` values.  No I/O.
"""

import calendar
import datetime as dt
import logging
from typing import Iterable, Sequence

from .feeds import FeedItem

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = ("rce", "remote code execution")
DEFAULT_WINDOW_MONTHS = 12


def months_before(when: dt.datetime, months: int) -> dt.datetime:
    """Shift a datetime back by whole calendar months.

    The day is clamped to the last day of the target month, so
    ``Mar 31`` minus one month is ``Feb 28`` (or ``Feb 29``).
    """
    total = when.year * 12 + (when.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(when.day, calendar.monthrange(year, month)[1])
    return when.replace(year=year, month=month, day=day)


def mentions_rce(item: FeedItem, keywords: Sequence[str] = DEFAULT_KEYWORDS) -> bool:
    """Check whether the title or description mentions any keyword.

    Matching is a case-insensitive substring test.
    """
    title = item.title.lower()
    description = item.description.lower()
    for keyword in keywords:
        kw = keyword.lower()
        if kw and (kw in title or kw in description):
            return True
    return False


def within_window(
    published_at: dt.datetime | None,
    now: dt.datetime,
    months: int = DEFAULT_WINDOW_MONTHS,
) -> bool:
    """Check ``now - months < published_at < now``.

    Returns False for a missing date.
    """
    if published_at is None:
        return False
    return months_before(now, months) < published_at < now


def is_recent_rce(
    item: FeedItem,
    now: dt.datetime,
    keywords: Sequence[str] = DEFAULT_KEYWORDS,
    months: int = DEFAULT_WINDOW_MONTHS,
) -> bool:
    """Return True for an RCE item published inside the trailing window."""
    if not mentions_rce(item, keywords):
        return False
    if item.published_at is None:
        logger.debug("Skipping %r: unparseable publish date %r", item.title, item.published)
        return False
    return within_window(item.published_at, now, months)


def filter_items(
    items: Iterable[FeedItem],
    now: dt.datetime | None = None,
    keywords: Sequence[str] = DEFAULT_KEYWORDS,
    months: int = DEFAULT_WINDOW_MONTHS,
) -> list[FeedItem]:
    """Keep the recent RCE items, preserving feed order.

    Args:
        items: Feed items.
        now: Reference time (defaults to the current UTC time).
        keywords: RCE keywords.
        months: Trailing window in calendar months.

    Returns:
        Matching items.
    """
    if now is None:
        now = dt.datetime.now(dt.timezone.utc)
    return [i for i in items if is_recent_rce(i, now, keywords, months)]
