"""RSS/Atom feed fetching and parsing.

Feeds are downloaded with ``requests`` (so every call has a bounded
timeout) and parsed with ``feedparser``.  Publish dates are kept as the
raw string and parsed separately under two fixed RFC 1123 layouts.
"""

import datetime as dt
import logging
import re
from dataclasses import dataclass
from email.utils import parsedate_to_datetime

import feedparser
import requests

from .downloaders import DEFAULT_HTTP_TIMEOUT, http_get
from .errors import FeedError

logger = logging.getLogger(__name__)

# RFC 1123 with either a numeric zone or a zone name.
PUBLISHED_RE = re.compile(
    r"^[A-Z][a-z]{2}, \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} (?:[+-]\d{4}|[A-Za-z]{1,5})$"
)


@dataclass(frozen=True)
class FeedItem:
    """A single feed entry.

    Attributes:
        title: Entry title.
        description: Entry description or summary (may contain HTML).
        link: Detail page URL.
        published: Raw publish date string as found in the feed.
        published_at: Parsed timezone-aware publish date, or None when the
            raw string matches neither accepted layout.
    """

    title: str
    description: str
    link: str
    published: str
    published_at: dt.datetime | None


def parse_published(value: str | None) -> dt.datetime | None:
    """Parse a feed publish date.

    Accepts ``Mon, 02 Jan 2006 15:04:05 -0700`` and
    ``Mon, 02 Jan 2006 15:04:05 EST``.  Zone names known to
    :mod:`email.utils` (UT, GMT, UTC and the US zones) map to their offset;
    any other name is taken as UTC.

    Args:
        value: Raw date string (may be None or empty).

    Returns:
        Timezone-aware datetime, or None if the value is not parseable.
    """
    text = (value or "").strip()
    if not PUBLISHED_RE.match(text):
        return None
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def _entry_to_item(entry) -> FeedItem:
    published = entry.get("published") or entry.get("updated") or ""
    return FeedItem(
        title=(entry.get("title") or "").strip(),
        description=entry.get("description") or entry.get("summary") or "",
        link=(entry.get("link") or "").strip(),
        published=published,
        published_at=parse_published(published),
    )


def parse_feed(content: bytes | str, url: str = "<memory>") -> list[FeedItem]:
    """Parse an RSS/Atom document into feed items.

    Args:
        content: Raw feed document.
        url: Source URL, used only in error messages.

    Returns:
        Feed items in document order.

    Raises:
        FeedError: If the document is malformed and yields no entries.
    """
    parsed = feedparser.parse(content)
    if parsed.bozo and not parsed.entries:
        raise FeedError(url, f"unparseable feed ({parsed.get('bozo_exception')})")
    if parsed.bozo:
        logger.warning("Feed %s parsed with warnings: %s", url, parsed.get("bozo_exception"))
    return [_entry_to_item(entry) for entry in parsed.entries]


def fetch_feed(
    session: requests.Session,
    url: str,
    timeout: tuple[float, float] = DEFAULT_HTTP_TIMEOUT,
    attempts: int = 1,
) -> list[FeedItem]:
    """Download and parse a feed.

    Args:
        session: Requests session.
        url: Feed URL.
        timeout: ``(connect, read)`` timeout in seconds.
        attempts: Total attempts for the request.

    Returns:
        Feed items in document order.

    Raises:
        FeedError: If the feed cannot be fetched or parsed.
    """
    try:
        r = http_get(session, url, timeout=timeout, attempts=attempts)
    except requests.RequestException as e:
        raise FeedError(url, str(e)) from e
    items = parse_feed(r.content, url)
    logger.info("Fetched %d items from %s", len(items), url)
    return items
