"""Download link extraction from exploit detail pages.

Each configured source picks one handler by its ``kind``.  Handlers share
the anchor scan.  Each site's handler knows which ``href`` fragment marks a
download link and what base URL relative links resolve against; a source
config may override either.
"""

import logging
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from .config import SourceConfig
from .downloaders import DEFAULT_HTTP_TIMEOUT, http_get
from .errors import ScrapeError

logger = logging.getLogger(__name__)


class SourceHandler:
    """Base class for per-site download link extractors.

    Subclasses set ``kind`` and the site defaults.

    Attributes:
        kind: Source kind this handler serves (matches ``SourceConfig.kind``).
        base_url: Base URL for qualifying relative links.
        link_pattern: Substring an ``href`` must contain.
    """

    kind: str = "base"
    default_base_url: str = ""
    default_link_pattern: str = ""

    def __init__(self, base_url: str | None = None, link_pattern: str | None = None):
        self.base_url = base_url or self.default_base_url
        self.link_pattern = link_pattern or self.default_link_pattern
        if not self.base_url or not self.link_pattern:
            raise ValueError(f"{type(self).__name__} needs a base_url and a link_pattern")

    def find_links(self, html: str | bytes) -> list[str]:
        """Scan every anchor in ``html`` for download links.

        Returns:
            Absolute URLs in document order, without duplicates.
        """
        soup = BeautifulSoup(html, "html.parser")
        links: list[str] = []
        for a in soup.find_all("a", href=True):
            href = a["href"].strip()
            if self.link_pattern not in href:
                continue
            full = self.qualify(href)
            if full not in links:
                links.append(full)
        return links

    def qualify(self, href: str) -> str:
        """Resolve ``href`` against the site's base URL."""
        return urljoin(self.base_url.rstrip("/") + "/", href)

    def extract_links(
        self,
        session: requests.Session,
        page_url: str,
        *,
        timeout: tuple[float, float] = DEFAULT_HTTP_TIMEOUT,
        attempts: int = 1,
    ) -> list[str]:
        """Fetch a detail page and return its download links.

        Args:
            session: Requests session.
            page_url: Detail page URL (a feed item's link).
            timeout: ``(connect, read)`` timeout in seconds.
            attempts: Total attempts for the request.

        Returns:
            Zero or more absolute download URLs.

        Raises:
            ScrapeError: If the page cannot be fetched.
        """
        try:
            r = http_get(session, page_url, timeout=timeout, attempts=attempts)
        except requests.RequestException as e:
            raise ScrapeError(f"Error fetching {page_url}: {e}") from e

        links = self.find_links(r.content)
        if not links:
            logger.info("No exploit links found on page: %s", page_url)
        return links


class ExploitDBHandler(SourceHandler):
    """Exploit Database entries (``/download/<id>`` buttons)."""

    kind = "exploitdb"
    default_base_url = "https://www.exploit-db.com"
    default_link_pattern = "/download/"


class PacketStormHandler(SourceHandler):
    """Packet Storm file pages (``/files/download/<id>/<name>`` links)."""

    kind = "packetstorm"
    default_base_url = "https://packetstormsecurity.com"
    default_link_pattern = "/files/download/"


HANDLERS: dict[str, type[SourceHandler]] = {
    ExploitDBHandler.kind: ExploitDBHandler,
    PacketStormHandler.kind: PacketStormHandler,
}


def handler_for(source: SourceConfig) -> SourceHandler:
    """Build the link extractor for a configured source.

    ``base_url`` and ``link_pattern`` from the source override the handler's
    site defaults when set.

    Raises:
        KeyError: If no handler is registered for ``source.kind``.
    """
    return HANDLERS[source.kind](base_url=source.base_url, link_pattern=source.link_pattern)
