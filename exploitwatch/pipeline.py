"""Run orchestration for report and download modes.

Both modes share ``collect_matches``: fetch every configured feed and keep
the recent RCE items.  Download mode never raises for a single item;
each item ends up as an ``ItemOutcome`` in the returned ``RunSummary``.
"""

import datetime as dt
import logging
from dataclasses import dataclass, field
from pathlib import Path

import requests

from .config import AppConfig, SourceConfig
from .downloaders import clean_title, download_file
from .errors import DownloadError, FeedError, ScrapeError
from .feeds import FeedItem, fetch_feed
from .filters import filter_items
from .report import Vulnerability, build_vulnerability, write_html_report
from .scrapers import handler_for

logger = logging.getLogger(__name__)

DOWNLOADED = "downloaded"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class ItemOutcome:
    """What happened to one matched feed item.

    Attributes:
        title: Feed item title.
        link: Detail page URL.
        status: ``downloaded``, ``skipped``, or ``failed``.
        reason: Why the item was skipped or failed (empty on success).
        paths: Files written for this item.
    """

    title: str
    link: str
    status: str
    reason: str = ""
    paths: list[Path] = field(default_factory=list)


@dataclass
class RunSummary:
    """Aggregated result of one run.

    Attributes:
        sources_fetched: Names of feeds fetched successfully.
        sources_failed: ``(name, error)`` for feeds that failed.
        matched: Number of items that passed the RCE filter.
        outcomes: Per-item outcomes (download mode only).
    """

    sources_fetched: list[str] = field(default_factory=list)
    sources_failed: list[tuple[str, str]] = field(default_factory=list)
    matched: int = 0
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def downloaded(self) -> int:
        return self._count(DOWNLOADED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    def describe(self) -> str:
        """One-line human summary."""
        return (
            f"{len(self.sources_fetched)} feed(s) fetched, {len(self.sources_failed)} failed; "
            f"{self.matched} matched; {self.downloaded} downloaded, "
            f"{self.skipped} skipped, {self.failed} failed"
        )


def collect_matches(
    config: AppConfig,
    session: requests.Session,
    now: dt.datetime | None = None,
    *,
    fail_fast: bool = True,
    summary: RunSummary | None = None,
) -> list[tuple[SourceConfig, FeedItem]]:
    """Fetch all configured feeds and keep the recent RCE items.

    Args:
        config: Application config.
        session: Requests session.
        now: Reference time for the recency window.
        fail_fast: Re-raise the first ``FeedError``.  When False the failing
            source is logged, recorded in ``summary``, and skipped.
        summary: Optional summary to record source results in.

    Returns:
        ``(source, item)`` pairs in source then feed order.

    Raises:
        FeedError: If a feed fails and ``fail_fast`` is set.
    """
    if now is None:
        now = dt.datetime.now(dt.timezone.utc)

    matches: list[tuple[SourceConfig, FeedItem]] = []
    for source in config.sources:
        try:
            items = fetch_feed(
                session,
                source.feed_url,
                timeout=config.http.timeout,
                attempts=config.http.retries,
            )
        except FeedError as e:
            if fail_fast:
                raise
            logger.warning("Error fetching feed %s: %s", source.name, e)
            if summary is not None:
                summary.sources_failed.append((source.name, str(e)))
            continue

        if summary is not None:
            summary.sources_fetched.append(source.name)
        kept = filter_items(items, now, config.filter.keywords, config.filter.window_months)
        logger.info("%s: %d of %d items are recent RCE entries", source.name, len(kept), len(items))
        matches.extend((source, item) for item in kept)

    if summary is not None:
        summary.matched = len(matches)
    return matches


def build_vulnerabilities(config: AppConfig, items: list[FeedItem]) -> list[Vulnerability]:
    return [
        build_vulnerability(
            item,
            min_length=config.report.min_description_length,
            fallback=config.report.fallback_description,
            trust_html=config.report.trust_feed_html,
        )
        for item in items
    ]


def run_report(
    config: AppConfig,
    session: requests.Session,
    now: dt.datetime | None = None,
) -> tuple[Path, int]:
    """Fetch, filter, and write the HTML report.

    Returns:
        ``(report_path, row_count)``.

    Raises:
        FeedError: If any feed cannot be fetched or parsed.
    """
    matches = collect_matches(config, session, now, fail_fast=True)
    vulns = build_vulnerabilities(config, [item for _, item in matches])
    write_html_report(config.report.output, vulns)
    return config.report.output, len(vulns)


def process_item(
    config: AppConfig,
    session: requests.Session,
    source: SourceConfig,
    item: FeedItem,
) -> ItemOutcome:
    """Scrape one item's detail page and download its artifacts."""
    logger.info("Title: %s", item.title)
    logger.info("Link: %s", item.link)
    logger.info("Published: %s", item.published)

    if not item.link:
        return ItemOutcome(item.title, item.link, SKIPPED, "no detail link")

    handler = handler_for(source)
    try:
        links = handler.extract_links(
            session,
            item.link,
            timeout=config.http.timeout,
            attempts=config.http.retries,
        )
    except ScrapeError as e:
        logger.warning("%s", e)
        return ItemOutcome(item.title, item.link, FAILED, str(e))

    if not links:
        return ItemOutcome(item.title, item.link, SKIPPED, "no download links")

    base_name = clean_title(item.title)
    outcome = ItemOutcome(item.title, item.link, DOWNLOADED)
    errors: list[str] = []
    for link in links:
        try:
            path = download_file(
                session,
                link,
                config.download.output_dir,
                base_name,
                timeout=config.http.timeout,
                attempts=config.http.retries,
            )
        except DownloadError as e:
            logger.warning("%s", e)
            errors.append(str(e))
            continue
        outcome.paths.append(path)

    if errors:
        outcome.status = FAILED
        outcome.reason = "; ".join(errors)
    return outcome


def run_download(
    config: AppConfig,
    session: requests.Session,
    now: dt.datetime | None = None,
) -> RunSummary:
    """Fetch, filter, scrape, and download.

    Failing feeds and items are recorded in the summary and the run
    continues.

    Returns:
        The run summary.
    """
    summary = RunSummary()
    matches = collect_matches(config, session, now, fail_fast=False, summary=summary)
    for source, item in matches:
        summary.outcomes.append(process_item(config, session, source, item))
    return summary
