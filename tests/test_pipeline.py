"""Tests for exploitwatch.pipeline — report and download runs over fake feeds."""

import datetime as dt
from pathlib import Path

import pytest
import requests

from conftest import make_rss, rfc1123z
from exploitwatch.config import AppConfig, DownloadConfig, ReportConfig, SourceConfig
from exploitwatch.errors import FeedError
from exploitwatch.pipeline import (
    DOWNLOADED,
    FAILED,
    SKIPPED,
    ItemOutcome,
    RunSummary,
    collect_matches,
    run_download,
    run_report,
)

EDB_FEED = "https://edb.example.test/rss.xml"
PS_FEED = "https://ps.example.test/rss/"
LONG = "An unauthenticated attacker can upload a crafted archive and run arbitrary commands."


def _config(tmp_path: Path, *sources: SourceConfig) -> AppConfig:
    return AppConfig(
        sources=list(sources)
        or [
            SourceConfig(
                name="edb",
                kind="exploitdb",
                feed_url=EDB_FEED,
                base_url="https://edb.example.test",
                link_pattern="/download/",
            ),
        ],
        report=ReportConfig(output=tmp_path / "vulnerabilities_report.html"),
        download=DownloadConfig(output_dir=tmp_path / "exploits"),
    )


def _ps_source() -> SourceConfig:
    return SourceConfig(
        name="ps",
        kind="packetstorm",
        feed_url=PS_FEED,
        base_url="https://ps.example.test",
        link_pattern="/files/download/",
    )


def _ago(days: int) -> str:
    return rfc1123z(dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=days))


# ── collect_matches ──────────────────────────────────────────────────────────


class TestCollectMatches:
    def test_filters_across_sources(self, tmp_path: Path, fake_session):
        session = fake_session(
            {
                EDB_FEED: make_rss(
                    [
                        {"title": "A RCE", "published": _ago(10)},
                        {"title": "B XSS", "published": _ago(10)},
                        {"title": "C RCE", "published": _ago(500)},
                    ]
                ),
                PS_FEED: make_rss([{"title": "D Remote Code Execution", "published": _ago(3)}]),
            }
        )
        cfg = _config(tmp_path, _config(tmp_path).sources[0], _ps_source())
        summary = RunSummary()
        matches = collect_matches(cfg, session, summary=summary)
        assert [(s.name, i.title) for s, i in matches] == [("edb", "A RCE"), ("ps", "D Remote Code Execution")]
        assert summary.sources_fetched == ["edb", "ps"]
        assert summary.matched == 2

    def test_fail_fast(self, tmp_path: Path, fake_session):
        session = fake_session({EDB_FEED: requests.ConnectionError("down")})
        with pytest.raises(FeedError):
            collect_matches(_config(tmp_path), session)

    def test_continue_on_feed_error(self, tmp_path: Path, fake_session):
        session = fake_session({PS_FEED: make_rss([{"title": "RCE", "published": _ago(1)}])})
        cfg = _config(tmp_path, _config(tmp_path).sources[0], _ps_source())
        summary = RunSummary()
        matches = collect_matches(cfg, session, fail_fast=False, summary=summary)
        assert len(matches) == 1
        assert summary.sources_fetched == ["ps"]
        assert summary.sources_failed[0][0] == "edb"


# ── run_report ───────────────────────────────────────────────────────────────


class TestRunReport:
    def test_end_to_end(self, tmp_path: Path, fake_session):
        link = "https://edb.example.test/exploits/50001"
        session = fake_session(
            {
                EDB_FEED: make_rss(
                    [
                        {
                            "title": "Example Remote Code Execution Exploit",
                            "description": LONG,
                            "link": link,
                            "published": _ago(30),
                        }
                    ]
                )
            }
        )
        path, count = run_report(_config(tmp_path), session)
        assert count == 1
        assert path == tmp_path / "vulnerabilities_report.html"
        html = path.read_text(encoding="utf-8")
        assert "<tr>" in html
        assert '<td><a href="{}" target="_blank">Example Remote Code Execution Exploit</a></td>'.format(link) in html
        assert f'<a href="{link}" target="_blank">Read more</a>' in html

    def test_short_description_keeps_read_more(self, tmp_path: Path, fake_session):
        link = "https://edb.example.test/exploits/50001"
        session = fake_session(
            {
                EDB_FEED: make_rss(
                    [
                        {
                            "title": "Example Remote Code Execution Exploit",
                            "description": "webapps exploit",
                            "link": link,
                            "published": _ago(30),
                        }
                    ]
                )
            }
        )
        path, count = run_report(_config(tmp_path), session)
        html = path.read_text(encoding="utf-8")
        assert count == 1
        assert f'webapps exploit<br><a href="{link}" target="_blank">Read more</a>' in html
        assert "No detailed description available" not in html

    def test_feed_failure_is_fatal(self, tmp_path: Path, fake_session):
        session = fake_session({})
        with pytest.raises(FeedError):
            run_report(_config(tmp_path), session)
        assert not (tmp_path / "vulnerabilities_report.html").exists()

    def test_no_matches_writes_empty_report(self, tmp_path: Path, fake_session):
        session = fake_session({EDB_FEED: make_rss([{"title": "XSS", "published": _ago(1)}])})
        path, count = run_report(_config(tmp_path), session)
        assert count == 0
        assert "No matching exploits found." in path.read_text(encoding="utf-8")


# ── run_download ─────────────────────────────────────────────────────────────


class TestRunDownload:
    def test_downloads_skips_and_fails(self, tmp_path: Path, fake_session):
        session = fake_session(
            {
                EDB_FEED: make_rss(
                    [
                        {"title": "Foo/Bar (RCE) Remote Code Execution!!", "link": "https://edb.example.test/exploits/1", "published": _ago(5)},
                        {"title": "Quiet RCE", "link": "https://edb.example.test/exploits/2", "published": _ago(5)},
                        {"title": "Broken RCE", "link": "https://edb.example.test/exploits/3", "published": _ago(5)},
                        {"title": "Gone RCE", "link": "https://edb.example.test/exploits/4", "published": _ago(5)},
                    ]
                ),
                "https://edb.example.test/exploits/1": b'<a href="/download/1">Download</a>',
                "https://edb.example.test/download/1": b"#include <stdio.h>\nint main() { return 0; }\n",
                "https://edb.example.test/exploits/2": b"<html><body>nothing here</body></html>",
                "https://edb.example.test/exploits/3": b'<a href="/download/3">Download</a>',
                "https://edb.example.test/exploits/4": requests.ConnectionError("refused"),
            }
        )
        summary = run_download(_config(tmp_path), session)

        by_title = {o.title: o for o in summary.outcomes}
        ok = by_title["Foo/Bar (RCE) Remote Code Execution!!"]
        assert ok.status == DOWNLOADED
        assert ok.paths == [tmp_path / "exploits" / "Foo_Bar.c"]
        assert ok.paths[0].exists()

        assert by_title["Quiet RCE"].status == SKIPPED
        assert by_title["Quiet RCE"].reason == "no download links"

        broken = by_title["Broken RCE"]
        assert broken.status == FAILED
        assert "404" in broken.reason
        assert broken.paths == []

        assert by_title["Gone RCE"].status == FAILED
        assert "refused" in by_title["Gone RCE"].reason

        assert (summary.downloaded, summary.skipped, summary.failed) == (1, 1, 2)
        assert summary.matched == 4
        assert "1 downloaded" in summary.describe()

    def test_feed_error_not_fatal(self, tmp_path: Path, fake_session):
        session = fake_session({})
        summary = run_download(_config(tmp_path), session)
        assert summary.sources_failed and summary.outcomes == []

    def test_item_without_link(self, tmp_path: Path, fake_session):
        session = fake_session({EDB_FEED: make_rss([{"title": "Linkless RCE", "published": _ago(2)}])})
        summary = run_download(_config(tmp_path), session)
        assert summary.outcomes[0].status == SKIPPED
        assert summary.outcomes[0].reason == "no detail link"


class TestRunSummary:
    def test_counts(self):
        s = RunSummary(
            outcomes=[
                ItemOutcome("a", "l", DOWNLOADED),
                ItemOutcome("b", "l", DOWNLOADED),
                ItemOutcome("c", "l", FAILED, "x"),
            ]
        )
        assert s.downloaded == 2
        assert s.failed == 1
        assert s.skipped == 0
