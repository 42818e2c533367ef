"""Shared fixtures: canned RSS documents and a URL-routed fake session."""

import datetime as dt
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest
import requests

RFC1123Z = "%a, %d %b %Y %H:%M:%S %z"


def rfc1123z(when: dt.datetime) -> str:
    return when.strftime(RFC1123Z)


def make_rss(items: list[dict[str, Any]], title: str = "Test Feed") -> bytes:
    """Build an RSS 2.0 document from ``{title, description, link, published}`` dicts."""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0"><channel>',
        f"<title>{title}</title><link>https://example.test/</link><description>feed</description>",
    ]
    for item in items:
        parts.append("<item>")
        parts.append(f"<title>{item.get('title', '')}</title>")
        if "description" in item:
            parts.append(f"<description><![CDATA[{item['description']}]]></description>")
        if "link" in item:
            parts.append(f"<link>{item['link']}</link>")
        if "published" in item:
            parts.append(f"<pubDate>{item['published']}</pubDate>")
        parts.append("</item>")
    parts.append("</channel></rss>")
    return "\n".join(parts).encode("utf-8")


def make_response(content: bytes = b"", status: int = 200) -> MagicMock:
    """A ``requests.Response`` stand-in usable as a context manager."""
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    resp.iter_content.return_value = [content]
    resp.__enter__ = lambda s: s
    resp.__exit__ = MagicMock(return_value=False)
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        resp.raise_for_status = MagicMock()
    return resp


@pytest.fixture
def fake_session() -> Callable[[dict[str, Any]], MagicMock]:
    """Build a session whose ``get`` answers from a ``{url: bytes | Exception | response}`` map.

    Unknown URLs get a 404.
    """

    def _build(routes: dict[str, Any]) -> MagicMock:
        session = MagicMock()

        def _get(url, **kwargs):
            value = routes.get(url)
            if value is None:
                return make_response(b"", status=404)
            if isinstance(value, Exception):
                raise value
            if isinstance(value, MagicMock):
                return value
            return make_response(value)

        session.get.side_effect = _get
        return session

    return _build
