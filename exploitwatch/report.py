"""HTML report generation using Jinja2 templates.

The template lives at ``exploitwatch/templates/report.html.j2``.
Autoescaping is on, so feed text is escaped unless a vulnerability's
description was explicitly marked as trusted markup.
"""

import datetime as dt
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from .config import DEFAULT_FALLBACK_DESCRIPTION
from .feeds import FeedItem

_TEMPLATES_DIR = Path(__file__).parent / "templates"

READ_MORE_HTML = '<br><a href="{}" target="_blank">Read more</a>'
READ_MORE = Markup(READ_MORE_HTML)


@dataclass(frozen=True)
class Vulnerability:
    """A report row.

    Attributes:
        title: Exploit title (plain text, escaped on render).
        description_html: Ready-to-render description markup.
        link: Detail page URL; the title links to it when set.
    """

    title: str
    description_html: Markup
    link: str


def render_description(
    description: str,
    link: str,
    *,
    min_length: int = 50,
    fallback: str = DEFAULT_FALLBACK_DESCRIPTION,
    trust_html: bool = False,
) -> Markup:
    """Build the description cell for a report row.

    The description gets a ``Read more`` anchor when there is a link.  If
    the combined text (measured before escaping) is still shorter than
    ``min_length``, the whole cell is replaced by ``fallback``.  With a link
    the anchor alone usually clears the threshold, so the fallback mostly
    applies to link-less items.

    Args:
        description: Raw feed description.
        link: Detail page URL (may be empty).
        min_length: Threshold on description plus anchor below which the
            fallback is used.
        fallback: Fallback text.
        trust_html: Pass the feed description through as raw HTML.

    Returns:
        Markup safe to insert into the template.
    """
    description = description or ""
    anchor = READ_MORE_HTML.format(link) if link else ""
    if len(description) + len(anchor) < min_length:
        return escape(fallback)

    out = Markup(description) if trust_html else escape(description)
    if link:
        out += READ_MORE.format(link)
    return out


def build_vulnerability(
    item: FeedItem,
    *,
    min_length: int = 50,
    fallback: str = DEFAULT_FALLBACK_DESCRIPTION,
    trust_html: bool = False,
) -> Vulnerability:
    """Project a feed item into a report row."""
    return Vulnerability(
        title=item.title,
        description_html=render_description(
            item.description,
            item.link,
            min_length=min_length,
            fallback=fallback,
            trust_html=trust_html,
        ),
        link=item.link,
    )


def _now_utc_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()


def render_html_report(vulnerabilities: Sequence[Vulnerability], generated_at: str | None = None) -> str:
    """Render the report to a string."""
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html", "j2"), default=True),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("report.html.j2")
    return template.render(
        generated_at=generated_at or _now_utc_iso(),
        total=len(vulnerabilities),
        vulnerabilities=vulnerabilities,
    )


def write_html_report(
    path: Path,
    vulnerabilities: Sequence[Vulnerability],
    generated_at: str | None = None,
) -> None:
    """Write a self-contained HTML report.

    Args:
        path: Output path for the HTML file.
        vulnerabilities: Rows to render.
        generated_at: Timestamp shown in the header (defaults to now).
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    rendered = render_html_report(vulnerabilities, generated_at)

    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        f.write(rendered)
    tmp.replace(path)
