"""Configuration models using Pydantic.

Feed sources, filter keywords, thresholds, and output locations are data
rather than code.  Everything has a default matching the two public
exploit feeds, so running without a config file works out of the box.
"""

import json
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_FALLBACK_DESCRIPTION = (
    "No detailed description available. For more information, visit the full exploit entry."
)

CONFIG_FILENAMES = ("exploitwatch.yaml", "exploitwatch.yml", "exploitwatch.json")


class SourceConfig(BaseModel):
    """A single exploit feed and how to scrape its detail pages.

    Example YAML::

        sources:
          - name: exploit-db
            kind: exploitdb
            feed_url: https://www.exploit-db.com/rss.xml

    Attributes:
        name: Human-readable label used in logs.
        kind: Which link-extraction handler to use for detail pages.
        feed_url: RSS/Atom feed URL.
        base_url: Override for the base URL that relative download links are
            resolved against.  Defaults to the handler's site URL.
        link_pattern: Override for the substring an anchor ``href`` must
            contain to count as a download link.  Defaults to the handler's
            site pattern.
    """

    name: str
    kind: Literal["exploitdb", "packetstorm"]
    feed_url: str
    base_url: str | None = None
    link_pattern: str | None = Field(default=None, min_length=1)


class FilterConfig(BaseModel):
    """Keyword and recency filter settings.

    Attributes:
        keywords: Case-insensitive substrings that mark an item as RCE.
        window_months: Trailing window, in calendar months, an item's
            publish date must fall in.
    """

    keywords: list[str] = Field(default_factory=lambda: ["rce", "remote code execution"])
    window_months: int = Field(default=12, ge=1, le=120)

    @field_validator("keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, v: Any) -> list[str]:
        """Normalize each keyword: lowercase, strip, collapse whitespace.

        A single string is taken as a one-keyword list.  An empty list would
        match nothing, so it is rejected.
        """
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set)):
            raise ValueError("keywords must be a string or a list of strings")

        out: list[str] = []
        for item in v:
            if not isinstance(item, str):
                raise ValueError(f"keyword must be a string, got {item!r}")
            normalized = re.sub(r"\s+", " ", item.strip().lower())
            if normalized and normalized not in out:
                out.append(normalized)
        if not out:
            raise ValueError("at least one non-empty keyword is required")
        return out


class ReportConfig(BaseModel):
    """HTML report settings.

    Attributes:
        output: Path of the generated HTML file.
        min_description_length: Descriptions shorter than this are replaced
            by ``fallback_description``.
        fallback_description: Text used for near-empty descriptions.
        trust_feed_html: Pass feed description HTML through unescaped.
            Feeds are third-party content, so this is off by default.
    """

    output: Path = Path("vulnerabilities_report.html")
    min_description_length: int = Field(default=50, ge=0)
    fallback_description: str = DEFAULT_FALLBACK_DESCRIPTION
    trust_feed_html: bool = False


class DownloadConfig(BaseModel):
    """Download mode settings."""

    output_dir: Path = Path("exploits")


class HttpConfig(BaseModel):
    """HTTP client settings shared by feed, page, and file requests.

    Attributes:
        connect_timeout: Seconds to wait for a connection.
        read_timeout: Seconds to wait between bytes of a response.
        user_agent: ``User-Agent`` header sent with every request.
        retries: Total attempts per request.  ``1`` disables retrying.
    """

    connect_timeout: float = Field(default=10.0, gt=0)
    read_timeout: float = Field(default=60.0, gt=0)
    user_agent: str = "ExploitWatch/0.1 (+https://github.com/)"
    retries: int = Field(default=1, ge=1, le=10)

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)


def _default_sources() -> list[SourceConfig]:
    return [
        SourceConfig(
            name="exploit-db",
            kind="exploitdb",
            feed_url="https://www.exploit-db.com/rss.xml",
        ),
        SourceConfig(
            name="packetstorm",
            kind="packetstorm",
            feed_url="https://rss.packetstormsecurity.com/files/tags/exploit/",
        ),
    ]


class AppConfig(BaseModel):
    """Validated ExploitWatch configuration.

    Example YAML::

        sources:
          - name: packetstorm
            kind: packetstorm
            feed_url: https://rss.packetstormsecurity.com/files/tags/exploit/
        filter:
          keywords: [rce, remote code execution]
          window_months: 12
        report:
          output: vulnerabilities_report.html
          trust_feed_html: false
        download:
          output_dir: exploits
        http:
          read_timeout: 30
    """

    sources: list[SourceConfig] = Field(default_factory=_default_sources)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)


def default_config() -> AppConfig:
    """Return the built-in configuration (the two public exploit feeds)."""
    return AppConfig()


def load_config(path: Path) -> AppConfig:
    """Load configuration from a YAML or JSON file.

    Args:
        path: Path to the config file.

    Returns:
        Validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: if the file doesn't exist.
        pydantic.ValidationError: if content fails validation.
    """
    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")

    if suffix in (".yaml", ".yml"):
        raw = yaml.safe_load(content) or {}
    elif suffix == ".json":
        raw = json.loads(content)
    else:
        try:
            raw = yaml.safe_load(content) or {}
        except yaml.YAMLError:
            raw = json.loads(content)

    return AppConfig.model_validate(raw)


def find_config(search_dir: Path | None = None) -> Path | None:
    """Find a config file in ``search_dir``, preferring YAML over JSON.

    Returns:
        Path of the first existing config file, or None.
    """
    base = search_dir or Path(".")
    for name in CONFIG_FILENAMES:
        candidate = base / name
        if candidate.exists():
            return candidate
    return None
