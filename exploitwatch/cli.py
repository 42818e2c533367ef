"""Command-line entry points.

``main_report`` and ``main_download`` back the ``vulns_report.py`` and
``fetch_exploits.py`` scripts; ``main`` is the ``exploitwatch`` console
script with ``report`` and ``download`` subcommands.
"""

import argparse
import logging
from pathlib import Path
from typing import Sequence

import yaml
from pydantic import ValidationError

from .config import AppConfig, default_config, find_config, load_config
from .downloaders import requests_session
from .errors import FeedError
from .pipeline import DOWNLOADED, run_download, run_report

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, default=None, help="YAML or JSON config file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")


def _add_report_args(parser: argparse.ArgumentParser) -> None:
    _add_common_args(parser)
    parser.add_argument("--output", type=Path, default=None, help="HTML report path")
    parser.add_argument(
        "--trust-feed-html",
        action="store_true",
        help="Insert feed descriptions as raw HTML instead of escaping them",
    )


def _add_download_args(parser: argparse.ArgumentParser) -> None:
    _add_common_args(parser)
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for downloaded exploits")


def _load_app_config(path: Path | None) -> AppConfig:
    if path is None:
        path = find_config()
        if path is None:
            return default_config()
    logger.debug("Loading config from %s", path)
    return load_config(path)


def _report(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        config = _load_app_config(args.config)
    except (OSError, ValidationError, ValueError, yaml.YAMLError) as e:
        logger.error("Invalid config: %s", e)
        return 2
    if args.output is not None:
        config.report.output = args.output
    if args.trust_feed_html:
        config.report.trust_feed_html = True

    session = requests_session(config.http)
    try:
        path, count = run_report(config, session)
    except FeedError as e:
        logger.error("Error fetching RSS feed: %s", e)
        return 1
    print(f"Vulnerabilities report generated: {path} ({count} entries)")
    return 0


def _download(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        config = _load_app_config(args.config)
    except (OSError, ValidationError, ValueError, yaml.YAMLError) as e:
        logger.error("Invalid config: %s", e)
        return 2
    if args.output_dir is not None:
        config.download.output_dir = args.output_dir

    session = requests_session(config.http)
    summary = run_download(config, session)
    for outcome in summary.outcomes:
        if outcome.status != DOWNLOADED:
            logger.info("%s %r: %s", outcome.status, outcome.title, outcome.reason)
    print(summary.describe())
    return 0


def main_report(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate an HTML report of recent RCE exploits")
    _add_report_args(parser)
    return _report(parser.parse_args(argv))


def main_download(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Download recent RCE exploits into a local directory")
    _add_download_args(parser)
    return _download(parser.parse_args(argv))


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="exploitwatch", description="RCE exploit feed reporter and downloader")
    sub = parser.add_subparsers(dest="command", required=True)

    report = sub.add_parser("report", help="Generate the HTML report")
    _add_report_args(report)
    report.set_defaults(func=_report)

    download = sub.add_parser("download", help="Download exploit artifacts")
    _add_download_args(download)
    download.set_defaults(func=_download)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
