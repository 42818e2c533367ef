#!/usr/bin/env python3
"""ExploitWatch report — thin shim.

``python vulns_report.py`` writes ``vulnerabilities_report.html`` with the
recent RCE entries from the configured exploit feeds.

The real implementation lives in ``exploitwatch/``.
"""

from typing import Optional, Sequence

from exploitwatch.cli import main_report


def main(argv: Optional[Sequence[str]] = None) -> int:
    return main_report(argv)


if __name__ == "__main__":
    raise SystemExit(main())
