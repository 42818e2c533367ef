#!/usr/bin/env python3
"""ExploitWatch downloader — thin shim.

``python fetch_exploits.py`` scrapes each recent RCE entry's detail page
and stores the linked exploits under ``exploits/``.

The real implementation lives in ``exploitwatch/``.
"""

from typing import Optional, Sequence

from exploitwatch.cli import main_download


def main(argv: Optional[Sequence[str]] = None) -> int:
    return main_download(argv)


if __name__ == "__main__":
    raise SystemExit(main())
