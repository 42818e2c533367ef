"""Content-based file extension detection.

Downloaded exploits rarely carry a useful name, so the extension is
picked from textual markers in the body.  Rules are checked in order and
the first match wins.  Binary formats are not recognized.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".txt"

# (extension, markers that must all be present, markers of which any suffices)
SNIFF_RULES: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    (".py", ("import ", "def "), ()),
    (".c", ("#include", "int main"), ()),
    (".go", (), ("package main", "func main")),
    (".sh", (), ("#!/bin/bash", "bash")),
    (".pl", (), ("#!/usr/bin/perl",)),
)


def sniff_extension(content: bytes | str) -> str:
    """Pick a file extension for ``content``.

    Args:
        content: Raw bytes or already-decoded text.

    Returns:
        One of ``.py``, ``.c``, ``.go``, ``.sh``, ``.pl``, or ``.txt``.
    """
    if isinstance(content, bytes):
        text = content.decode("utf-8", errors="replace")
    else:
        text = content

    for ext, all_of, any_of in SNIFF_RULES:
        if all_of and all(marker in text for marker in all_of):
            return ext
        if any_of and any(marker in text for marker in any_of):
            return ext
    return DEFAULT_EXTENSION


def sniff_file(path: Path) -> str:
    """Sniff the extension of a file on disk.

    Unreadable files get the default extension.
    """
    try:
        content = path.read_bytes()
    except OSError as e:
        logger.warning("Could not read %s for sniffing: %s", path, e)
        return DEFAULT_EXTENSION
    ext = sniff_extension(content)
    if ext == DEFAULT_EXTENSION:
        logger.info("No language markers in %s, using %s", path.name, ext)
    return ext
