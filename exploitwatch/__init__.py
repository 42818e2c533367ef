"""ExploitWatch — RCE exploit feed reporter and downloader.

This package fetches public exploit-disclosure feeds, filters recent
remote code execution entries, and either renders an HTML report or
downloads the linked exploit artifacts.
"""

__version__ = "0.1.0"
