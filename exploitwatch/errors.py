"""Exception hierarchy for ExploitWatch."""


class ExploitWatchError(Exception):
    """Base class for all ExploitWatch errors."""


class FeedError(ExploitWatchError):
    """A feed could not be fetched or parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class ScrapeError(ExploitWatchError):
    """A detail page could not be fetched or parsed."""


class DownloadError(ExploitWatchError):
    """An artifact could not be downloaded or stored."""
