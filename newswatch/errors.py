"""Error taxonomy shared by every stage of a poll cycle."""

from __future__ import annotations


class NewsWatchError(Exception):
    """Base class for all newswatch errors."""


class ConfigError(NewsWatchError):
    """Raised when command line configuration is missing or invalid."""


class FetchError(NewsWatchError):
    """Raised when the news page or the notification sink cannot be reached."""


class ParseError(NewsWatchError):
    """Raised when a single news item cannot be extracted from the page."""


class StorageError(NewsWatchError):
    """Raised when the bookmark file cannot be read or written."""
