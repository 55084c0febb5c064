"""Exception types raised by the curation pipeline."""

from __future__ import annotations


class CuratorError(Exception):
    """Base class for curator errors."""


class ConfigError(CuratorError):
    """Configuration is missing or unusable (e.g. no API key supplied)."""


class CacheError(CuratorError):
    """The cache file exists but cannot be read."""


class DownloadError(CuratorError):
    """An image download ended with an unexpected HTTP response.

    Attributes:
        url: The URL that produced the response
        status_code: HTTP status code, or None when no response applies
    """

    def __init__(self, message: str, url: str, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RedirectLoopError(DownloadError):
    """A redirect chain revisited a URL or exceeded the hop limit."""
