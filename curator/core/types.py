"""
Core data types for curator.

This module defines the values passed between pipeline stages:
- CurationRequest: What to curate and how, fixed for one invocation
- FetchedContent: Page content returned by the scrape API
- CacheEntry: Persisted record of a previously curated URL
- CurationOutcome / BatchSummary: Per-URL results and their aggregate
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class CurationRequest:
    """Options for curating one URL.

    Instances are immutable. Use for_url() or without_name() to derive a
    variant instead of editing a shared request.

    Attributes:
        url: The page to curate (empty in a batch template)
        output_dir_override: Output base directory, overrides the configured default
        name_override: Directory name for the page, replaces the derived name
        full_content: Keep the whole page instead of only the main content
        force_refresh: Ignore the cache and fetch again
        download_media: Also download the page images
    """
    url: str = ""
    output_dir_override: str | None = None
    name_override: str | None = None
    full_content: bool = False
    force_refresh: bool = False
    download_media: bool = False

    def for_url(self, url: str) -> CurationRequest:
        return replace(self, url=url)

    def without_name(self) -> CurationRequest:
        return replace(self, name_override=None)

    @property
    def formats(self) -> list[str]:
        """Scrape formats to request from the API."""
        formats = ["markdown"]
        if self.download_media:
            formats.append("images")
        return formats


@dataclass(frozen=True)
class ImageRef:
    """An image referenced by a fetched page.

    Attributes:
        image_url: Absolute URL of the image
        position: 1-based position declared by the API, if any
    """
    image_url: str
    position: int | None = None


@dataclass
class FetchedContent:
    """Page content produced by a successful scrape."""
    title: str
    markdown: str
    description: str | None = None
    images: list[ImageRef] = field(default_factory=list)


@dataclass
class CacheEntry:
    """A cached curation result for one URL.

    Attributes:
        url: The curated URL (cache key)
        dir_name: Name of the content directory
        title: Page title at curation time
        fetched_at: ISO 8601 UTC timestamp of the curation
        output_path: Absolute path of the content directory
        content_hash: SHA256 digest of the markdown body
    """
    url: str
    dir_name: str
    title: str
    fetched_at: str
    output_path: str
    content_hash: str


@dataclass
class ImageStats:
    downloaded: int = 0
    failed: int = 0


@dataclass
class CurationOutcome:
    """Result of curating one URL.

    Either title is populated (success) or error is populated (failure).

    Attributes:
        url: The URL that was curated
        succeeded: Whether curation succeeded
        title: Page title on success
        error: Error message on failure
        output_path: Content directory on success
        cached: True when the result came from the cache without a fetch
    """
    url: str
    succeeded: bool
    title: str | None = None
    error: str | None = None
    output_path: str | None = None
    cached: bool = False


@dataclass
class BatchSummary:
    """Aggregate of a multi-URL curation, outcomes in request order."""
    outcomes: list[CurationOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def successful(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    @property
    def failures(self) -> list[CurationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]
