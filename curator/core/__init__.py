"""
Core domain models and business logic.

This package contains data types, naming rules and the URL cache, all
independent of the network and CLI layers.
"""

from .types import (
    BatchSummary,
    CacheEntry,
    CurationOutcome,
    CurationRequest,
    FetchedContent,
    ImageRef,
    ImageStats,
)
from .errors import (
    CacheError,
    ConfigError,
    CuratorError,
    DownloadError,
    RedirectLoopError,
)
from .naming import derive_name
from .cache import CacheStore

__all__ = [
    "BatchSummary",
    "CacheEntry",
    "CurationOutcome",
    "CurationRequest",
    "FetchedContent",
    "ImageRef",
    "ImageStats",
    "CacheError",
    "ConfigError",
    "CuratorError",
    "DownloadError",
    "RedirectLoopError",
    "derive_name",
    "CacheStore",
]
