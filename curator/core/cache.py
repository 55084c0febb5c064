"""
Persistent URL cache for curated pages.

The cache maps each curated URL to a CacheEntry and lives as a single JSON
file in the configuration directory. It is loaded fully on construction and
written back after every update. Entries never expire.
"""

from __future__ import annotations

from dataclasses import asdict
import hashlib
import json
from pathlib import Path

from .errors import CacheError
from .types import CacheEntry


class CacheStore:
    """URL-keyed store of CacheEntry records backed by a JSON file.

    Attributes:
        cache_dir: Directory holding the cache file
        path: Full path to the cache file
    """

    def __init__(self, cache_dir: Path, filename: str = "cache.json"):
        self.cache_dir = Path(cache_dir)
        self.path = self.cache_dir / filename
        self._entries: dict[str, CacheEntry] = self._load()

    def has(self, url: str) -> bool:
        return url in self._entries

    def get(self, url: str) -> CacheEntry | None:
        return self._entries.get(url)

    def set(self, url: str, entry: CacheEntry) -> None:
        """Store an entry for a URL, replacing any previous one, and persist.

        Args:
            url: The cache key
            entry: The record to store
        """
        self._entries[url] = entry
        self._save()

    def entries(self) -> list[CacheEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def hash(content: str) -> str:
        """Return the SHA256 hex digest of content."""
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def _load(self) -> dict[str, CacheEntry]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            return {url: CacheEntry(**data) for url, data in raw.items()}
        except (json.JSONDecodeError, TypeError, AttributeError) as exc:
            raise CacheError(f"Cannot read cache file {self.path}: {exc}") from exc

    def _save(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        data = {url: asdict(entry) for url, entry in self._entries.items()}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)
