from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from curator.config import ConfigManager
from curator.core.cache import CacheStore
from curator.fetch.fetcher import ScrapeResult


class FakeScrapeClient:
    """Scrape client double recording every call."""

    def __init__(self, results: dict[str, ScrapeResult] | None = None):
        self.results = results or {}
        self.calls: list[dict] = []

    async def scrape(self, url: str, formats: list[str], only_main_content: bool = True) -> ScrapeResult:
        self.calls.append({"url": url, "formats": list(formats), "only_main_content": only_main_content})
        if url in self.results:
            return self.results[url]
        return ScrapeResult(
            url=url,
            success=True,
            title=f"Page {url.rsplit('/', 1)[-1]}",
            markdown=f"content of {url}",
        )


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FIRECRAWL_API_KEY", raising=False)
    return tmp_path


@pytest.fixture
def config_manager(workdir: Path) -> ConfigManager:
    return ConfigManager(workdir / "config")


@pytest.fixture
def cache(config_manager: ConfigManager) -> CacheStore:
    return CacheStore(config_manager.get_config_dir())


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=200)
