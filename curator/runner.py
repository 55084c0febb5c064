"""
Curation pipeline orchestration.

This module coordinates the workflow for each URL:
1. Check the URL cache (a hit returns immediately, no network call)
2. Scrape the page through the Firecrawl API
3. Derive the content directory and write CONTENT.md
4. Download page images concurrently (optional)
5. Record the result in the cache

Several URLs are curated concurrently on one event loop. Per-URL failures
become failed outcomes and never stop the other URLs; only run_curate
turns outcomes into a process exit status.
"""

from __future__ import annotations

import asyncio
from contextlib import nullcontext
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Callable, Protocol

import httpx
from rich.console import Console
from rich.markup import escape

from .config import ConfigManager
from .core.cache import CacheStore
from .core.errors import ConfigError
from .core.naming import derive_name
from .core.types import (
    BatchSummary,
    CacheEntry,
    CurationOutcome,
    CurationRequest,
    FetchedContent,
)
from .fetch.fetcher import FirecrawlClient, ScrapeResult
from .fetch.images import download_images
from .logging_utils import LOGGER_NAME, log_event
from .output.writer import DocumentMetadata, create_content_directory, write_markdown_file

DEFAULT_TITLE = "Untitled"
API_KEY_URL = "https://firecrawl.dev"


class ScrapeClient(Protocol):
    async def scrape(
        self, url: str, formats: list[str], only_main_content: bool = True
    ) -> ScrapeResult: ...


async def curate_one(
    request: CurationRequest,
    *,
    client: ScrapeClient,
    config_manager: ConfigManager,
    cache: CacheStore | None,
    console: Console | None = None,
    logger: logging.Logger | None = None,
    image_client: httpx.AsyncClient | None = None,
    show_status: bool = True,
) -> CurationOutcome:
    """Curate a single URL.

    Any error raised while processing the URL is caught and returned as a
    failed outcome, so one URL can never abort a batch.

    Args:
        request: What to curate and how
        client: Scrape API client
        config_manager: Source of the default output dir and cache switch
        cache: URL cache, or None to run without one
        console: Rich console for user-facing messages
        logger: Logger for structured events
        image_client: Optional shared HTTP client for image downloads
        show_status: Show a spinner while fetching (single URL only)

    Returns:
        CurationOutcome for the URL
    """
    console = console or Console()
    logger = logger or logging.getLogger(LOGGER_NAME)
    url = request.url
    use_cache = cache is not None and config_manager.is_cache_enabled()

    try:
        if use_cache and not request.force_refresh and cache.has(url):
            cached = cache.get(url)
            _success(console, f"Already cached: {cached.title}")
            _success(console, f"Location: {Path(cached.output_path) / _content_filename(config_manager)}")
            log_event(logger, "cache_hit", url=url, title=cached.title)
            return CurationOutcome(
                url=url,
                succeeded=True,
                title=cached.title,
                output_path=cached.output_path,
                cached=True,
            )

        log_event(logger, "fetch_start", url=url, formats=request.formats)
        status = console.status("Fetching content...") if show_status else nullcontext()
        with status:
            result = await client.scrape(
                url,
                formats=request.formats,
                only_main_content=not request.full_content,
            )

        if not result.success:
            error = result.error or "Failed to fetch content"
            _error(console, error)
            log_event(
                logger,
                "fetch_failed",
                url=url,
                error=error,
                status_code=result.status_code,
            )
            return CurationOutcome(url=url, succeeded=False, error=error)

        content = FetchedContent(
            title=result.title or DEFAULT_TITLE,
            description=result.description,
            markdown=result.markdown or "",
            images=list(result.images),
        )
        _success(console, f'Fetched: "{content.title}"')

        output_dir = request.output_dir_override or config_manager.get_default_output_dir()
        dir_name = request.name_override or derive_name(content.title, url)
        content_dir = create_content_directory(output_dir, dir_name)
        content_path = content_dir / _content_filename(config_manager)

        write_markdown_file(
            content_path,
            content.markdown,
            DocumentMetadata(
                url=url,
                title=content.title,
                description=content.description,
                fetched=_now_iso(),
            ),
        )
        _success(console, f"Saved to: {content_path}")
        log_event(logger, "content_written", url=url, path=str(content_path))

        if request.download_media and content.images:
            await _download_page_images(content, content_dir, config_manager, console, logger, image_client)

        if use_cache:
            cache.set(
                url,
                CacheEntry(
                    url=url,
                    dir_name=dir_name,
                    title=content.title,
                    fetched_at=_now_iso(),
                    output_path=str(content_dir),
                    content_hash=cache.hash(content.markdown),
                ),
            )
            log_event(logger, "cache_updated", url=url, dir_name=dir_name)

        return CurationOutcome(
            url=url,
            succeeded=True,
            title=content.title,
            output_path=str(content_dir),
        )
    except Exception as exc:  # noqa: BLE001
        error = str(exc) or type(exc).__name__
        _error(console, f"Failed to process {url}: {error}")
        log_event(
            logger,
            "curate_failed",
            url=url,
            error=error,
            error_type=type(exc).__name__,
        )
        return CurationOutcome(url=url, succeeded=False, error=error)


async def curate_many(
    urls: list[str],
    template: CurationRequest,
    *,
    client: ScrapeClient,
    config_manager: ConfigManager,
    cache: CacheStore | None,
    console: Console | None = None,
    logger: logging.Logger | None = None,
    image_client: httpx.AsyncClient | None = None,
) -> BatchSummary:
    """Curate several URLs concurrently.

    A name override only applies to a single URL; with several URLs it is
    dropped with a warning. Repeated URLs share one in-flight curation.

    Args:
        urls: URLs to curate, in request order
        template: Options applied to every URL (its url field is ignored)
        client: Scrape API client
        config_manager: Source of the default output dir and cache switch
        cache: URL cache, or None to run without one
        console: Rich console for user-facing messages
        logger: Logger for structured events
        image_client: Optional shared HTTP client for image downloads

    Returns:
        BatchSummary with one outcome per requested URL, in request order
    """
    console = console or Console()
    logger = logger or logging.getLogger(LOGGER_NAME)

    if template.name_override and len(urls) > 1:
        _warning(console, "--name option only works with a single URL. Ignoring --name for multiple URLs.")
        template = template.without_name()

    pending: dict[str, asyncio.Task[CurationOutcome]] = {}
    for url in urls:
        if url in pending:
            continue
        pending[url] = asyncio.create_task(
            curate_one(
                template.for_url(url),
                client=client,
                config_manager=config_manager,
                cache=cache,
                console=console,
                logger=logger,
                image_client=image_client,
                show_status=False,
            )
        )

    await asyncio.gather(*pending.values(), return_exceptions=True)

    summary = BatchSummary(outcomes=[_task_outcome(url, pending[url]) for url in urls])
    log_event(
        logger,
        "batch_complete",
        total=summary.total,
        successful=summary.successful,
        failed=summary.failed,
    )
    return summary


def ensure_api_key(
    config_manager: ConfigManager,
    console: Console,
    prompt: Callable[[str], str] | None = None,
) -> str:
    """Return the configured API key, prompting for and saving one if missing.

    Raises:
        ConfigError: No key is configured and none was supplied
    """
    api_key = config_manager.get_api_key()
    if api_key:
        return api_key

    if prompt is None:
        raise ConfigError(f"No API key configured. Get one at {API_KEY_URL}")

    _warning(console, "No API key found. Let's set up curator!")
    api_key = (prompt("Enter your Firecrawl API key") or "").strip()
    if not api_key:
        raise ConfigError(f"API key is required. Get one at {API_KEY_URL}")

    path = config_manager.save(api_key=api_key)
    _success(console, f"Config saved to {path}")
    return api_key


def run_curate(
    urls: list[str],
    template: CurationRequest,
    *,
    config_manager: ConfigManager,
    client: ScrapeClient | None = None,
    cache: CacheStore | None = None,
    console: Console | None = None,
    prompt: Callable[[str], str] | None = None,
    logger: logging.Logger | None = None,
) -> int:
    """Curate one or more URLs and return the process exit status.

    A single URL exits 1 when its curation fails. A batch always exits 0
    once it has run; its failures are listed in the printed summary.

    Args:
        urls: URLs to curate
        template: Options applied to every URL
        config_manager: Configuration collaborator
        client: Scrape client (built from the config when None)
        cache: URL cache (loaded from the config dir when None and enabled)
        console: Rich console for user-facing messages
        prompt: Callable used to ask for a missing API key
        logger: Logger for structured events

    Returns:
        Exit status for the process
    """
    if not urls:
        raise ValueError("At least one URL is required.")

    console = console or Console()
    logger = logger or logging.getLogger(LOGGER_NAME)

    try:
        api_key = ensure_api_key(config_manager, console, prompt)
    except ConfigError as exc:
        _error(console, str(exc))
        return 1

    if cache is None and config_manager.is_cache_enabled():
        cache = CacheStore(config_manager.get_config_dir(), config_manager.config.cache.filename)
    if client is None:
        client = FirecrawlClient(
            api_key,
            base_url=config_manager.config.api.base_url,
            timeout=config_manager.config.api.timeout_seconds,
        )

    if len(urls) > 1:
        console.print(f"\nProcessing {len(urls)} URLs in parallel...\n")
        summary = asyncio.run(
            curate_many(
                urls,
                template,
                client=client,
                config_manager=config_manager,
                cache=cache,
                console=console,
                logger=logger,
            )
        )
        _render_summary(summary, console)
        return 0

    outcome = asyncio.run(
        curate_one(
            template.for_url(urls[0]),
            client=client,
            config_manager=config_manager,
            cache=cache,
            console=console,
            logger=logger,
        )
    )
    return 0 if outcome.succeeded else 1


async def _download_page_images(
    content: FetchedContent,
    content_dir: Path,
    config_manager: ConfigManager,
    console: Console,
    logger: logging.Logger,
    image_client: httpx.AsyncClient | None,
) -> None:
    count = len(content.images)
    console.print(f"\nDownloading {count} image{_plural(count)}...")

    images_cfg = config_manager.config.images
    stats = await download_images(
        content.images,
        content_dir,
        client=image_client,
        max_redirects=images_cfg.max_redirects,
        timeout=images_cfg.timeout_seconds,
        user_agent=images_cfg.user_agent,
    )

    if stats.downloaded > 0:
        _success(console, f"Downloaded {stats.downloaded} image{_plural(stats.downloaded)}")
    if stats.failed > 0:
        _warning(console, f"Failed to download {stats.failed} image{_plural(stats.failed)}")
    log_event(
        logger,
        "images_done",
        path=str(content_dir),
        downloaded=stats.downloaded,
        failed=stats.failed,
    )


def _task_outcome(url: str, task: asyncio.Task[CurationOutcome]) -> CurationOutcome:
    if task.cancelled():
        return CurationOutcome(url=url, succeeded=False, error="Cancelled")
    exc = task.exception()
    if exc is not None:
        return CurationOutcome(url=url, succeeded=False, error=str(exc) or type(exc).__name__)
    return task.result()


def _render_summary(summary: BatchSummary, console: Console) -> None:
    """Print the batch tally and the failed URLs with their errors."""
    console.print("\n" + "=" * 50)
    _success(console, f"Successfully processed: {summary.successful}/{summary.total}")
    if summary.failed > 0:
        _warning(console, f"Failed: {summary.failed}/{summary.total}")
        for outcome in summary.failures:
            console.print(f"  ✗ {outcome.url}: {outcome.error}", markup=False, highlight=False)
    console.print("=" * 50)


def _content_filename(config_manager: ConfigManager) -> str:
    return config_manager.config.output.content_filename


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _plural(count: int) -> str:
    return "s" if count != 1 else ""


def _success(console: Console, message: str) -> None:
    console.print(f"[green]✓[/green] {escape(message)}")


def _warning(console: Console, message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def _error(console: Console, message: str) -> None:
    console.print(f"[red]✗[/red] {escape(message)}")
