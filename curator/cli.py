"""
Command-line interface for curator.

Uses Typer to provide `curate` and `config` commands. Supports loading
.env files for API key configuration.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from .config import ConfigManager
from .core.errors import CuratorError
from .core.types import CurationRequest
from .logging_utils import setup_logging
from .runner import run_curate

try:
    from dotenv import load_dotenv
except Exception:  # noqa: BLE001
    load_dotenv = None

app = typer.Typer(add_completion=False, help="Save web pages as local markdown.")
console = Console()


def _prompt_api_key(message: str) -> str:
    return typer.prompt(message, default="", hide_input=True, show_default=False)


@app.command()
def curate(
    urls: list[str] = typer.Argument(..., help="One or more URLs to curate."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output directory (defaults to the configured one)."
    ),
    name: str | None = typer.Option(
        None, "--name", "-n", help="Directory name for the page (single URL only)."
    ),
    full: bool = typer.Option(False, "--full", help="Keep the full page, not only the main content."),
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cache and fetch again."),
    media: bool = typer.Option(False, "--media", help="Also download page images."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    config_dir: Path | None = typer.Option(
        None, "--config-dir", envvar="CURATOR_CONFIG_DIR", help="Configuration directory."
    ),
):
    """Fetch URLs and save them as markdown.

    Args:
        urls: URLs to fetch
        output: Output base directory override
        name: Directory name override, ignored for several URLs
        full: Whether to keep the full page content
        refresh: Whether to bypass the cache
        media: Whether to download images
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        config_dir: Configuration directory override
    """
    # Load environment variables from .env if available
    if load_dotenv is not None:
        load_dotenv()

    config_manager = ConfigManager(config_dir)
    if log_level:
        config_manager.config.logging.level = log_level
    logger = setup_logging(config_manager.config.logging, config_manager.get_log_path())

    template = CurationRequest(
        output_dir_override=str(output) if output else None,
        name_override=name,
        full_content=full,
        force_refresh=refresh,
        download_media=media,
    )

    try:
        code = run_curate(
            urls,
            template,
            config_manager=config_manager,
            console=console,
            prompt=_prompt_api_key,
            logger=logger,
        )
    except CuratorError as exc:
        console.print(f"[red]✗[/red] {exc}", highlight=False)
        raise typer.Exit(code=1) from exc
    raise typer.Exit(code=code)


@app.command("config")
def config_command(
    api_key: str | None = typer.Option(None, "--api-key", help="Store the Firecrawl API key."),
    output_dir: str | None = typer.Option(None, "--output-dir", help="Default output directory."),
    cache: bool | None = typer.Option(None, "--cache/--no-cache", help="Enable or disable the URL cache."),
    show: bool = typer.Option(False, "--show", help="Print the active configuration."),
    config_dir: Path | None = typer.Option(
        None, "--config-dir", envvar="CURATOR_CONFIG_DIR", help="Configuration directory."
    ),
):
    """Update stored settings; print the configuration with --show or when nothing changes."""
    config_manager = ConfigManager(config_dir)
    updating = api_key is not None or output_dir is not None or cache is not None

    if updating:
        path = config_manager.save(
            api_key=api_key,
            default_output_dir=output_dir,
            cache_enabled=cache,
        )
        console.print(f"[green]✓[/green] Config saved to {path}", highlight=False)

    if updating and not show:
        return

    key = config_manager.get_api_key()
    console.print(f"Config file: {config_manager.get_config_path()}", highlight=False)
    console.print(f"API key: {_mask(key) if key else 'not set'}", highlight=False)
    console.print(f"Output directory: {config_manager.get_default_output_dir()}", highlight=False)
    console.print(
        f"Cache: {'enabled' if config_manager.is_cache_enabled() else 'disabled'}",
        highlight=False,
    )


def _mask(key: str) -> str:
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


if __name__ == "__main__":
    app()
