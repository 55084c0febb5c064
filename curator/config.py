"""
Configuration management using YAML files and dataclasses.

This module defines the configuration dataclasses and the ConfigManager
that stores them in the per-user configuration directory. Sections:
- ApiConfig: Firecrawl API settings
- OutputConfig: Where curated pages are written
- CacheConfig: URL cache settings
- ImagesConfig: Image download settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR_ENV = "CURATOR_CONFIG_DIR"
CONFIG_FILENAME = "config.yaml"


@dataclass
class ApiConfig:
    """Configuration for the Firecrawl scrape API.

    Attributes:
        api_key: Inline API key (overrides the environment variable)
        api_key_env: Environment variable name containing the API key
        base_url: Base URL of the Firecrawl API
        timeout_seconds: Request timeout, None to wait indefinitely
    """

    api_key: str | None = None
    api_key_env: str = "FIRECRAWL_API_KEY"
    base_url: str = "https://api.firecrawl.dev"
    timeout_seconds: float | None = 120.0


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        default_dir: Base directory for curated pages, relative to the cwd
        content_filename: Name of the markdown file in each page directory
    """

    default_dir: str = "curated"
    content_filename: str = "CONTENT.md"


@dataclass
class CacheConfig:
    """Configuration for the URL cache.

    Attributes:
        enabled: Whether cached URLs are skipped and new results recorded
        filename: Name of the cache file in the config directory
    """

    enabled: bool = True
    filename: str = "cache.json"


@dataclass
class ImagesConfig:
    """Configuration for image downloads.

    Attributes:
        timeout_seconds: Per-request timeout, None to wait indefinitely
        max_redirects: Maximum redirect hops followed per image
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float | None = 30.0
    max_redirects: int = 5
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to a file in the config directory
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
    """

    level: str = "WARNING"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "curator.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    api: ApiConfig = field(default_factory=ApiConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    images: ImagesConfig = field(default_factory=ImagesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None) -> AppConfig:
    """Load configuration from a YAML file with defaults.

    A missing path or file yields the defaults.
    """
    if not path or not Path(path).exists():
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig, ignoring unknown keys."""
    data = asdict(base)
    for section, value in raw.items():
        if section not in data or not isinstance(value, dict):
            continue
        known = {key: item for key, item in value.items() if key in data[section]}
        data[section].update(known)
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        api=ApiConfig(**data["api"]),
        output=OutputConfig(**data["output"]),
        cache=CacheConfig(**data["cache"]),
        images=ImagesConfig(**data["images"]),
        logging=LoggingConfig(**data["logging"]),
    )


def default_config_dir() -> Path:
    """Return the configuration directory ($CURATOR_CONFIG_DIR or ~/.curator)."""
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".curator"


class ConfigManager:
    """Loads and saves curator configuration in the config directory.

    Args:
        config_dir: Directory holding config.yaml and the cache file;
            defaults to default_config_dir()
    """

    def __init__(self, config_dir: Path | None = None):
        self._config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.config = load_config(self.get_config_path())

    def get_config_dir(self) -> Path:
        return self._config_dir

    def get_config_path(self) -> Path:
        return self._config_dir / CONFIG_FILENAME

    def get_log_path(self) -> Path | None:
        """Return the event log file in the config dir, or None when file logging is off."""
        if not self.config.logging.file:
            return None
        return self._config_dir / self.config.logging.filename

    def get_api_key(self) -> str | None:
        """Get API key from the config file or the environment variable."""
        if self.config.api.api_key:
            return self.config.api.api_key
        return os.getenv(self.config.api.api_key_env) or None

    def get_default_output_dir(self) -> str:
        return self.config.output.default_dir

    def is_cache_enabled(self) -> bool:
        return self.config.cache.enabled

    def save(
        self,
        api_key: str | None = None,
        default_output_dir: str | None = None,
        cache_enabled: bool | None = None,
    ) -> Path:
        """Persist the given settings, keeping everything else in the file.

        Args:
            api_key: Firecrawl API key to store
            default_output_dir: Default output base directory
            cache_enabled: Whether the URL cache is used

        Returns:
            Path of the written config file
        """
        path = self.get_config_path()
        raw: dict[str, Any] = {}
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}

        if api_key is not None:
            raw.setdefault("api", {})["api_key"] = api_key
        if default_output_dir is not None:
            raw.setdefault("output", {})["default_dir"] = default_output_dir
        if cache_enabled is not None:
            raw.setdefault("cache", {})["enabled"] = cache_enabled

        self._config_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(raw, f, sort_keys=False, allow_unicode=True)
        # The file may hold the API key
        os.chmod(path, 0o600)

        self.config = _merge_config(AppConfig(), raw)
        return path
