"""
Logging for curator.

All pipeline logging goes through log_event(), which looks the event up in
EVENTS for its level and message template. Events the runner already
reports on the console are kept out of the console handler and only reach
the log file in the config directory.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NamedTuple

from rich.logging import RichHandler

from .config import LoggingConfig

LOGGER_NAME = "curator"


class EventSpec(NamedTuple):
    level: int
    message: str
    console: bool = False


EVENTS: dict[str, EventSpec] = {
    "cache_hit": EventSpec(logging.INFO, "Cache hit for {url}"),
    "fetch_start": EventSpec(logging.DEBUG, "Fetching {url}"),
    "fetch_failed": EventSpec(logging.WARNING, "Fetch failed for {url}: {error}"),
    "content_written": EventSpec(logging.INFO, "Wrote {path}"),
    "image_failed": EventSpec(logging.WARNING, "Failed to download image {url}: {error}", console=True),
    "images_done": EventSpec(logging.INFO, "Images for {path}: {downloaded} downloaded, {failed} failed"),
    "cache_updated": EventSpec(logging.DEBUG, "Cached {url} as {dir_name}"),
    "curate_failed": EventSpec(logging.ERROR, "Curation failed for {url}: {error}"),
    "batch_complete": EventSpec(logging.INFO, "Batch complete: {successful}/{total} succeeded"),
}

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def setup_logging(cfg: LoggingConfig, log_path: Path | None) -> logging.Logger:
    """Configure the curator logger.

    Args:
        cfg: Logging configuration
        log_path: File receiving the event log, or None for console only

    Returns:
        The configured "curator" logger
    """
    level = cfg.level.upper()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = []
    logger.propagate = False

    if cfg.console:
        console_handler = RichHandler(rich_tracebacks=True, show_time=False, show_level=True)
        console_handler.setLevel(level)
        console_handler.addFilter(_console_filter)
        logger.addHandler(console_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        if cfg.format == "jsonl":
            file_handler.setFormatter(JsonlFormatter())
        else:
            file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(file_handler)

    return logger


def log_event(logger: logging.Logger | None, event: str, **fields: Any) -> None:
    """Log a pipeline event with its structured fields.

    Raises:
        KeyError: event is not listed in EVENTS
    """
    if logger is None:
        return
    spec = EVENTS[event]
    logger.log(spec.level, spec.message.format_map(_Missing(fields)), extra={"event": event, **fields})


class JsonlFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, message and event fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        payload.update({key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS})
        return json.dumps(payload, ensure_ascii=False, default=str)


def _console_filter(record: logging.LogRecord) -> bool:
    event = getattr(record, "event", None)
    if event is None:
        return True
    return EVENTS[event].console if event in EVENTS else True


class _Missing(dict):
    def __missing__(self, key: str) -> str:
        return "?"
