"""Directory naming for curated pages.

Each curated page gets its own folder whose name is derived from the page
title, or from the URL when the title is empty.
"""

from __future__ import annotations

import re
import time
from urllib.parse import urlsplit

MAX_NAME_LENGTH = 100


def derive_name(title: str, url: str) -> str:
    """Convert a page title (or its URL) to a safe directory name.

    Args:
        title: The page title, may be empty
        url: The page URL, used when the title is empty

    Returns:
        A lowercase hyphenated name of at most 100 characters matching
        [a-z0-9]+(-[a-z0-9]+)*, or untitled-<epoch millis> when nothing
        usable remains

    Examples:
        >>> derive_name("Hello, World! 2024", "https://x.com")
        'hello-world-2024'
        >>> derive_name("", "https://example.com/foo/bar.html")
        'bar'
    """
    source = title if title and title.strip() else _name_from_url(url)

    name = source.lower().strip()
    name = re.sub(r"\s+", "-", name)
    name = re.sub(r"[^a-z0-9-]", "", name)
    name = re.sub(r"-+", "-", name)
    name = name.strip("-")
    name = name[:MAX_NAME_LENGTH].rstrip("-")

    if not name:
        name = f"untitled-{int(time.time() * 1000)}"
    return name


def _name_from_url(url: str) -> str:
    """Return the last path segment without extension, or the host."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return "untitled"
    if not parts.scheme or not parts.netloc:
        return "untitled"

    segments = [segment for segment in parts.path.split("/") if segment]
    if segments:
        stem = re.sub(r"\.[^.]+$", "", segments[-1])
        if stem:
            return stem
    return hostname or "untitled"
