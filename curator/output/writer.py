"""
Markdown file output for curated pages.

Each page is written as a markdown file preceded by a frontmatter block:

    ---
    url: https://example.com/post
    title: Example Post
    description: Optional summary
    fetched: 2026-01-01T00:00:00+00:00
    ---

    <markdown body>
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re

FRONTMATTER_DELIMITER = "---"


@dataclass
class DocumentMetadata:
    """Frontmatter fields for a curated page.

    Attributes:
        url: The source URL
        title: The page title
        fetched: ISO 8601 timestamp of the fetch
        description: Optional page description, omitted from output when empty
    """
    url: str
    title: str
    fetched: str
    description: str | None = None


def render_frontmatter(metadata: DocumentMetadata) -> str:
    """Build the frontmatter block including the trailing blank line.

    Args:
        metadata: Fields to include

    Returns:
        The frontmatter text, ready to be followed by the body
    """
    fields = [("url", metadata.url), ("title", metadata.title)]
    if metadata.description:
        fields.append(("description", metadata.description))
    fields.append(("fetched", metadata.fetched))

    lines = [FRONTMATTER_DELIMITER]
    lines.extend(f"{key}: {_single_line(value)}" for key, value in fields)
    lines.append(FRONTMATTER_DELIMITER)
    return "\n".join(lines) + "\n\n"


def write_markdown_file(path: Path, content: str, metadata: DocumentMetadata) -> None:
    """Write a markdown file with frontmatter, replacing any existing file.

    Missing parent directories are created. Errors from the file system
    (permissions, full disk) propagate as OSError.

    Args:
        path: Destination file path
        content: Markdown body, written verbatim after the frontmatter
        metadata: Frontmatter fields
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_frontmatter(metadata) + content, encoding="utf-8")


def create_content_directory(base_dir: str | Path, dir_name: str) -> Path:
    """Resolve and create the content directory for a page.

    Args:
        base_dir: Output base directory, relative paths resolve against the cwd
        dir_name: Name of the page directory

    Returns:
        Absolute path of the created directory
    """
    content_dir = (Path.cwd() / base_dir / dir_name).resolve()
    content_dir.mkdir(parents=True, exist_ok=True)
    return content_dir


def _single_line(value: str) -> str:
    return re.sub(r"\s*[\r\n]+\s*", " ", value).strip()
