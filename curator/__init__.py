"""
Curator - save web pages as local markdown.

This package fetches pages through the Firecrawl scrape API, writes each
one to its own folder as CONTENT.md with frontmatter, optionally downloads
the page images, and remembers curated URLs in a persistent cache.

Main entry point is the CLI via `curator curate` command.

Example:
    $ curator curate https://example.com/post -o notes/ --media
"""

__all__ = ["__version__", "CurationRequest", "CurationOutcome", "derive_name", "image_filename"]
__version__ = "0.1.0"

from .core.naming import derive_name
from .core.types import CurationOutcome, CurationRequest
from .fetch.images import image_filename
