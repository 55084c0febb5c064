"""
Output writing.

This package writes curated pages to disk as markdown files with
frontmatter.
"""

from .writer import DocumentMetadata, create_content_directory, write_markdown_file

__all__ = ["DocumentMetadata", "create_content_directory", "write_markdown_file"]
