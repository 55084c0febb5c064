"""
Page and image fetching.

This package handles scrape API calls and image downloads for
curated pages.
"""

from .fetcher import FirecrawlClient, ScrapeResult
from .images import download_image, download_images, image_filename

__all__ = [
    "FirecrawlClient",
    "ScrapeResult",
    "download_image",
    "download_images",
    "image_filename",
]
