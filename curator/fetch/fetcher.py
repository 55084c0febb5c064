"""
Page fetching using the remote Firecrawl scrape API.

Firecrawl renders the page, extracts the main content as markdown and
reports page metadata and image URLs. No retries are attempted: a failed
call is reported back to the caller as a failed ScrapeResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any

import httpx

from ..core.types import ImageRef

DEFAULT_BASE_URL = "https://api.firecrawl.dev"


@dataclass
class ScrapeResult:
    """Result of a scrape API call.

    On success markdown and metadata are populated; on failure error is
    populated and the other content fields are empty.

    Attributes:
        url: The URL that was scraped
        success: Whether the API produced content
        error: Error message on failure
        title: Page title from the API metadata, if any
        description: Page description from the API metadata, if any
        markdown: Extracted markdown content
        images: Images in page order
        status_code: HTTP status of the API response, or None on transport errors
    """
    url: str
    success: bool
    error: str | None = None
    title: str | None = None
    description: str | None = None
    markdown: str | None = None
    images: list[ImageRef] = field(default_factory=list)
    status_code: int | None = None


class FirecrawlClient:
    """Async client for the Firecrawl scrape endpoint.

    Args:
        api_key: Firecrawl API key, sent as a bearer token
        base_url: API base URL
        timeout: Request timeout in seconds, None to wait indefinitely
        http_client: Optional shared httpx.AsyncClient (used as-is, not closed)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v2/scrape"

    async def scrape(
        self,
        url: str,
        formats: list[str],
        only_main_content: bool = True,
    ) -> ScrapeResult:
        """Scrape a URL.

        Args:
            url: The page to scrape
            formats: Requested formats ("markdown", optionally "images")
            only_main_content: Strip navigation, footers and similar chrome

        Returns:
            ScrapeResult with content on success or an error message on failure
        """
        payload = {
            "url": url,
            "formats": list(formats),
            "onlyMainContent": only_main_content,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            if self._http_client is not None:
                resp = await self._http_client.post(
                    self.endpoint, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout, trust_env=True) as client:
                    resp = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            return ScrapeResult(url=url, success=False, error=f"TimeoutError: {exc}")
        except httpx.HTTPError as exc:
            return ScrapeResult(url=url, success=False, error=f"{type(exc).__name__}: {exc}")

        try:
            data = resp.json()
        except json.JSONDecodeError as exc:
            return ScrapeResult(
                url=url,
                success=False,
                error=f"Firecrawl API HTTP {resp.status_code}: invalid JSON response ({exc})",
                status_code=resp.status_code,
            )

        if resp.status_code != 200 or not isinstance(data, dict) or not data.get("success", False):
            return ScrapeResult(
                url=url,
                success=False,
                error=_error_message(resp.status_code, data),
                status_code=resp.status_code,
            )

        return _parse_scrape_data(url, data.get("data") or {}, resp.status_code)


def _parse_scrape_data(url: str, data: dict[str, Any], status_code: int) -> ScrapeResult:
    """Build a successful ScrapeResult from the API's data object."""
    metadata = data.get("metadata") or {}
    return ScrapeResult(
        url=url,
        success=True,
        title=_metadata_text(metadata.get("title")),
        description=_metadata_text(metadata.get("description")),
        markdown=data.get("markdown") or "",
        images=_parse_images(data.get("images") or []),
        status_code=status_code,
    )


def _parse_images(raw_images: list[Any]) -> list[ImageRef]:
    """Normalize image entries given as URL strings or objects."""
    images: list[ImageRef] = []
    for item in raw_images:
        if isinstance(item, str):
            images.append(ImageRef(image_url=item))
        elif isinstance(item, dict):
            image_url = item.get("imageUrl") or item.get("url")
            if not image_url:
                continue
            position = item.get("position")
            images.append(
                ImageRef(
                    image_url=image_url,
                    position=position if isinstance(position, int) else None,
                )
            )
    return images


def _metadata_text(value: Any) -> str | None:
    # Firecrawl reports repeated meta tags as lists
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value)


def _error_message(status_code: int, data: Any) -> str:
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    if status_code != 200:
        return f"Firecrawl API HTTP Error: {status_code}"
    return "Failed to fetch content"
