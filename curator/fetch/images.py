"""Image downloading for curated pages."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import posixpath
from urllib.parse import urljoin, urlsplit

import httpx

from ..core.errors import DownloadError, RedirectLoopError
from ..core.types import ImageRef, ImageStats
from ..logging_utils import LOGGER_NAME, log_event

logger = logging.getLogger(LOGGER_NAME)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp"}
REDIRECT_STATUSES = {301, 302}
MAX_REDIRECTS = 5


def image_filename(image_url: str, position: int) -> str:
    """Pick the local filename for an image.

    Keeps the URL basename when it carries a known image extension
    (matched case-insensitively, original case preserved); otherwise
    falls back to image-<position>.png, also for URLs that do not parse.
    """
    try:
        basename = posixpath.basename(urlsplit(image_url).path)
    except ValueError:
        return f"image-{position}.png"
    ext = posixpath.splitext(basename)[1]
    if ext and ext.lower() in IMAGE_EXTENSIONS:
        return basename
    return f"image-{position}.png"


async def download_image(
    image_url: str,
    dest: Path,
    client: httpx.AsyncClient | None = None,
    max_redirects: int = MAX_REDIRECTS,
    timeout: float | None = 30.0,
) -> None:
    """Download one image to dest, following 301/302 redirects.

    Raises:
        RedirectLoopError: The chain revisits a URL or exceeds max_redirects
        DownloadError: The final response is not 200
        httpx.HTTPError, OSError: Transport or write failures; a partially
            written file is removed first
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=False) as own_client:
            await _download(own_client, image_url, Path(dest), max_redirects)
        return
    await _download(client, image_url, Path(dest), max_redirects)


async def _download(client: httpx.AsyncClient, image_url: str, dest: Path, max_redirects: int) -> None:
    visited = {image_url}
    url = image_url
    hops = 0

    while True:
        async with client.stream("GET", url, follow_redirects=False) as resp:
            location = resp.headers.get("location")
            if resp.status_code in REDIRECT_STATUSES and location:
                next_url = urljoin(url, location)
                if next_url in visited:
                    raise RedirectLoopError(
                        f"Redirect loop while downloading image: {next_url}", url=image_url
                    )
                hops += 1
                if hops > max_redirects:
                    raise RedirectLoopError(
                        f"Too many redirects while downloading image (>{max_redirects})",
                        url=image_url,
                    )
                visited.add(next_url)
                url = next_url
                continue

            if resp.status_code != 200:
                raise DownloadError(
                    f"Failed to download image: {resp.status_code}",
                    url=url,
                    status_code=resp.status_code,
                )

            await _stream_to_file(resp, dest)
            return


async def _stream_to_file(resp: httpx.Response, dest: Path) -> None:
    try:
        with dest.open("wb") as handle:
            async for chunk in resp.aiter_bytes():
                handle.write(chunk)
    except BaseException:
        dest.unlink(missing_ok=True)
        raise


async def download_images(
    images: list[ImageRef],
    content_dir: Path,
    client: httpx.AsyncClient | None = None,
    max_redirects: int = MAX_REDIRECTS,
    timeout: float | None = 30.0,
    user_agent: str | None = None,
) -> ImageStats:
    """Download all images of a page concurrently into content_dir.

    Every download runs independently; failures are logged and counted
    but never raised.

    Args:
        images: Images in page order
        content_dir: Directory receiving the image files
        client: Optional shared httpx.AsyncClient
        max_redirects: Redirect hop limit per image
        timeout: Request timeout when no client is given
        user_agent: User-Agent header when no client is given

    Returns:
        ImageStats with downloaded and failed counts
    """
    if not images:
        return ImageStats()

    if client is None:
        headers = {"User-Agent": user_agent} if user_agent else None
        async with httpx.AsyncClient(timeout=timeout, headers=headers, trust_env=True) as own_client:
            return await _download_all(own_client, images, Path(content_dir), max_redirects)
    return await _download_all(client, images, Path(content_dir), max_redirects)


async def _download_all(
    client: httpx.AsyncClient,
    images: list[ImageRef],
    content_dir: Path,
    max_redirects: int,
) -> ImageStats:
    async def _download_one(index: int, image: ImageRef) -> None:
        position = image.position or index + 1
        dest = content_dir / image_filename(image.image_url, position)
        await download_image(image.image_url, dest, client=client, max_redirects=max_redirects)

    tasks = [asyncio.create_task(_download_one(index, image)) for index, image in enumerate(images)]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    stats = ImageStats()
    for image, result in zip(images, results):
        if isinstance(result, BaseException):
            stats.failed += 1
            log_event(logger, "image_failed", url=image.image_url, error=str(result) or type(result).__name__)
        else:
            stats.downloaded += 1
    return stats
