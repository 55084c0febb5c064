"""Tests for image downloads and filename policy."""

import asyncio
from pathlib import Path

import httpx
import pytest

from curator.core.errors import DownloadError, RedirectLoopError
from curator.core.types import ImageRef
from curator.fetch.images import download_image, download_images, image_filename


def _client(routes: dict[str, httpx.Response], calls: list[str] | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        if url in routes:
            return routes[url]
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _run_download(client: httpx.AsyncClient, url: str, dest: Path, **kwargs) -> None:
    async with client:
        await download_image(url, dest, client=client, **kwargs)


class FailingStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"partial"
        raise RuntimeError("connection reset")


def test_image_filename_keeps_basename_with_known_extension():
    assert image_filename("https://cdn.x.com/a/b.JPG", 1) == "b.JPG"
    assert image_filename("https://cdn.x.com/a/photo.webp?w=200", 4) == "photo.webp"


def test_image_filename_falls_back_to_position():
    assert image_filename("https://cdn.x.com/a/b", 3) == "image-3.png"
    assert image_filename("https://cdn.x.com/a/file.php", 2) == "image-2.png"
    assert image_filename("https://cdn.x.com/", 7) == "image-7.png"


def test_download_writes_body(tmp_path: Path):
    dest = tmp_path / "a.png"
    client = _client({"https://img.test/a.png": httpx.Response(200, content=b"PNGDATA")})

    asyncio.run(_run_download(client, "https://img.test/a.png", dest))

    assert dest.read_bytes() == b"PNGDATA"


def test_download_follows_redirect(tmp_path: Path):
    dest = tmp_path / "a.png"
    calls: list[str] = []
    client = _client(
        {
            "https://img.test/a.png": httpx.Response(302, headers={"Location": "https://cdn.test/b.png"}),
            "https://cdn.test/b.png": httpx.Response(200, content=b"B-BODY"),
        },
        calls,
    )

    asyncio.run(_run_download(client, "https://img.test/a.png", dest))

    assert dest.read_bytes() == b"B-BODY"
    assert calls == ["https://img.test/a.png", "https://cdn.test/b.png"]


def test_download_resolves_relative_redirect(tmp_path: Path):
    dest = tmp_path / "a.png"
    client = _client(
        {
            "https://img.test/old/a.png": httpx.Response(301, headers={"Location": "/new/a.png"}),
            "https://img.test/new/a.png": httpx.Response(200, content=b"MOVED"),
        }
    )

    asyncio.run(_run_download(client, "https://img.test/old/a.png", dest))

    assert dest.read_bytes() == b"MOVED"


def test_redirect_back_to_origin_is_a_loop(tmp_path: Path):
    dest = tmp_path / "a.png"
    calls: list[str] = []
    client = _client(
        {
            "https://img.test/a.png": httpx.Response(302, headers={"Location": "https://img.test/b.png"}),
            "https://img.test/b.png": httpx.Response(302, headers={"Location": "https://img.test/a.png"}),
        },
        calls,
    )

    with pytest.raises(RedirectLoopError):
        asyncio.run(_run_download(client, "https://img.test/a.png", dest))

    assert len(calls) == 2
    assert not dest.exists()


def test_redirect_chain_is_bounded(tmp_path: Path):
    routes = {
        f"https://img.test/{i}.png": httpx.Response(302, headers={"Location": f"https://img.test/{i + 1}.png"})
        for i in range(10)
    }
    calls: list[str] = []
    client = _client(routes, calls)

    with pytest.raises(RedirectLoopError, match="Too many redirects"):
        asyncio.run(_run_download(client, "https://img.test/0.png", tmp_path / "x.png", max_redirects=3))

    assert len(calls) == 4


def test_non_200_status_raises_download_error(tmp_path: Path):
    dest = tmp_path / "a.png"
    client = _client({"https://img.test/a.png": httpx.Response(403)})

    with pytest.raises(DownloadError) as excinfo:
        asyncio.run(_run_download(client, "https://img.test/a.png", dest))

    assert excinfo.value.status_code == 403
    assert "403" in str(excinfo.value)
    assert not dest.exists()


def test_redirect_without_location_is_an_error(tmp_path: Path):
    client = _client({"https://img.test/a.png": httpx.Response(302)})

    with pytest.raises(DownloadError) as excinfo:
        asyncio.run(_run_download(client, "https://img.test/a.png", tmp_path / "a.png"))

    assert excinfo.value.status_code == 302


def test_partial_file_is_removed_when_stream_fails(tmp_path: Path):
    dest = tmp_path / "a.png"
    client = _client({"https://img.test/a.png": httpx.Response(200, stream=FailingStream())})

    with pytest.raises(RuntimeError, match="connection reset"):
        asyncio.run(_run_download(client, "https://img.test/a.png", dest))

    assert not dest.exists()


def test_download_images_counts_successes_and_failures(tmp_path: Path):
    client = _client(
        {
            "https://img.test/one.jpg": httpx.Response(200, content=b"1"),
            "https://img.test/two": httpx.Response(200, content=b"2"),
            "https://img.test/broken.png": httpx.Response(500),
        }
    )
    images = [
        ImageRef("https://img.test/one.jpg"),
        ImageRef("https://img.test/two", position=5),
        ImageRef("https://img.test/broken.png"),
    ]

    async def run():
        async with client:
            return await download_images(images, tmp_path, client=client)

    stats = asyncio.run(run())

    assert stats.downloaded == 2
    assert stats.failed == 1
    assert (tmp_path / "one.jpg").read_bytes() == b"1"
    assert (tmp_path / "image-5.png").read_bytes() == b"2"
    assert not (tmp_path / "broken.png").exists()


def test_download_images_uses_index_when_position_missing(tmp_path: Path):
    client = _client(
        {
            "https://img.test/a": httpx.Response(200, content=b"a"),
            "https://img.test/b": httpx.Response(200, content=b"b"),
        }
    )

    async def run():
        async with client:
            return await download_images(
                [ImageRef("https://img.test/a"), ImageRef("https://img.test/b")], tmp_path, client=client
            )

    stats = asyncio.run(run())

    assert stats.downloaded == 2
    assert (tmp_path / "image-1.png").read_bytes() == b"a"
    assert (tmp_path / "image-2.png").read_bytes() == b"b"


def test_download_images_with_no_images(tmp_path: Path):
    stats = asyncio.run(download_images([], tmp_path))
    assert stats.downloaded == 0
    assert stats.failed == 0


class HangingStream(httpx.AsyncByteStream):
    def __init__(self, started: asyncio.Event):
        self.started = started

    async def __aiter__(self):
        yield b"partial"
        self.started.set()
        await asyncio.Event().wait()


def test_image_filename_tolerates_malformed_url():
    assert image_filename("http://[bad/pic.png", 2) == "image-2.png"


def test_malformed_image_url_is_counted_as_failure(tmp_path: Path):
    client = _client({"https://img.test/ok.png": httpx.Response(200, content=b"ok")})
    images = [ImageRef("https://img.test/ok.png"), ImageRef("http://[bad/pic.png")]

    async def run():
        async with client:
            return await download_images(images, tmp_path, client=client)

    stats = asyncio.run(run())

    assert stats.downloaded == 1
    assert stats.failed == 1
    assert (tmp_path / "ok.png").read_bytes() == b"ok"


def test_cancelled_download_removes_partial_file(tmp_path: Path):
    dest = tmp_path / "a.png"

    async def run():
        started = asyncio.Event()
        client = _client({"https://img.test/a.png": httpx.Response(200, stream=HangingStream(started))})
        async with client:
            task = asyncio.create_task(download_image("https://img.test/a.png", dest, client=client))
            await asyncio.wait_for(started.wait(), timeout=5)
            assert dest.exists()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

    asyncio.run(run())

    assert not dest.exists()


def test_page_images_are_downloaded_concurrently(tmp_path: Path):
    urls = [f"https://img.test/{name}.png" for name in ("a", "b", "c")]

    async def run():
        in_flight = 0
        peak = 0
        all_started = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            if in_flight == len(urls):
                all_started.set()
            await asyncio.wait_for(all_started.wait(), timeout=2)
            in_flight -= 1
            return httpx.Response(200, content=b"img")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            stats = await download_images([ImageRef(url) for url in urls], tmp_path, client=client)
        return stats, peak

    stats, peak = asyncio.run(run())

    assert peak == len(urls)
    assert stats.downloaded == len(urls)
    assert stats.failed == 0
