"""Tests for the Firecrawl scrape client."""

import asyncio
import json

import httpx

from curator.core.types import ImageRef
from curator.fetch.fetcher import FirecrawlClient


def _scrape(handler, **kwargs):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            client = FirecrawlClient("fc-test", base_url="https://api.test/", http_client=http_client)
            return await client.scrape("https://example.com/post", **kwargs)

    return asyncio.run(run())


def test_scrape_sends_request_and_parses_content():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "markdown": "# Post",
                    "metadata": {"title": "Post", "description": "About"},
                    "images": ["https://img.test/a.png", {"imageUrl": "https://img.test/b", "position": 2}],
                },
            },
        )

    result = _scrape(handler, formats=["markdown", "images"], only_main_content=False)

    assert seen["url"] == "https://api.test/v2/scrape"
    assert seen["auth"] == "Bearer fc-test"
    assert seen["body"] == {
        "url": "https://example.com/post",
        "formats": ["markdown", "images"],
        "onlyMainContent": False,
    }
    assert result.success
    assert result.title == "Post"
    assert result.description == "About"
    assert result.markdown == "# Post"
    assert result.images == [ImageRef("https://img.test/a.png"), ImageRef("https://img.test/b", position=2)]


def test_missing_metadata_leaves_title_empty():
    def handler(request):
        return httpx.Response(200, json={"success": True, "data": {"markdown": "body"}})

    result = _scrape(handler, formats=["markdown"])

    assert result.success
    assert result.title is None
    assert result.description is None
    assert result.images == []


def test_list_metadata_uses_first_value():
    def handler(request):
        return httpx.Response(
            200,
            json={"success": True, "data": {"markdown": "", "metadata": {"title": ["One", "Two"]}}},
        )

    assert _scrape(handler, formats=["markdown"]).title == "One"


def test_api_error_is_reported():
    def handler(request):
        return httpx.Response(402, json={"success": False, "error": "Payment required"})

    result = _scrape(handler, formats=["markdown"])

    assert not result.success
    assert result.error == "Payment required"
    assert result.status_code == 402


def test_http_error_without_body_is_reported():
    def handler(request):
        return httpx.Response(500, text="")

    result = _scrape(handler, formats=["markdown"])

    assert not result.success
    assert "500" in result.error


def test_transport_error_is_reported():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = _scrape(handler, formats=["markdown"])

    assert not result.success
    assert result.error.startswith("ConnectError")
    assert result.status_code is None
