from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from startup_scraper.orchestrator import is_auth_failure
from startup_scraper.scrape.firecrawl_client import FirecrawlClient, ScrapeTransportError


def scrape_with(handler, url="https://acme.io"):
    client = FirecrawlClient("fc-key", transport=httpx.MockTransport(handler))

    async def go():
        try:
            return await client.scrape(url)
        finally:
            await client.close()

    return asyncio.run(go())


def test_success_returns_markdown_and_sends_one_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"markdown": "# Acme"}})

    result = scrape_with(handler)

    assert result.ok is True
    assert result.text == "# Acme"
    assert result.error is None
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.url == "https://api.firecrawl.dev/v1/scrape"
    assert request.headers["Authorization"] == "Bearer fc-key"
    assert json.loads(request.content) == {"url": "https://acme.io", "formats": ["markdown"]}


def test_success_without_markdown_is_empty_text():
    result = scrape_with(lambda r: httpx.Response(200, json={"success": True, "data": {}}))
    assert result.ok is True
    assert result.text == ""


def test_reported_failure_is_not_raised():
    result = scrape_with(
        lambda r: httpx.Response(200, json={"success": False, "error": "Site not reachable"})
    )
    assert result.ok is False
    assert result.text == ""
    assert result.error == "Site not reachable"


def test_non_2xx_with_json_body_is_reported_failure():
    result = scrape_with(
        lambda r: httpx.Response(402, json={"success": False, "error": "Payment required"})
    )
    assert result.ok is False
    assert result.error == "Payment required"


def test_401_raises_auth_looking_error():
    with pytest.raises(ScrapeTransportError) as exc:
        scrape_with(lambda r: httpx.Response(401, json={"success": False, "error": "Invalid token"}))
    assert "401" in exc.value.message
    assert "Unauthorized" in exc.value.message
    assert is_auth_failure(exc.value.message)


def test_non_2xx_without_json_raises():
    with pytest.raises(ScrapeTransportError) as exc:
        scrape_with(lambda r: httpx.Response(502, text="<html>Bad Gateway</html>"))
    assert exc.value.message.startswith("Unexpected error occurred")
    assert "502" in exc.value.message


def test_network_error_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(ScrapeTransportError) as exc:
        scrape_with(handler)
    assert exc.value.message == "Connection refused"
    assert not is_auth_failure(exc.value.message)


def test_timeout_raises_timeout_message():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(ScrapeTransportError) as exc:
        scrape_with(handler)
    assert exc.value.message == "timeout"
