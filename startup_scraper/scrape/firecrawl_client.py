"""Async Firecrawl client for single-URL markdown scrapes."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

SCRAPE_ENDPOINT = "/v1/scrape"


class ScrapeTransportError(Exception):
    """The scrape call itself failed (network, timeout, auth, unreadable reply)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ScrapeResponse(BaseModel):
    """Normalised Firecrawl reply.

    ``ok`` mirrors Firecrawl's own ``success`` flag. When it is false,
    ``error`` carries the service's message and ``text`` is empty.
    """
    text: str = ""
    ok: bool = False
    error: str | None = None


class FirecrawlClient:
    """One POST per ``scrape()`` call, no retries."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.firecrawl.dev",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def scrape(self, url: str) -> ScrapeResponse:
        """Scrape ``url`` to markdown.

        Returns a ScrapeResponse for any reply Firecrawl could describe,
        including its own failures. Raises ScrapeTransportError when there
        is no usable reply: network errors, timeouts, 401s and non-2xx
        responses without a JSON body.
        """
        client = await self._get_client()
        payload = {"url": url, "formats": ["markdown"]}

        try:
            response = await client.post(SCRAPE_ENDPOINT, json=payload)
        except httpx.TimeoutException as e:
            logger.warning("Firecrawl timeout for %s", url)
            raise ScrapeTransportError("timeout") from e
        except httpx.HTTPError as e:
            logger.warning("Firecrawl request failed for %s: %s", url, e)
            raise ScrapeTransportError(str(e) or type(e).__name__) from e

        status = response.status_code
        try:
            data = response.json()
        except ValueError:
            data = None

        if status == 401:
            detail = data.get("error", "") if isinstance(data, dict) else response.text
            raise ScrapeTransportError(
                f"Unauthorized: Failed to scrape URL. Status code: 401. Error: {detail}".rstrip()
            )

        if not isinstance(data, dict):
            if not response.is_success:
                raise ScrapeTransportError(
                    f"Unexpected error occurred while trying to scrape URL. Status code: {status}"
                )
            logger.warning("Firecrawl returned a non-JSON body for %s", url)
            return ScrapeResponse(ok=False, error="Firecrawl returned an unreadable response")

        if data.get("success") is True:
            doc = data.get("data") or {}
            return ScrapeResponse(text=doc.get("markdown") or "", ok=True)

        error = data.get("error") or data.get("warning") or f"Scrape failed (HTTP {status})"
        logger.warning("Firecrawl reported failure for %s: %s", url, error)
        return ScrapeResponse(ok=False, error=str(error))
