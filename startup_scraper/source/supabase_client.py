"""Supabase REST client: reads the startup directory in a single request."""

from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from startup_scraper.config import Config
from startup_scraper.models import Startup

logger = logging.getLogger(__name__)

# Embed employees and tag names so one call returns everything a scrape needs
STARTUPS_SELECT = "*,startup_employees(*),startup_tags(tag)"
STARTUPS_ORDER = "created_at.desc"

_startup_list = TypeAdapter(list[Startup])


class SourceError(Exception):
    """Base class for failures reading the directory."""


class SourceUnavailable(SourceError):
    """Connection settings for the data source are missing."""


class SourceQueryError(SourceError):
    """The data source answered with an error or could not be reached."""

    def __init__(self, status: int | None, detail: str):
        self.status = status
        self.detail = detail
        if status is None:
            super().__init__(f"Supabase request failed: {detail}")
        else:
            super().__init__(f"Supabase error ({status}): {detail}")


def _error_detail(response: httpx.Response) -> str:
    """Pull the most useful message out of a PostgREST error response."""
    body = response.text
    try:
        parsed = response.json()
    except ValueError:
        return body or response.reason_phrase
    if isinstance(parsed, dict):
        return parsed.get("message") or parsed.get("error") or body
    return body


class SupabaseClient:
    """Async read-only client for the ``startups`` table."""

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return not self.config.missing_source_settings()

    def _headers(self) -> dict[str, str]:
        key = self.config.supabase_anon_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept-Profile": "public",
            "Accept": "application/json",
        }

    async def fetch_startups(self) -> list[Startup]:
        """Fetch every startup with employees and tags, newest first.

        Single attempt, no retries.
        Raises SourceUnavailable if SUPABASE_URL / SUPABASE_ANON_KEY are unset,
        SourceQueryError if the request fails or returns a non-2xx status.
        """
        missing = self.config.missing_source_settings()
        if missing:
            raise SourceUnavailable(
                f"Missing env vars: {' or '.join(missing)} not set in .env"
            )

        url = f"{self.config.supabase_url.rstrip('/')}/rest/v1/startups"
        params = {"select": STARTUPS_SELECT, "order": STARTUPS_ORDER}

        try:
            async with httpx.AsyncClient(
                timeout=self.config.source_timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("Supabase request failed: %s", e)
            raise SourceQueryError(None, str(e) or type(e).__name__) from e

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning("Supabase HTTP %d: %s", response.status_code, detail[:200])
            raise SourceQueryError(response.status_code, detail)

        try:
            startups = _startup_list.validate_json(response.content)
        except ValidationError as e:
            raise SourceQueryError(response.status_code, f"Unexpected response shape: {e}") from e

        logger.info("Fetched %d startups from Supabase", len(startups))
        return startups
