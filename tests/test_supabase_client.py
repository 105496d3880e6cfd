from __future__ import annotations

import asyncio

import httpx
import pytest

from startup_scraper.config import Config
from startup_scraper.source.supabase_client import (
    SourceQueryError,
    SourceUnavailable,
    SupabaseClient,
)

ROWS = [
    {
        "id": "1",
        "name": "Acme",
        "website": "https://acme.io",
        "sector": "AI",
        "funding_amount": 2500000,
        "status": "active",
        "slug": "acme",
        "startup_employees": [{"id": "e1", "name": "Ada", "role": "CEO", "email": None}],
        "startup_tags": [{"tag": "ai"}, {"tag": "b2b"}],
    },
    {
        "id": "2",
        "name": "NoSite",
        "website": None,
        "slug": "nosite",
        "startup_employees": None,
        "startup_tags": [],
    },
]


def fetch_with(config, handler):
    client = SupabaseClient(config, transport=httpx.MockTransport(handler))
    return asyncio.run(client.fetch_startups())


def test_fetch_requests_embedded_rows(config):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ROWS)

    startups = fetch_with(config, handler)

    request = seen[0]
    assert request.url.path == "/rest/v1/startups"
    assert request.url.params["select"] == "*,startup_employees(*),startup_tags(tag)"
    assert request.url.params["order"] == "created_at.desc"
    assert request.headers["apikey"] == "anon-test"
    assert request.headers["Authorization"] == "Bearer anon-test"

    assert [s.name for s in startups] == ["Acme", "NoSite"]
    acme = startups[0]
    assert acme.tag_names == ["ai", "b2b"]
    assert acme.funding_amount == "2500000"
    assert acme.startup_employees[0].role == "CEO"
    assert startups[1].startup_employees == []


def test_missing_settings_raise_unavailable():
    client = SupabaseClient(Config(firecrawl_api_key="fc"))
    assert not client.is_configured
    with pytest.raises(SourceUnavailable) as exc:
        asyncio.run(client.fetch_startups())
    assert "SUPABASE_URL" in str(exc.value)


def test_error_status_uses_postgrest_message(config):
    with pytest.raises(SourceQueryError) as exc:
        fetch_with(config, lambda r: httpx.Response(401, json={"message": "Invalid API key"}))
    assert exc.value.status == 401
    assert exc.value.detail == "Invalid API key"
    assert str(exc.value) == "Supabase error (401): Invalid API key"


def test_error_status_with_plain_body(config):
    with pytest.raises(SourceQueryError) as exc:
        fetch_with(config, lambda r: httpx.Response(500, text="oops"))
    assert exc.value.status == 500
    assert exc.value.detail == "oops"


def test_network_failure(config):
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    with pytest.raises(SourceQueryError) as exc:
        fetch_with(config, handler)
    assert exc.value.status is None
    assert "Name or service not known" in str(exc.value)
