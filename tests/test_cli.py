from __future__ import annotations

import json

import httpx
from click.testing import CliRunner

from fakes import make_startup
from startup_scraper import cli
from startup_scraper.client.consumer import ProgressConsumer
from startup_scraper.models import DoneEvent, ErrorEvent, InitEvent, ProgressEvent, ScrapeOutcome
from startup_scraper.stream import encode_frame


def patch_server(monkeypatch, config, body: bytes, status: int = 200, content_type="text/event-stream"):
    def handler(request):
        return httpx.Response(status, headers={"content-type": content_type}, content=body)

    class StubbedConsumer(ProgressConsumer):
        def __init__(self, base_url, **kwargs):
            super().__init__(base_url, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(cli, "load_config", lambda: config)
    monkeypatch.setattr(cli, "ProgressConsumer", StubbedConsumer)


def test_scrape_writes_requested_exports(monkeypatch, tmp_path, config):
    events = [
        InitEvent(total=1, skipped=0),
        ProgressEvent(index=1, total=1, name="Acme", success=True, content_length=6),
        DoneEvent(results=[ScrapeOutcome(name="Acme", website="https://acme.io", content="# Acme")]),
    ]
    patch_server(monkeypatch, config, "".join(encode_frame(e) for e in events).encode())

    result = CliRunner().invoke(cli.main, ["scrape", "-f", "json", "-f", "csv", "-o", str(tmp_path)])

    assert result.exit_code == 0, result.output
    data = json.loads((tmp_path / "scraped_startups.json").read_text())
    assert data[0]["content"] == "# Acme"
    assert (tmp_path / "scraped_startups.csv").read_text().startswith("Startup Name,Website")
    assert not (tmp_path / "scraped_startups.xlsx").exists()


def test_scrape_exits_nonzero_on_auth_abort(monkeypatch, tmp_path, config):
    events = [InitEvent(total=3, skipped=0), ErrorEvent(message="Firecrawl API key error: 401")]
    patch_server(monkeypatch, config, "".join(encode_frame(e) for e in events).encode())

    result = CliRunner().invoke(cli.main, ["scrape", "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "Firecrawl API key error: 401" in result.output
    assert list(tmp_path.iterdir()) == []


def test_scrape_reports_setup_error(monkeypatch, tmp_path, config):
    body = json.dumps({"error": "SUPABASE_URL is not set in .env"}).encode()
    patch_server(monkeypatch, config, body, status=500, content_type="application/json")

    result = CliRunner().invoke(cli.main, ["scrape", "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "SUPABASE_URL is not set" in result.output


def test_directory_lists_and_exports(monkeypatch, tmp_path, config):
    async def fake_fetch(self):
        return [make_startup("Acme", "https://acme.io", sector="AI"), make_startup("Beta", sector="Fintech")]

    monkeypatch.setattr(cli, "load_config", lambda: config)
    monkeypatch.setattr(cli.SupabaseClient, "fetch_startups", fake_fetch)

    result = CliRunner().invoke(
        cli.main, ["directory", "--sector", "AI", "--export", "csv", "-o", str(tmp_path)],
    )

    assert result.exit_code == 0, result.output
    assert "Acme" in result.output
    lines = (tmp_path / "startups.csv").read_text().splitlines()
    assert len(lines) == 2
    assert lines[1].startswith("Acme,AI")
