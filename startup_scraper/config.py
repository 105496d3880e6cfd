"""Configuration management via environment variables and .env file."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel


class Config(BaseModel):
    """Application configuration loaded from environment."""

    # Firecrawl scraping API
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"

    # Supabase data source
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Timeouts in seconds; every per-target wait is bounded
    scrape_timeout: float = 60.0
    source_timeout: float = 30.0

    # Export
    content_excerpt_chars: int = 500

    # Web server
    web_host: str = "0.0.0.0"
    web_port: int = 8000

    # CLI client
    server_url: str = "http://localhost:8000"

    def missing_settings(self) -> list[str]:
        """Return env var names of required settings that are not set."""
        missing = []
        if not self.firecrawl_api_key:
            missing.append("FIRECRAWL_API_KEY")
        missing.extend(self.missing_source_settings())
        return missing

    def missing_source_settings(self) -> list[str]:
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")
        return missing


def load_config() -> Config:
    """Load configuration from .env file and environment variables.

    Environment variables override .env values. Missing keys are not fatal
    here; the scrape endpoint validates them on entry so the error reaches
    the client as a JSON document.
    """
    load_dotenv()

    return Config(
        firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY", ""),
        firecrawl_base_url=os.getenv("FIRECRAWL_BASE_URL", "https://api.firecrawl.dev"),
        supabase_url=os.getenv("SUPABASE_URL", "").rstrip("/"),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
        scrape_timeout=float(os.getenv("SCRAPE_TIMEOUT", "60")),
        source_timeout=float(os.getenv("SOURCE_TIMEOUT", "30")),
        content_excerpt_chars=int(os.getenv("CONTENT_EXCERPT_CHARS", "500")),
        web_host=os.getenv("WEB_HOST", "0.0.0.0"),
        web_port=int(os.getenv("WEB_PORT", "8000")),
        server_url=os.getenv("SCRAPER_SERVER_URL", "http://localhost:8000"),
    )
