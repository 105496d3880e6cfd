from __future__ import annotations

import pytest

from startup_scraper.config import Config


@pytest.fixture()
def config() -> Config:
    """Fully configured settings, no environment involved."""
    return Config(
        firecrawl_api_key="fc-test",
        supabase_url="https://demo.supabase.co",
        supabase_anon_key="anon-test",
        scrape_timeout=5,
        source_timeout=5,
    )
