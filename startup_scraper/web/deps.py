"""Dependency injection for FastAPI: shared config and external clients."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from startup_scraper.config import Config, load_config
from startup_scraper.scrape.firecrawl_client import FirecrawlClient
from startup_scraper.source.supabase_client import SupabaseClient


@lru_cache
def get_config() -> Config:
    return load_config()


def get_source(config: Config = Depends(get_config)) -> SupabaseClient:
    return SupabaseClient(config)


def get_scraper(config: Config = Depends(get_config)) -> FirecrawlClient:
    return FirecrawlClient(
        api_key=config.firecrawl_api_key,
        base_url=config.firecrawl_base_url,
        timeout=config.scrape_timeout,
    )
