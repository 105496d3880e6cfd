"""Directory search and sector filtering over fetched startups."""

from __future__ import annotations

from startup_scraper.models import Startup

ALL_SECTORS = "All"


def list_sectors(startups: list[Startup]) -> list[str]:
    """Return ``["All", ...]`` followed by the distinct sectors, sorted."""
    return [ALL_SECTORS, *sorted({s.sector for s in startups if s.sector})]


def filter_startups(
    startups: list[Startup], search: str = "", sector: str = ALL_SECTORS,
) -> list[Startup]:
    """Case-insensitive match on name, description or location, plus exact sector."""
    needle = search.lower()
    filtered = []
    for s in startups:
        matches_search = (
            needle in s.name.lower()
            or needle in (s.description or "").lower()
            or needle in (s.location or "").lower()
        )
        matches_sector = not sector or sector == ALL_SECTORS or s.sector == sector
        if matches_search and matches_sector:
            filtered.append(s)
    return filtered
