from __future__ import annotations

from fakes import make_startup
from startup_scraper.source.directory import filter_startups, list_sectors

STARTUPS = [
    make_startup("Acme Robotics", sector="Robotics", location="Berlin"),
    make_startup("Beta Pay", sector="Fintech", description="Payments for robots"),
    make_startup("Gamma", sector="Fintech", location="Paris"),
    make_startup("Delta"),
]


def test_sectors_are_sorted_and_distinct():
    assert list_sectors(STARTUPS) == ["All", "Fintech", "Robotics"]


def test_search_matches_name_description_and_location_case_insensitively():
    assert [s.name for s in filter_startups(STARTUPS, "ROBOT")] == ["Acme Robotics", "Beta Pay"]
    assert [s.name for s in filter_startups(STARTUPS, "paris")] == ["Gamma"]


def test_sector_filter_is_exact():
    assert [s.name for s in filter_startups(STARTUPS, sector="Fintech")] == ["Beta Pay", "Gamma"]
    assert filter_startups(STARTUPS, sector="fintech") == []


def test_defaults_return_everything():
    assert filter_startups(STARTUPS) == STARTUPS
