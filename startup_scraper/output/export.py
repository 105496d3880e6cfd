"""CSV / XLSX / JSON exports for scrape results and the startup directory.

Tabular formats expand to one row per employee (or a single row with blank
employee columns), repeating the startup's shared fields on every row.
"""

from __future__ import annotations

import io
import json
from typing import Literal

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from startup_scraper.models import ScrapeOutcome, Startup, StartupEmployee

ExportFormat = Literal["csv", "xlsx", "json"]

EMPLOYEE_COLUMNS = [
    "Employee Name",
    "Employee Role",
    "Employee Email",
    "Employee LinkedIn",
]

SCRAPE_COLUMNS = [
    "Startup Name",
    "Website",
    "Sector",
    "Location",
    "Funding Round",
    "Funding Amount",
    "Tags",
    "Scraped Content (excerpt)",
    "Scrape Error",
    *EMPLOYEE_COLUMNS,
]

DIRECTORY_COLUMNS = [
    "Startup Name",
    "Sector",
    "Location",
    "Website",
    "Funding Round",
    "Funding Amount",
    "Team Size",
    "Is Hiring",
    "Description",
    "Tags",
    *EMPLOYEE_COLUMNS,
]

SCRAPE_SHEET = "Scraped Startups"
DIRECTORY_SHEET = "Startups"

MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "json": "application/json",
}


def _expand_employees(base: dict[str, str], employees: list[StartupEmployee]) -> list[dict[str, str]]:
    if not employees:
        return [{**base, **{col: "" for col in EMPLOYEE_COLUMNS}}]
    return [
        {
            **base,
            "Employee Name": e.name,
            "Employee Role": e.role or "",
            "Employee Email": e.email or "",
            "Employee LinkedIn": e.linkedin_url or "",
        }
        for e in employees
    ]


def scrape_rows(results: list[ScrapeOutcome], excerpt_chars: int = 500) -> list[dict[str, str]]:
    rows = []
    for r in results:
        base = {
            "Startup Name": r.name,
            "Website": r.website or "",
            "Sector": r.sector or "",
            "Location": r.location or "",
            "Funding Round": r.funding_round or "",
            "Funding Amount": r.funding_amount or "",
            "Tags": ", ".join(r.tags),
            "Scraped Content (excerpt)": (r.content or "")[:excerpt_chars],
            "Scrape Error": r.error or "",
        }
        rows.extend(_expand_employees(base, r.employees))
    return rows


def directory_rows(startups: list[Startup]) -> list[dict[str, str]]:
    rows = []
    for s in startups:
        base = {
            "Startup Name": s.name,
            "Sector": s.sector or "",
            "Location": s.location or "",
            "Website": s.website or "",
            "Funding Round": s.funding_round or "",
            "Funding Amount": s.funding_amount or "",
            "Team Size": s.team_size or "",
            "Is Hiring": "Yes" if s.is_hiring else "No",
            "Description": s.description or "",
            "Tags": ", ".join(s.tag_names),
        }
        rows.extend(_expand_employees(base, s.startup_employees))
    return rows


def rows_to_csv(rows: list[dict[str, str]], columns: list[str]) -> str:
    return pd.DataFrame(rows, columns=columns).to_csv(index=False)


def rows_to_xlsx(rows: list[dict[str, str]], columns: list[str], sheet_name: str) -> bytes:
    # openpyxl rejects control characters in cell values
    rows = [
        {k: ILLEGAL_CHARACTERS_RE.sub("", v) if isinstance(v, str) else v for k, v in row.items()}
        for row in rows
    ]
    df = pd.DataFrame(rows, columns=columns)
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()


def results_to_json(results: list[ScrapeOutcome]) -> str:
    """Full dump, one record per startup, with the complete scraped markdown."""
    return json.dumps([r.to_payload() for r in results], indent=2, ensure_ascii=False)


def export_results(
    results: list[ScrapeOutcome], fmt: ExportFormat, excerpt_chars: int = 500,
) -> bytes:
    if fmt == "json":
        return results_to_json(results).encode("utf-8")
    rows = scrape_rows(results, excerpt_chars)
    if fmt == "csv":
        return rows_to_csv(rows, SCRAPE_COLUMNS).encode("utf-8")
    if fmt == "xlsx":
        return rows_to_xlsx(rows, SCRAPE_COLUMNS, SCRAPE_SHEET)
    raise ValueError(f"Unsupported export format: {fmt}. Use csv, xlsx or json")


def export_directory(startups: list[Startup], fmt: ExportFormat) -> bytes:
    rows = directory_rows(startups)
    if fmt == "csv":
        return rows_to_csv(rows, DIRECTORY_COLUMNS).encode("utf-8")
    if fmt == "xlsx":
        return rows_to_xlsx(rows, DIRECTORY_COLUMNS, DIRECTORY_SHEET)
    raise ValueError(f"Unsupported export format: {fmt}. Use csv or xlsx")


def results_filename(fmt: ExportFormat) -> str:
    return f"scraped_startups.{fmt}"


def directory_filename(fmt: ExportFormat) -> str:
    return f"startups.{fmt}"
