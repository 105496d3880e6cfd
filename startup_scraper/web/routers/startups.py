"""Directory API: list, filter and export startups.

Supabase failures surface as ``{"error": ...}`` with status 500 through the
app-level SourceError handler.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from startup_scraper.output.export import MEDIA_TYPES, directory_filename, export_directory
from startup_scraper.source.directory import ALL_SECTORS, filter_startups, list_sectors
from startup_scraper.source.supabase_client import SupabaseClient
from startup_scraper.web.deps import get_source

router = APIRouter(prefix="/startups", tags=["startups"])


@router.get("")
async def list_startups(
    search: str = "",
    sector: str = ALL_SECTORS,
    source: SupabaseClient = Depends(get_source),
):
    startups = await source.fetch_startups()
    return [s.model_dump(mode="json") for s in filter_startups(startups, search, sector)]


@router.get("/sectors")
async def sectors(source: SupabaseClient = Depends(get_source)):
    return list_sectors(await source.fetch_startups())


@router.get("/export")
async def export_startups(
    format: Literal["csv", "xlsx"] = Query("csv"),
    search: str = "",
    sector: str = ALL_SECTORS,
    source: SupabaseClient = Depends(get_source),
):
    startups = await source.fetch_startups()
    body = export_directory(filter_startups(startups, search, sector), format)
    return Response(
        content=body,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{directory_filename(format)}"'},
    )
