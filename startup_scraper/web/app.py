"""FastAPI application for the startup directory and website scraper."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from startup_scraper.source.supabase_client import SourceError
from startup_scraper.web.routers.scrape import router as scrape_router
from startup_scraper.web.routers.startups import router as startups_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting startup directory API...")
    yield
    logger.info("Startup directory API shut down.")


app = FastAPI(
    title="Startup Directory",
    description="Startup directory backed by Supabase, with Firecrawl website scraping",
    lifespan=lifespan,
)

app.include_router(startups_router, prefix="/api")
app.include_router(scrape_router, prefix="/api")


@app.exception_handler(SourceError)
async def source_error_handler(request: Request, exc: SourceError):
    logger.warning("Directory request failed: %s", exc)
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.get("/health")
async def health():
    return {"status": "ok"}
