"""Scrape API: run a batch and stream its progress via SSE.

Besides the ``data:`` frames, sse-starlette writes a ``: ping`` comment every
15 seconds as a keep-alive while a slow scrape is in flight. Comment lines
carry no event, and the client skips them.
"""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from startup_scraper.config import Config
from startup_scraper.orchestrator import ScrapeOrchestrator, SetupError
from startup_scraper.scrape.firecrawl_client import FirecrawlClient
from startup_scraper.source.supabase_client import SupabaseClient
from startup_scraper.stream import SSE_LINE_SEP, open_channel
from startup_scraper.web.deps import get_config, get_scraper, get_source

logger = logging.getLogger(__name__)
router = APIRouter(tags=["scrape"])


@router.post("/scrape")
async def start_scrape(
    config: Config = Depends(get_config),
    source: SupabaseClient = Depends(get_source),
    scraper: FirecrawlClient = Depends(get_scraper),
):
    """Scrape every startup website and stream ``init``/``progress``/``done`` frames.

    Setup problems (missing keys, Supabase unreachable) are answered with a
    one-shot JSON error instead of a stream.
    """
    orchestrator = ScrapeOrchestrator(config, source, scraper)
    try:
        orchestrator.check_setup()
        batch = await orchestrator.load_targets()
    except SetupError as e:
        logger.warning("Scrape run not started: %s", e)
        await scraper.close()
        return JSONResponse({"error": str(e)}, status_code=500)

    emitter, receive_stream = open_channel()

    async def run_batch():
        try:
            await orchestrator.run(batch, emitter)
        finally:
            # The response cancels this task as soon as the stream closes
            with anyio.CancelScope(shield=True):
                await scraper.close()

    return EventSourceResponse(
        receive_stream,
        data_sender_callable=run_batch,
        sep=SSE_LINE_SEP,
        headers={"Cache-Control": "no-cache"},
    )
