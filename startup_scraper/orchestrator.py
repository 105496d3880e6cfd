"""Scrape orchestration: fetch targets, scrape each website in turn, stream progress.

A batch run lives for exactly one request. Its states are::

    INIT -> STREAMING -> DONE | ABORTED

Targets are processed strictly one at a time. Failures are folded into the
target's outcome, except for an auth-looking failure on the very first
target, which aborts the run before the remaining calls are wasted.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, Field

from startup_scraper.config import Config
from startup_scraper.models import (
    DoneEvent,
    ErrorEvent,
    InitEvent,
    ProgressEvent,
    ScrapeOutcome,
    Startup,
)
from startup_scraper.scrape.firecrawl_client import ScrapeResponse, ScrapeTransportError
from startup_scraper.source.supabase_client import SourceError
from startup_scraper.stream import ProgressEmitter

logger = logging.getLogger(__name__)

# Substrings of Firecrawl/SDK error text that point at a bad API key.
# Message text is not a stable contract, so this match is inherently brittle.
AUTH_FAILURE_MARKERS = ("401", "Unauthorized", "Invalid API", "Unexpected error")


def is_auth_failure(message: str) -> bool:
    """True if ``message`` looks like a credentials problem (case-sensitive)."""
    return any(marker in message for marker in AUTH_FAILURE_MARKERS)


class SetupError(Exception):
    """The run cannot start: configuration is missing or targets are unavailable."""


class RunState(str, Enum):
    INIT = "init"
    STREAMING = "streaming"
    DONE = "done"
    ABORTED = "aborted"


class TargetSource(Protocol):
    async def fetch_startups(self) -> list[Startup]: ...


class Scraper(Protocol):
    async def scrape(self, url: str) -> ScrapeResponse: ...


class TargetBatch(BaseModel):
    """Startups selected for one run, plus how many were left out."""
    targets: list[Startup] = Field(default_factory=list)
    skipped: int = 0

    @classmethod
    def from_startups(cls, startups: list[Startup]) -> TargetBatch:
        with_website = [s for s in startups if s.website]
        return cls(targets=with_website, skipped=len(startups) - len(with_website))

    @property
    def total(self) -> int:
        return len(self.targets)


class ScrapeOrchestrator:
    """Drives one batch run from ``init`` to ``done`` or ``error``."""

    def __init__(self, config: Config, source: TargetSource, scraper: Scraper):
        self.config = config
        self.source = source
        self.scraper = scraper
        self.state = RunState.INIT
        self.results: list[ScrapeOutcome] = []

    def check_setup(self) -> None:
        """Raise SetupError if any required setting is missing."""
        missing = self.config.missing_settings()
        if missing:
            verb = "is" if len(missing) == 1 else "are"
            raise SetupError(f"{', '.join(missing)} {verb} not set in .env")

    async def load_targets(self) -> TargetBatch:
        """Fetch the directory and keep only startups with a website."""
        try:
            startups = await self.source.fetch_startups()
        except SourceError as e:
            logger.error("Could not load startups: %s", e)
            raise SetupError(str(e) or "Failed to fetch startups from Supabase") from e

        batch = TargetBatch.from_startups(startups)
        logger.info(
            "Loaded %d startups: %d with websites, %d skipped",
            len(startups), batch.total, batch.skipped,
        )
        return batch

    async def run(self, batch: TargetBatch, emitter: ProgressEmitter) -> RunState:
        """Scrape every target in ``batch`` and stream events to ``emitter``.

        Always closes the emitter. Returns the final state.
        """
        self.state = RunState.STREAMING
        self.results = []
        total = batch.total
        try:
            await emitter.send(InitEvent(total=total, skipped=batch.skipped))

            for i, startup in enumerate(batch.targets):
                try:
                    response = await self.scraper.scrape(startup.website)
                except Exception as e:
                    if isinstance(e, ScrapeTransportError):
                        message = e.message
                    else:
                        message = str(e) or "Unknown error"

                    if i == 0 and is_auth_failure(message):
                        logger.error("Aborting run, first scrape failed with %s", message)
                        await emitter.send(ErrorEvent(
                            message=(
                                f"Firecrawl API key error: {message}. "
                                "Check FIRECRAWL_API_KEY in .env"
                            ),
                        ))
                        self.state = RunState.ABORTED
                        return self.state

                    logger.warning("[%d/%d] %s failed: %s", i + 1, total, startup.name, message)
                    self.results.append(ScrapeOutcome.for_startup(startup, error=message))
                    await emitter.send(ProgressEvent(
                        index=i + 1,
                        total=total,
                        name=startup.name,
                        success=False,
                        error=message,
                    ))
                    continue

                content = response.text if response.ok else ""
                error = None if response.ok else (response.error or "Scrape failed")
                self.results.append(ScrapeOutcome.for_startup(startup, content=content, error=error))
                logger.info(
                    "[%d/%d] %s: %s",
                    i + 1, total, startup.name, error or f"{len(content)} chars",
                )
                await emitter.send(ProgressEvent(
                    index=i + 1,
                    total=total,
                    name=startup.name,
                    success=response.ok and len(content) > 0,
                    content_length=len(content),
                    error=error,
                ))

            await emitter.send(DoneEvent(results=list(self.results)))
            self.state = RunState.DONE
            failed = sum(1 for r in self.results if r.error)
            logger.info("Scrape run finished: %d targets, %d failed", total, failed)
            return self.state
        finally:
            await emitter.close()
