"""Client side of the scrape stream: frame buffering, run state, cancellation."""

from __future__ import annotations

import asyncio
import codecs
import logging
import re
from typing import Callable

import httpx
from pydantic import BaseModel, Field, ValidationError

from startup_scraper.models import (
    DoneEvent,
    ErrorEvent,
    InitEvent,
    ProgressEvent,
    ScrapeEvent,
    ScrapeOutcome,
    scrape_event_adapter,
)
from startup_scraper.stream import FRAME_DELIMITER

logger = logging.getLogger(__name__)

_DATA_PREFIX = re.compile(r"^data: ")


class FrameBuffer:
    """Turns arbitrary byte chunks into complete frames.

    Incomplete trailing data (including a split UTF-8 sequence) is carried
    over to the next ``feed`` call.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, chunk: bytes) -> list[str]:
        self._pending += self._decoder.decode(chunk)
        *frames, self._pending = self._pending.split(FRAME_DELIMITER)
        return frames


def parse_frame(frame: str) -> ScrapeEvent | None:
    """Parse one frame, or return None for blank, comment or malformed frames."""
    data = _DATA_PREFIX.sub("", frame, count=1).strip()
    if not data:
        return None
    try:
        return scrape_event_adapter.validate_json(data)
    except ValidationError:
        logger.debug("Skipping malformed frame: %s", data[:80])
        return None


class LogEntry(BaseModel):
    name: str
    success: bool
    content_length: int | None = None
    error: str | None = None


class BatchRunState(BaseModel):
    """What the client knows about the current run."""
    current: int = 0
    total: int = 0
    skipped: int = 0
    log_entries: list[LogEntry] = Field(default_factory=list)
    results: list[ScrapeOutcome] | None = None
    fatal_error: str | None = None
    is_running: bool = False

    def start(self) -> None:
        self.current = 0
        self.total = 0
        self.skipped = 0
        self.log_entries = []
        self.results = None
        self.fatal_error = None
        self.is_running = True

    def apply(self, event: ScrapeEvent) -> None:
        if isinstance(event, InitEvent):
            self.current = 0
            self.total = event.total
            self.skipped = event.skipped
        elif isinstance(event, ProgressEvent):
            self.current = event.index
            self.total = event.total
            self.log_entries.append(LogEntry(
                name=event.name,
                success=event.success,
                content_length=event.content_length,
                error=event.error,
            ))
        elif isinstance(event, ErrorEvent):
            self.fatal_error = event.message
        elif isinstance(event, DoneEvent):
            self.results = event.results

    @property
    def success_count(self) -> int:
        return sum(1 for entry in self.log_entries if entry.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for entry in self.log_entries if not entry.success)

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.current / self.total * 100)


class ProgressConsumer:
    """Starts a scrape on the server and follows its event stream.

    ``cancel()`` may be called from another task; it stops the request and
    leaves ``fatal_error`` untouched.
    """

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout | None = None,
        on_event: Callable[[ScrapeEvent, BatchRunState], None] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        # Scrapes can run for minutes, so reads between frames are unbounded
        self.timeout = timeout or httpx.Timeout(10.0, read=None)
        self.on_event = on_event
        self.state = BatchRunState()
        self.cancelled = False
        self._task: asyncio.Task | None = None

    def cancel(self) -> None:
        self.cancelled = True
        self.state.is_running = False
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # Called from an on_event callback: the flag stops dispatch at the next frame
        if task is not current:
            task.cancel()

    def dispatch(self, frame: str) -> ScrapeEvent | None:
        event = parse_frame(frame)
        if event is not None:
            self.state.apply(event)
            if self.on_event:
                self.on_event(event, self.state)
        return event

    async def run(self) -> BatchRunState:
        """POST /api/scrape and consume the stream until it ends."""
        self.state.start()
        self.cancelled = False
        self._task = asyncio.current_task()
        try:
            await self._consume()
        except asyncio.CancelledError:
            if not self.cancelled:
                raise
            logger.info("Scrape stream cancelled by client")
        except httpx.HTTPError as e:
            if not self.cancelled:
                self.state.fatal_error = str(e) or "Network error"
        finally:
            self.state.is_running = False
            self._task = None
        return self.state

    async def _consume(self) -> None:
        buffer = FrameBuffer()
        async with httpx.AsyncClient(
            base_url=self.base_url,
            transport=self.transport,
            timeout=self.timeout,
        ) as client:
            async with client.stream("POST", "/api/scrape") as response:
                content_type = response.headers.get("content-type", "")
                if "application/json" in content_type:
                    await response.aread()
                    try:
                        body = response.json()
                    except ValueError:
                        body = {}
                    error = body.get("error") if isinstance(body, dict) else None
                    self.state.fatal_error = error or f"Server error: {response.status_code}"
                    return

                if not response.is_success:
                    self.state.fatal_error = (
                        f"Server error: {response.status_code} {response.reason_phrase}"
                    )
                    return

                async for chunk in response.aiter_bytes():
                    if self.cancelled:
                        break
                    for frame in buffer.feed(chunk):
                        if self.cancelled:
                            return
                        self.dispatch(frame)
