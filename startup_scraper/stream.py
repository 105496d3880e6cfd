"""Progress stream framing and the emitter that feeds the SSE response."""

from __future__ import annotations

import json
import logging
from typing import Protocol

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from startup_scraper.models import ScrapeEvent

logger = logging.getLogger(__name__)

FRAME_DELIMITER = "\n\n"
# EventSourceResponse separator; keeps frames as ``data: <JSON>\n\n``
SSE_LINE_SEP = "\n"


def event_json(event: ScrapeEvent) -> str:
    return json.dumps(event.to_payload(), ensure_ascii=False)


def encode_frame(event: ScrapeEvent) -> str:
    """Serialize one event as a complete wire frame."""
    return f"data: {event_json(event)}{FRAME_DELIMITER}"


class ProgressEmitter(Protocol):
    async def send(self, event: ScrapeEvent) -> None: ...

    async def close(self) -> None: ...


class ChannelEmitter:
    """Hands events to an EventSourceResponse through an anyio memory stream.

    The stream has no buffer, so ``send`` returns only once the response
    has taken the frame: ordering is preserved and nothing piles up in memory.
    """

    def __init__(self, send_stream: MemoryObjectSendStream):
        self._send_stream = send_stream
        self.closed = False

    async def send(self, event: ScrapeEvent) -> None:
        if self.closed:
            raise RuntimeError("Progress stream already closed")
        await self._send_stream.send({"data": event_json(event)})
        logger.debug("Sent %s event", event.type)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            await self._send_stream.aclose()


def open_channel() -> tuple[ChannelEmitter, MemoryObjectReceiveStream]:
    """Create an emitter plus the receive side to hand to EventSourceResponse."""
    send_stream, receive_stream = anyio.create_memory_object_stream(0)
    return ChannelEmitter(send_stream), receive_stream
