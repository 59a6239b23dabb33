"""Hand-off between a running chat turn and the HTTP response streaming it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from schemas.chat_streaming import StreamEvent


logger = logging.getLogger(__name__)


class TurnEventQueue:
    """Queue of SSE events for one turn.

    The turn task writes with :meth:`emit` and finishes with :meth:`close`;
    the response generator reads with ``async for``. When the client goes
    away the reader calls :meth:`detach`: later events are dropped while the
    turn keeps running to completion.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._detached = False
        self._closed = False

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: StreamEvent) -> bool:
        """Queue ``event``; returns False when nobody will read it."""
        if self._closed or self._detached:
            return False
        self._queue.put_nowait(event)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    def detach(self) -> None:
        if not self._detached:
            logger.info("Client detached from chat turn; finishing in background")
        self._detached = True

    async def __aiter__(self) -> AsyncIterator[StreamEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event
