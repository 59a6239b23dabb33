"""Relay of one streaming model call to the client as SSE events.

States::

    OPEN -> STREAMING -> FINALIZING -> CLOSED
      \\________\\____________\\______-> ERROR

While streaming, every fragment is appended to the turn buffer and the
growing ``message`` field is forwarded as ``chunk`` events. Once the stream
ends the buffer is parsed into a structured document, or kept as raw text.
The terminal ``done`` / ``error`` event is sent exactly once through
:meth:`StreamRelay.close` or :meth:`StreamRelay.fail`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from core.observability import DESIGN_CHAT_STREAM_SPAN, get_tracer
from schemas.chat_streaming import ChunkEvent, DoneEvent, ErrorEvent
from schemas.design_chat import (
    FallbackTurnResult,
    TokenUsage,
    TurnResult,
    parse_structured_turn,
)
from services.ai.interfaces import ChatPrompt, DesignChatLLM, LLMStream
from services.design_chat.delta_emitter import ExtractionState, next_delta
from services.design_chat.errors import user_friendly_error_message
from services.design_chat.event_queue import TurnEventQueue
from services.design_chat.field_extractor import extract_field
from services.design_chat.outcomes import Fatal, Ok, Recovered


logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

MESSAGE_FIELD = "message"


class RelayState(StrEnum):
    OPEN = "open"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(slots=True)
class RelayResult:
    """What a finished stream produced."""

    result: TurnResult
    raw_text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    chunks_emitted: int = 0
    fragments_skipped: int = 0


class StreamRelay:
    """Drives one streaming call for a single turn. Not reusable."""

    def __init__(
        self,
        llm: DesignChatLLM,
        sink: TurnEventQueue,
        field_name: str = MESSAGE_FIELD,
    ) -> None:
        self._llm = llm
        self._sink = sink
        self._field_name = field_name
        self._buffer = ""
        self._extraction = ExtractionState()
        self._chunks_emitted = 0
        self._fragments_skipped = 0
        self.state = RelayState.OPEN

    @property
    def buffer(self) -> str:
        return self._buffer

    async def run(self, prompt: ChatPrompt) -> Ok[RelayResult] | Recovered[RelayResult] | Fatal:
        """Stream the reply and finalize it.

        Returns ``Fatal`` if the stream cannot be opened or breaks off,
        ``Ok`` with a structured document, or ``Recovered`` with the raw text
        when the reply is not a valid document.
        """
        try:
            stream = await self._llm.open_stream(prompt)
        except Exception as exc:
            logger.error("Failed to open model stream: %s", exc, exc_info=True)
            self.state = RelayState.ERROR
            return Fatal(user_friendly_error_message(exc), exc)

        if not hasattr(stream, "__aiter__"):
            logger.error("Model stream is not async iterable: %r", type(stream))
            self.state = RelayState.ERROR
            return Fatal("Unable to read the response from the AI service.")

        with tracer.start_as_current_span(DESIGN_CHAT_STREAM_SPAN) as span:
            self.state = RelayState.STREAMING
            try:
                await self._consume(stream)
                usage = self._read_usage(stream)
            except Exception as exc:
                logger.error(
                    "Model stream failed after %d chars: %s",
                    len(self._buffer),
                    exc,
                    exc_info=True,
                )
                self.state = RelayState.ERROR
                span.set_attribute("design_chat.outcome", "fatal")
                return Fatal(user_friendly_error_message(exc), exc)
            finally:
                await self._close_stream(stream)

            self.state = RelayState.FINALIZING
            outcome = self._finalize(usage)

            span.set_attribute("design_chat.chars", len(self._buffer))
            span.set_attribute("design_chat.chunks_emitted", self._chunks_emitted)
            span.set_attribute("design_chat.fragments_skipped", self._fragments_skipped)
            span.set_attribute(
                "design_chat.outcome", "ok" if isinstance(outcome, Ok) else "recovered"
            )
            return outcome

    async def _consume(self, stream: LLMStream) -> None:
        async for fragment in stream:
            try:
                text = fragment.text()
            except Exception as exc:
                self._fragments_skipped += 1
                logger.warning("Skipping unreadable stream fragment: %s", exc)
                continue
            if not text:
                continue
            self._buffer += text

            delta, self._extraction = next_delta(
                self._extraction, extract_field(self._buffer, self._field_name)
            )
            if delta:
                self._chunks_emitted += 1
                self._sink.emit(ChunkEvent(text=delta))

    def _read_usage(self, stream: LLMStream) -> TokenUsage:
        try:
            return TokenUsage.from_report(stream.usage())
        except Exception as exc:
            logger.warning("Usage report unavailable: %s", exc)
            return TokenUsage()

    async def _close_stream(self, stream: LLMStream) -> None:
        try:
            await stream.aclose()
        except Exception as exc:
            logger.warning("Error closing model stream: %s", exc)

    def _finalize(self, usage: TokenUsage) -> Ok[RelayResult] | Recovered[RelayResult]:
        structured = parse_structured_turn(self._buffer)
        if structured is not None:
            return Ok(
                RelayResult(
                    structured,
                    self._buffer,
                    usage,
                    self._chunks_emitted,
                    self._fragments_skipped,
                )
            )

        logger.info(
            "Reply was not a structured document; using raw text (%d chars)",
            len(self._buffer),
        )
        return Recovered(
            RelayResult(
                FallbackTurnResult(message=self._buffer),
                self._buffer,
                usage,
                self._chunks_emitted,
                self._fragments_skipped,
            ),
            reason="reply was not a structured document",
        )

    def close(self, message: str, should_generate_image: bool) -> bool:
        """Send the terminal ``done`` event. Returns False if already terminated."""
        if self._sink.closed:
            return False
        self.state = RelayState.CLOSED
        self._sink.emit(
            DoneEvent(message=message, should_generate_image=should_generate_image)
        )
        self._sink.close()
        return True

    def fail(self, reason: str) -> bool:
        """Send the terminal ``error`` event. Returns False if already terminated."""
        if self._sink.closed:
            return False
        self.state = RelayState.ERROR
        self._sink.emit(ErrorEvent(error=reason))
        self._sink.close()
        return True
