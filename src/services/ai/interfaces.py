"""Service interfaces for the design chat LLM collaborator.

These protocols keep the turn orchestration independent of any concrete
provider SDK: production wires in the pydantic-ai adapter, tests pass simple
fakes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

from pydantic_ai.settings import ModelSettings


class TextFragment(Protocol):
    """One chunk delivered by a streaming model call."""

    def text(self) -> str:
        """Decoded text of the chunk. May raise if the chunk is unreadable."""
        ...


class LLMStream(Protocol):
    """An open streaming model call."""

    def __aiter__(self) -> AsyncIterator[TextFragment]: ...

    def usage(self) -> object:
        """Usage report, available once iteration has finished.

        Any object or dict understood by ``TokenUsage.from_report``.
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying connection. Safe to call more than once."""
        ...


@dataclass(slots=True)
class ChatPrompt:
    """Everything the model needs for one design chat turn."""

    text: str
    model_settings: ModelSettings | None = None


@dataclass(slots=True)
class LLMCompletion:
    """Result of a non-streaming model call."""

    text: str
    usage: object = None


class DesignChatLLM(Protocol):
    """Streaming chat plus one-shot completion, as used by a chat turn."""

    async def open_stream(self, prompt: ChatPrompt) -> LLMStream:
        """Start a streaming call; raises if the stream cannot be opened."""
        ...

    async def generate(
        self, prompt: str, model_settings: ModelSettings | None = None
    ) -> LLMCompletion:
        """Run a single non-streaming call."""
        ...
