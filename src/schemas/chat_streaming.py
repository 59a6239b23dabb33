"""Schemas for design chat SSE streaming."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


MAX_SSE_EVENT_BYTES: int = 262_144


class ChatSseEvent(BaseModel):
    """Base for events pushed to the client as ``data: <json>\\n\\n`` lines."""

    def to_sse(self) -> str:
        """Serialize event to SSE format with size validation."""
        payload = self.model_dump_json(by_alias=True)
        if len(payload.encode("utf-8")) > MAX_SSE_EVENT_BYTES:
            raise ValueError("SSE payload exceeded MAX_SSE_EVENT_BYTES")
        return f"data: {payload}\n\n"


class ChunkEvent(ChatSseEvent):
    """Newly available, already unescaped text of the assistant message."""

    type: Literal["chunk"] = "chunk"
    text: str


class DoneEvent(ChatSseEvent):
    """Terminal success event; sent exactly once per turn."""

    type: Literal["done"] = "done"
    message: str
    should_generate_image: bool = Field(alias="shouldGenerateImage")

    model_config = ConfigDict(populate_by_name=True)


class ErrorEvent(ChatSseEvent):
    """Terminal failure event; never sent alongside ``done``."""

    type: Literal["error"] = "error"
    error: str


StreamEvent = ChunkEvent | DoneEvent | ErrorEvent


class ChatTurnRequest(BaseModel):
    """Request payload for one streamed design chat turn."""

    project_id: str = Field(..., min_length=1, alias="projectId")
    message: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
