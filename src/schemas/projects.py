"""Schemas for design projects, their transcripts and per-project overrides."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectCreate(BaseModel):
    """Schema for creating a design project."""

    name: str = Field(..., min_length=1, max_length=200, description="Project name")

    model_config = ConfigDict(extra="forbid")


class ProjectRead(BaseModel):
    """Project with running usage totals."""

    id: str
    name: str
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_images_generated: int = 0
    total_cost: float = 0.0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageRead(BaseModel):
    """One persisted turn of a project transcript."""

    id: str
    role: str
    content: str
    content_json: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SystemPromptUpdate(BaseModel):
    """Set or clear a project's custom system prompt.

    ``None`` or a blank string clears the override so the default design
    assistant prompt is used again.
    """

    system_prompt: str | None = Field(default=None, max_length=20_000)

    model_config = ConfigDict(extra="forbid")

    @field_validator("system_prompt")
    @classmethod
    def _blank_clears(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v


class SystemPromptRead(BaseModel):
    system_prompt: str | None = None
    is_custom: bool = False


class LLMParameters(BaseModel):
    """Per-project generation overrides.

    Stored with the camelCase keys the design client sends
    (``temperature``, ``topP``, ``maxOutputTokens``).
    """

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0, alias="topP")
    max_output_tokens: int | None = Field(
        default=None, ge=1, le=8192, alias="maxOutputTokens"
    )

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_storage(self) -> dict[str, Any] | None:
        """Return the JSON stored on the project, or ``None`` when nothing is set."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        return data or None


class LLMParametersUpdate(BaseModel):
    """Set (object) or clear (``null`` or ``{}``) generation overrides."""

    llm_parameters: LLMParameters | None = None

    model_config = ConfigDict(extra="forbid")


class LLMParametersRead(BaseModel):
    llm_parameters: dict[str, Any] | None = None
