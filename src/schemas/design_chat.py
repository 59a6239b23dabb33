"""Structured documents produced by the design assistant model.

The assistant replies with one JSON object per turn::

    {"message": "...markdown...", "metadata": {...}, "shouldGenerateImage": true}

``metadata`` is modelled as a tagged union over its ``type`` field. Known
types get their own model; anything else (missing or unrecognised ``type``)
lands in :class:`UnknownMetadata` so newer model outputs still parse.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    StrictBool,
    StrictStr,
    Tag,
    ValidationError,
    field_validator,
)


KNOWN_METADATA_TYPES = frozenset({"question", "suggestion", "confirmation", "info"})

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")
_OBJECT_SPAN_RE = re.compile(r"\{[\s\S]*\}")


class QuestionOption(BaseModel):
    id: str = ""
    label: str = ""

    model_config = ConfigDict(extra="allow")


class Question(BaseModel):
    id: str = ""
    title: str = ""
    options: list[QuestionOption] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class DesignSpecification(BaseModel):
    """What the assistant has gathered about the piece so far."""

    type: str | None = None
    materials: list[str] | None = None
    style: str | None = None
    features: list[str] | None = None
    gemstones: list[str] | None = None
    dimensions: str | None = None
    special_features: list[str] | None = Field(default=None, alias="specialFeatures")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class _MetadataBase(BaseModel):
    questions: list[Question] | None = None
    design_spec: DesignSpecification | None = Field(default=None, alias="designSpec")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class QuestionMetadata(_MetadataBase):
    type: Literal["question"]


class SuggestionMetadata(_MetadataBase):
    type: Literal["suggestion"]


class ConfirmationMetadata(_MetadataBase):
    type: Literal["confirmation"]


class InfoMetadata(_MetadataBase):
    type: Literal["info"]


class UnknownMetadata(BaseModel):
    """Escape hatch for metadata shapes this service does not recognise."""

    type: Any = None

    model_config = ConfigDict(extra="allow")


def _metadata_tag(value: Any) -> str | None:
    # Non-object metadata gets no tag, which fails validation of the document.
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    if not isinstance(value, dict):
        return None
    kind = value.get("type")
    if isinstance(kind, str) and kind in KNOWN_METADATA_TYPES:
        return kind
    return "unknown"


TurnMetadata = Annotated[
    Annotated[QuestionMetadata, Tag("question")]
    | Annotated[SuggestionMetadata, Tag("suggestion")]
    | Annotated[ConfirmationMetadata, Tag("confirmation")]
    | Annotated[InfoMetadata, Tag("info")]
    | Annotated[UnknownMetadata, Tag("unknown")],
    Discriminator(_metadata_tag),
]


class StructuredTurnResult(BaseModel):
    """A fully parsed assistant document.

    All three fields are required and strictly typed; a document missing any
    of them is not structured and the raw text is used instead.
    """

    message: StrictStr
    metadata: TurnMetadata
    should_generate_image: StrictBool = Field(alias="shouldGenerateImage")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("message")
    @classmethod
    def _message_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("message must be a non-empty string")
        return v

    @property
    def is_structured(self) -> bool:
        return True

    def to_content_json(self) -> dict[str, Any]:
        """Document as persisted alongside the assistant message."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FallbackTurnResult(BaseModel):
    """Raw assistant text used when the reply is not a valid structured document."""

    message: str

    @property
    def is_structured(self) -> bool:
        return False


TurnResult = StructuredTurnResult | FallbackTurnResult


class ImageGenerationDecision(BaseModel):
    """Output of the secondary "should we render an image yet?" call."""

    should_generate: StrictBool = Field(alias="shouldGenerate")
    reasoning: str | None = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class TokenUsage(BaseModel):
    """Token counts reported by one model call."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)

    @property
    def has_tokens(self) -> bool:
        return self.input_tokens > 0 or self.output_tokens > 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )

    @classmethod
    def from_report(cls, usage: object) -> TokenUsage:
        """Build from a provider usage report (dict or object).

        Accepts Gemini ``promptTokenCount``/``candidatesTokenCount`` as well as
        the ``input_tokens``/``output_tokens`` and older
        ``request_tokens``/``response_tokens``/``prompt_tokens``/
        ``completion_tokens`` spellings. Missing or non-numeric values count as 0.
        """
        if usage is None:
            return cls()

        def _first(*names: str) -> int:
            for name in names:
                if isinstance(usage, dict):
                    value = usage.get(name)
                else:
                    value = getattr(usage, name, None)
                if isinstance(value, int) and not isinstance(value, bool):
                    return max(value, 0)
            return 0

        return cls(
            input_tokens=_first(
                "promptTokenCount", "input_tokens", "request_tokens", "prompt_tokens"
            ),
            output_tokens=_first(
                "candidatesTokenCount",
                "output_tokens",
                "response_tokens",
                "completion_tokens",
            ),
        )


def parse_json_object(text: str) -> Any | None:
    """Parse model output that should contain one JSON value.

    Tries the whole text, then the body of a fenced ```json block, then the
    outermost ``{...}`` span. Returns ``None`` when none of them parse.
    """
    try:
        return json.loads(text.strip())
    except ValueError:
        pass

    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except ValueError:
            return None

    span = _OBJECT_SPAN_RE.search(text)
    if span:
        try:
            return json.loads(span.group(0))
        except ValueError:
            return None

    return None


def parse_structured_turn(text: str) -> StructuredTurnResult | None:
    """Parse and validate a complete assistant reply, or return ``None``."""
    parsed = parse_json_object(text)
    if not isinstance(parsed, dict):
        return None
    try:
        return StructuredTurnResult.model_validate(parsed)
    except ValidationError:
        return None


def parse_image_decision(text: str) -> ImageGenerationDecision | None:
    parsed = parse_json_object(text)
    if not isinstance(parsed, dict):
        return None
    try:
        return ImageGenerationDecision.model_validate(parsed)
    except ValidationError:
        return None
