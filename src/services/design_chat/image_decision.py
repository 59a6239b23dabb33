"""Secondary "should an image be generated now?" decision.

Used only when the assistant's reply did not carry an explicit
``shouldGenerateImage`` flag. Never raises: every failure resolves to a
decision of ``False``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic_ai.settings import ModelSettings

from schemas.design_chat import TokenUsage, parse_image_decision
from services.ai.interfaces import DesignChatLLM
from services.design_chat.outcomes import Ok, Recovered
from services.design_chat.prompts import build_image_decision_prompt


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImageDecision:
    should_generate: bool
    usage: TokenUsage = field(default_factory=TokenUsage)
    reasoning: str | None = None


def legacy_text_heuristic(text: str) -> bool:
    """Substring match kept for replies that are not valid decision JSON.

    Matches ``YES`` case-insensitively, or a compact ``"shouldGenerate":true``.
    """
    # TODO: replace with a schema-only contract once decision replies are
    # requested through structured output.
    return "YES" in text.upper() or '"shouldgenerate":true' in text.lower()


async def decide_image_generation(
    llm: DesignChatLLM,
    transcript: str,
    assistant_message: str,
    model_settings: ModelSettings | None = None,
) -> Ok[ImageDecision] | Recovered[ImageDecision]:
    """Ask the model whether the design is ready to be rendered.

    Returns ``Ok`` when the reply was a valid decision document and
    ``Recovered`` when the heuristic or the ``False`` default was used.
    """
    prompt = build_image_decision_prompt(transcript, assistant_message)
    try:
        completion = await llm.generate(prompt, model_settings=model_settings)
    except Exception as exc:
        logger.warning("Image decision call failed: %s", exc, exc_info=True)
        return Recovered(ImageDecision(False), reason="decision call failed")

    usage = TokenUsage.from_report(completion.usage)
    text = completion.text or ""

    parsed = parse_image_decision(text)
    if parsed is not None:
        return Ok(ImageDecision(parsed.should_generate, usage, parsed.reasoning))

    logger.info("Image decision reply was not valid JSON; using text heuristic")
    return Recovered(
        ImageDecision(legacy_text_heuristic(text), usage),
        reason="unparseable decision reply",
    )
