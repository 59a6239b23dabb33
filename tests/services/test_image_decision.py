"""Tests for the secondary image generation decision."""

from __future__ import annotations

import pytest

from fixtures.design_chat_fakes import FakeLLM
from services.design_chat.image_decision import (
    decide_image_generation,
    legacy_text_heuristic,
)
from services.design_chat.outcomes import Ok, Recovered


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("YES", True),
        ("yes, the design is complete", True),
        ('{"shouldGenerate":true', True),
        ('prefix {"SHOULDGENERATE":TRUE', True),
        ("No, not yet", False),
        ('{"shouldGenerate": true', False),
        ("", False),
    ],
)
def test_legacy_text_heuristic(text: str, expected: bool) -> None:
    assert legacy_text_heuristic(text) is expected


@pytest.mark.asyncio
async def test_valid_decision_document() -> None:
    llm = FakeLLM(
        decision_text='{"shouldGenerate": true, "reasoning": "all details set"}',
        decision_usage={"promptTokenCount": 40, "candidatesTokenCount": 9},
    )

    decision = await decide_image_generation(llm, "User: a ring", "Ready to render?")

    assert isinstance(decision, Ok)
    assert decision.value.should_generate is True
    assert decision.value.reasoning == "all details set"
    assert decision.value.usage.input_tokens == 40
    assert decision.value.usage.output_tokens == 9
    assert "User: a ring" in llm.decision_prompts[0]
    assert "Ready to render?" in llm.decision_prompts[0]


@pytest.mark.asyncio
async def test_fenced_decision_document() -> None:
    llm = FakeLLM(decision_text='```json\n{"shouldGenerate": false}\n```')
    decision = await decide_image_generation(llm, "t", "m")
    assert isinstance(decision, Ok)
    assert decision.value.should_generate is False


@pytest.mark.asyncio
async def test_non_boolean_flag_falls_back_to_heuristic() -> None:
    llm = FakeLLM(decision_text='{"shouldGenerate": "yes"}')
    decision = await decide_image_generation(llm, "t", "m")
    assert isinstance(decision, Recovered)
    assert decision.value.should_generate is True


@pytest.mark.asyncio
async def test_prose_reply_uses_heuristic() -> None:
    decision = await decide_image_generation(
        FakeLLM(decision_text="Not enough detail."), "t", "m"
    )
    assert isinstance(decision, Recovered)
    assert decision.value.should_generate is False


@pytest.mark.asyncio
async def test_call_failure_defaults_to_false() -> None:
    llm = FakeLLM(decision_error=ConnectionError("reset"))
    decision = await decide_image_generation(llm, "t", "m")
    assert isinstance(decision, Recovered)
    assert decision.value.should_generate is False
    assert not decision.value.usage.has_tokens
