"""Tests for the message high-water mark."""

from __future__ import annotations

from services.design_chat.delta_emitter import ExtractionState, next_delta


def test_first_value_is_emitted_whole() -> None:
    delta, state = next_delta(ExtractionState(), "Hel")
    assert delta == "Hel"
    assert state.last_emitted_length == 3


def test_only_new_suffix_is_emitted() -> None:
    delta, state = next_delta(ExtractionState(3), "Hello")
    assert delta == "lo"
    assert state == ExtractionState(5)


def test_absent_value_emits_nothing() -> None:
    state = ExtractionState(2)
    assert next_delta(state, None) == ("", state)


def test_unchanged_or_shorter_value_emits_nothing() -> None:
    state = ExtractionState(5)
    assert next_delta(state, "Hello") == ("", state)
    assert next_delta(state, "Hel") == ("", state)


def test_deltas_concatenate_to_final_value() -> None:
    state = ExtractionState()
    emitted = []
    for value in [None, "S", "Sa", "Sa", "Sapph", "Sapphire"]:
        delta, state = next_delta(state, value)
        if delta:
            emitted.append(delta)
    assert "".join(emitted) == "Sapphire"
    assert emitted == ["S", "a", "pph", "ire"]
