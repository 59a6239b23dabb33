"""High-water-mark tracking for the streamed message field."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class ExtractionState:
    """How many decoded characters of the field the client already has."""

    last_emitted_length: int = 0


def next_delta(
    state: ExtractionState, extracted: str | None
) -> tuple[str, ExtractionState]:
    """Return the not-yet-sent suffix of ``extracted`` and the advanced state.

    A missing value, or one no longer than what was already sent, yields an
    empty delta and leaves the state untouched; the client never sees the
    text shrink.
    """
    if extracted is None or len(extracted) <= state.last_emitted_length:
        return "", state
    delta = extracted[state.last_emitted_length :]
    return delta, replace(state, last_emitted_length=len(extracted))
