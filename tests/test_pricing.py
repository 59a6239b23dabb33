"""Tests for usage pricing helpers."""

from __future__ import annotations

import pytest

from services.pricing import (
    calculate_chat_cost,
    calculate_image_cost,
    calculate_total_cost,
    format_cost,
    get_image_tokens,
)


def test_chat_cost_per_million_tokens() -> None:
    assert calculate_chat_cost(1_000_000, 0) == pytest.approx(0.30)
    assert calculate_chat_cost(0, 1_000_000) == pytest.approx(0.30)
    assert calculate_chat_cost(130, 60) == pytest.approx(190 * 0.30 / 1_000_000)


def test_image_cost_is_flat_per_image() -> None:
    assert calculate_image_cost(3) == pytest.approx(0.117)


def test_total_cost_combines_text_and_images() -> None:
    assert calculate_total_cost(1_000_000, 1_000_000, 2) == pytest.approx(0.678)


def test_get_image_tokens() -> None:
    assert get_image_tokens(2) == 2580


@pytest.mark.parametrize(
    ("cost", "expected"),
    [
        (0, "$0.00"),
        (0.0012, "$0.0012"),
        (0.039, "$0.039"),
        (1.5, "$1.50"),
        (1234.5, "$1,234.50"),
        (0.00004, "$0.00"),
        (0.00005, "$0.0001"),
        (-1, "-$1.00"),
    ],
)
def test_format_cost(cost: float, expected: str) -> None:
    assert format_cost(cost) == expected
