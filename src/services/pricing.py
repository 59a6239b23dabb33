"""Usage pricing for the Gemini 2.5 Flash (image) paid tier.

- Input: $0.30 per 1,000,000 tokens (text/image)
- Output (text): $0.30 per 1,000,000 tokens
- Output (images): $0.039 per image (each 1024x1024px image = 1290 tokens)

The cost helpers only use ``+`` and ``*`` so they work on plain numbers and on
SQLAlchemy column expressions alike; the usage update recomputes
``total_cost`` from the new totals inside the same UPDATE statement.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any


INPUT_PRICE_PER_MILLION_TOKENS = 0.30
OUTPUT_TEXT_PRICE_PER_MILLION_TOKENS = 0.30
OUTPUT_IMAGE_PRICE_PER_IMAGE = 0.039
TOKENS_PER_IMAGE = 1290

INPUT_PRICE_PER_TOKEN = INPUT_PRICE_PER_MILLION_TOKENS / 1_000_000
OUTPUT_TEXT_PRICE_PER_TOKEN = OUTPUT_TEXT_PRICE_PER_MILLION_TOKENS / 1_000_000


def calculate_chat_cost(input_tokens: Any, output_tokens: Any) -> Any:
    """Cost of text generation for the given input and output token counts."""
    return (
        input_tokens * INPUT_PRICE_PER_TOKEN
        + output_tokens * OUTPUT_TEXT_PRICE_PER_TOKEN
    )


def calculate_image_cost(image_count: Any) -> Any:
    """Each generated image has a flat price regardless of input tokens."""
    return image_count * OUTPUT_IMAGE_PRICE_PER_IMAGE


def calculate_total_cost(
    input_tokens: Any, output_tokens: Any, image_count: Any
) -> Any:
    return calculate_chat_cost(input_tokens, output_tokens) + calculate_image_cost(
        image_count
    )


def format_cost(cost: float) -> str:
    """Format as USD with between 2 and 4 fraction digits, e.g. ``$0.0012``."""
    amount = Decimal(str(cost)).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.4f}"
    whole, frac = text.split(".")
    frac = frac.rstrip("0").ljust(2, "0")
    return f"{sign}${whole}.{frac}"


def get_image_tokens(image_count: int) -> int:
    """Token equivalent of generated images, for display."""
    return image_count * TOKENS_PER_IMAGE
