"""
What external model calls cost, in USD.

Claude models are priced per million input and output tokens, hosted
Whisper per audio minute; both come from resources/models.yaml. Models
missing from the table (Ollama, self-hosted Whisper) are free.
"""

import logging
from functools import lru_cache
from typing import TypedDict

from vidscribe.config import load_models_config

logger = logging.getLogger(__name__)

TOKENS_PER_PRICE_UNIT = 1_000_000


class ModelPricing(TypedDict, total=False):
    input: float
    output: float
    per_minute: float


@lru_cache(maxsize=1)
def _price_table() -> dict[str, ModelPricing]:
    try:
        config = load_models_config()
    except Exception as e:
        logger.warning(f"No model prices available, costs will show as 0: {e}")
        return {}

    table: dict[str, ModelPricing] = {}
    for entry in config.get("claude_models", []):
        prices = entry.get("pricing")
        if entry.get("id") and prices:
            table[entry["id"]] = {
                "input": float(prices.get("input", 0)),
                "output": float(prices.get("output", 0)),
            }
    for entry in config.get("whisper_models", []):
        if entry.get("id") and entry.get("pricing_per_minute") is not None:
            table[entry["id"]] = {"per_minute": float(entry["pricing_per_minute"])}

    logger.debug(f"Prices loaded for {len(table)} model(s)")
    return table


def clear_pricing_cache() -> None:
    """Make the next lookup reread models.yaml."""
    _price_table.cache_clear()


def get_model_pricing(model_name: str) -> ModelPricing | None:
    """Prices for a model, or None when it is free."""
    return _price_table().get(model_name)


def calculate_cost(model_name: str, input_tokens: int, output_tokens: int) -> float:
    """
    Cost of one chat request.

    >>> calculate_cost("claude-sonnet-4-5", 1000, 500)  # 1000 * 3/1M + 500 * 15/1M
    0.0105
    """
    pricing = get_model_pricing(model_name)
    if not pricing or "input" not in pricing:
        return 0.0
    spent = input_tokens * pricing["input"] + output_tokens * pricing.get("output", 0.0)
    return round(spent / TOKENS_PER_PRICE_UNIT, 6)


def calculate_transcription_cost(model_name: str, duration_seconds: float) -> float:
    """Cost of transcribing `duration_seconds` of audio."""
    pricing = get_model_pricing(model_name)
    if not pricing or "per_minute" not in pricing:
        return 0.0
    return round(duration_seconds / 60 * pricing["per_minute"], 6)
