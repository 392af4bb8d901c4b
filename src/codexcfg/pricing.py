"""
Cost calculation from configured per-token rates.

Rates are in USD per 1M tokens and come from the caller's options; there is
no built-in pricing table because the settings home may point at any
OpenAI-compatible endpoint.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .events import ProviderMetadata
from .usage import Usage

logger = logging.getLogger(__name__)

COST_METADATA_KEY = "codex"


@dataclass(frozen=True)
class Pricing:
    """Per-million-token rates in USD."""

    input_per_mtoken: float = 0.0
    output_per_mtoken: float = 0.0

    @property
    def configured(self) -> bool:
        return bool(self.input_per_mtoken or self.output_per_mtoken)


PricingLike = Union[Pricing, Mapping[str, Any]]


def coerce_pricing(value: Optional[PricingLike]) -> Optional[Pricing]:
    """Accept a `Pricing` or a mapping with `input_per_mtoken`/`output_per_mtoken` keys."""
    if value is None or isinstance(value, Pricing):
        return value
    return Pricing(
        input_per_mtoken=float(value.get("input_per_mtoken") or 0.0),
        output_per_mtoken=float(value.get("output_per_mtoken") or 0.0),
    )


def calculate_cost(pricing: Pricing, usage: Usage) -> float:
    """
    Calculate cost in USD for given token usage.

    Args:
        pricing: Configured rates.
        usage: Usage reported by the transport. Missing counts are treated as zero.

    Returns:
        Estimated cost in USD.
    """
    input_cost = ((usage.input_tokens or 0) / 1_000_000) * pricing.input_per_mtoken
    output_cost = ((usage.output_tokens or 0) / 1_000_000) * pricing.output_per_mtoken
    return input_cost + output_cost


def apply_cost(
    provider_metadata: ProviderMetadata, usage: Usage, pricing: Optional[Pricing]
) -> ProviderMetadata:
    """
    Return a copy of `provider_metadata` with the computed cost attached.

    Metadata is returned unchanged when no rate is configured or the cost is
    not a finite number.
    """
    if pricing is None or not pricing.configured:
        return provider_metadata

    cost = calculate_cost(pricing, usage)
    if not math.isfinite(cost):
        logger.warning("Discarding non-finite cost %r for usage %s", cost, usage.to_dict())
        return provider_metadata

    augmented = dict(provider_metadata)
    augmented[COST_METADATA_KEY] = {**augmented.get(COST_METADATA_KEY, {}), "cost": cost}
    return augmented


__all__ = ["COST_METADATA_KEY", "Pricing", "PricingLike", "apply_cost", "calculate_cost", "coerce_pricing"]
