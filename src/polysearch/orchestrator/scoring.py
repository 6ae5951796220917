"""Result scoring: provider weight, position decay and cross-provider boost."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from polysearch.types import ProviderResult

POSITION_DECAY = 0.1
CROSS_PROVIDER_BOOST = 0.2


def calculate_score(result: ProviderResult, position: int) -> float:
    """Score one result from its provider weight and zero-based list position."""
    return result.provider.weight / (1.0 + position * POSITION_DECAY)


def score_results(results: Sequence[ProviderResult]) -> list[ProviderResult]:
    """Return copies of ``results`` scored by their position in the list."""
    return [
        replace(result, score=calculate_score(result, position))
        for position, result in enumerate(results)
    ]


def apply_cross_provider_boost(base_score: float, provider_count: int) -> float:
    """Boost a score by 20% for every additional provider that returned it."""
    return base_score * (1.0 + CROSS_PROVIDER_BOOST * max(provider_count - 1, 0))
