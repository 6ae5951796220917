"""Result deduplication and ranking by canonical URL."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from polysearch.orchestrator.models import MergedResult
from polysearch.orchestrator.scoring import apply_cross_provider_boost
from polysearch.orchestrator.url_normalize import normalize_url
from polysearch.types import Provider, ProviderResult


@dataclass(slots=True)
class _Group:
    best: ProviderResult
    providers: list[Provider] = field(default_factory=list)


def deduplicate(results: Iterable[ProviderResult]) -> list[MergedResult]:
    """Group ``results`` by canonical URL, in first-arrival order.

    The highest-scored member represents each group; ties keep the earliest
    arrival. The group's score is boosted by the number of distinct providers
    that returned it.
    """
    groups: dict[str, _Group] = {}
    for result in results:
        key = normalize_url(result.url)
        group = groups.get(key)
        if group is None:
            groups[key] = _Group(best=result, providers=[result.provider])
            continue
        if result.provider not in group.providers:
            group.providers.append(result.provider)
        if result.score > group.best.score:
            group.best = result

    return [
        MergedResult(
            key=key,
            result=group.best,
            providers=tuple(group.providers),
            score=apply_cross_provider_boost(group.best.score, len(group.providers)),
        )
        for key, group in groups.items()
    ]


def rank(merged: Iterable[MergedResult]) -> list[MergedResult]:
    """Order merged hits by provider count, then first arrival.

    ``merged`` must already be in arrival order, as returned by
    :func:`deduplicate`; the sort is stable.
    """
    return sorted(merged, key=lambda item: -len(item.providers))
