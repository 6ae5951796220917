"""Result records produced by one orchestrated search."""

from __future__ import annotations

from dataclasses import dataclass

from polysearch.types import Provider, ProviderResult


@dataclass(frozen=True)
class MergedResult:
    """One deduplicated hit and the providers that returned it.

    Attributes:
        key: Canonical URL shared by every member of the dedup group.
        result: Highest-scored member of the group.
        providers: Providers that returned the hit, in arrival order.
        score: Representative score after the cross-provider boost.
    """

    key: str
    result: ProviderResult
    providers: tuple[Provider, ...]
    score: float

    @property
    def url(self) -> str:
        """Return the representative URL."""
        return self.result.url

    @property
    def title(self) -> str:
        """Return the representative title."""
        return self.result.title


@dataclass(frozen=True)
class MergedResultSet:
    """Outcome of one orchestrated search.

    Empty ``results`` with every attempted provider in ``failed`` means the
    providers failed; empty ``results`` with successes means nothing was
    found.
    """

    query: str
    results: tuple[MergedResult, ...]
    attempted: tuple[Provider, ...]
    succeeded: tuple[Provider, ...]
    failed: tuple[Provider, ...]
    fallback_used: bool = False

    def __len__(self) -> int:
        return len(self.results)

    @property
    def all_failed(self) -> bool:
        """Return whether every attempted provider failed."""
        return bool(self.attempted) and not self.succeeded
