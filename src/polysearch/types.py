"""Provider identities and result records shared across polysearch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

_WEIGHTS: dict[str, float] = {
    "DuckDuckGo": 1.0,
    "Brave": 1.0,
    "Google": 1.2,
    "Bing": 0.8,
    "Startpage": 0.9,
}


class Provider(StrEnum):
    """Closed set of search providers queried by the orchestrator."""

    DUCKDUCKGO = "DuckDuckGo"
    BRAVE = "Brave"
    GOOGLE = "Google"
    BING = "Bing"
    STARTPAGE = "Startpage"

    @property
    def label(self) -> str:
        """Return the display label for this provider."""
        return self.value

    @property
    def weight(self) -> float:
        """Return the ranking weight applied to this provider's results."""
        return _WEIGHTS[self.value]

    @classmethod
    def all(cls) -> tuple[Provider, ...]:
        """Return every provider in declaration order."""
        return tuple(cls)

    @classmethod
    def parse(cls, value: str) -> Provider:
        """Resolve a provider from its label or member name, ignoring case."""
        normalized = value.strip().lower()
        for provider in cls:
            if normalized in (provider.value.lower(), provider.name.lower()):
                return provider
        choices = ", ".join(provider.value for provider in cls)
        raise ValueError(f"unknown provider {value!r}; expected one of: {choices}")


@dataclass(frozen=True)
class ProviderResult:
    """One search hit returned by a provider adapter.

    Attributes:
        title: Result title as shown by the provider.
        url: Target URL of the hit.
        snippet: Short description text.
        provider: Provider that returned the hit.
        score: Ranking score; ``0.0`` until scored by the orchestrator.
    """

    title: str
    url: str
    snippet: str
    provider: Provider
    score: float = 0.0
