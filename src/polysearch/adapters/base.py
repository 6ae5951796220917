"""Adapter contract consumed by the orchestrator."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from polysearch.types import Provider, ProviderResult


class ProviderAdapter(Protocol):
    """One provider's search entry point.

    Implementations raise :class:`polysearch.errors.ProviderError` subclasses
    for ordinary network, HTTP, parse and timeout failures. Any other
    exception is still contained by the orchestrator, but is logged as a
    crash rather than a routine failure.
    """

    provider: Provider

    async def search(self, query: str) -> Sequence[ProviderResult]:
        """Return the provider's results for ``query`` in provider order."""


@dataclass(frozen=True)
class AdapterOptions:
    """Per-request settings shared by every adapter of a deployment.

    Attributes:
        timeout_seconds: Timeout applied to each provider request.
        max_results: Maximum results requested from each provider.
        safe_search: Whether providers should filter explicit results.
        user_agent: Fixed User-Agent; a rotating browser one when ``None``.
    """

    timeout_seconds: float = 8.0
    max_results: int = 10
    safe_search: bool = True
    user_agent: str | None = None


AdapterFactory = Callable[[AdapterOptions], ProviderAdapter]
