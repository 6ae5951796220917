from __future__ import annotations

from collections.abc import Iterable

from polysearch.adapters.base import AdapterFactory, ProviderAdapter
from polysearch.cache import ResultCache
from polysearch.circuit_breaker import configure_shared_registry
from polysearch.logging import configure_structlog
from polysearch.orchestrator import SearchOrchestrator
from polysearch.settings import SearchSettings


def build_orchestrator(
    adapters: Iterable[ProviderAdapter] = (),
    *,
    factories: Iterable[AdapterFactory] = (),
    settings: SearchSettings | None = None,
) -> SearchOrchestrator:
    """Wire an orchestrator from settings at process startup.

    Logging is configured at the settings' level and the process-wide
    registry is rebuilt with the configured thresholds, so call this once,
    before serving searches. Each factory receives the settings' adapter
    options. Adapters are keyed by their own ``provider`` attribute; a
    factory-built adapter replaces a ready-made one for the same provider.
    """
    resolved = SearchSettings() if settings is None else settings
    configure_structlog(log_level=resolved.log_level)
    registry = configure_shared_registry(resolved.breaker_config())
    options = resolved.adapter_options()
    built = [*adapters, *(factory(options) for factory in factories)]
    cache = None
    if resolved.cache_ttl_seconds > 0:
        cache = ResultCache(ttl_seconds=resolved.cache_ttl_seconds)
    return SearchOrchestrator(
        {adapter.provider: adapter for adapter in built},
        registry=registry,
        config=resolved.orchestrator_config(),
        cache=cache,
    )
