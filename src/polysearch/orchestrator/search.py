"""Concurrent multi-provider search gated by per-provider circuit breakers."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace

import structlog

from polysearch.adapters.base import ProviderAdapter
from polysearch.cache import CacheKey, ResultCache
from polysearch.circuit_breaker import CircuitBreakerRegistry, get_shared_registry
from polysearch.errors import ConfigurationError, ProviderError
from polysearch.logging import (
    StructuredLogger,
    log_exception,
    log_info,
    log_warning,
)
from polysearch.orchestrator.dedup import deduplicate, rank
from polysearch.orchestrator.models import MergedResultSet
from polysearch.orchestrator.scoring import score_results
from polysearch.types import Provider, ProviderResult


@dataclass(slots=True)
class OrchestratorConfig:
    """Search orchestration settings.

    Attributes:
        max_results: Maximum merged results returned per search.
        timeout_seconds: Upper bound on each provider call.
        providers: Providers queried when a search names none; empty means
            every provider with an adapter.
    """

    max_results: int = 10
    timeout_seconds: float = 8.0
    providers: tuple[Provider, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.max_results < 1:
            raise ValueError("max_results must be >= 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


@dataclass(frozen=True)
class _Outcome:
    provider: Provider
    results: tuple[ProviderResult, ...] | None

    @property
    def ok(self) -> bool:
        return self.results is not None


class SearchOrchestrator:
    """Fan a query out to healthy providers and merge what comes back.

    Provider health lives in a :class:`CircuitBreakerRegistry`, by default
    the process-wide one. Providers whose circuit is open are skipped unless
    every configured provider is open, in which case all of them are tried
    anyway so a search is never refused on breaker state alone.
    """

    def __init__(
        self,
        adapters: Mapping[Provider, ProviderAdapter],
        *,
        registry: CircuitBreakerRegistry | None = None,
        config: OrchestratorConfig | None = None,
        cache: ResultCache | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        """Build an orchestrator over a fixed set of adapters.

        Args:
            adapters: Adapter per provider.
            registry: Health registry. Defaults to the process-wide registry.
            config: Orchestration settings. Defaults to ``OrchestratorConfig()``.
            cache: Optional cache of merged results.
            logger: Structured logger. Defaults to a structlog logger.
        """
        self._adapters = dict(adapters)
        self._registry = get_shared_registry() if registry is None else registry
        self._config = OrchestratorConfig() if config is None else config
        self._cache = cache
        self._logger = structlog.get_logger(__name__) if logger is None else logger

    @property
    def registry(self) -> CircuitBreakerRegistry:
        """Return the health registry consulted by this orchestrator."""
        return self._registry

    @property
    def config(self) -> OrchestratorConfig:
        """Return the orchestration settings."""
        return self._config

    def _resolve_providers(
        self, providers: Iterable[Provider] | None
    ) -> tuple[Provider, ...]:
        if providers is None:
            providers = self._config.providers or (
                provider for provider in Provider if provider in self._adapters
            )
        resolved = tuple(dict.fromkeys(providers))
        if not resolved:
            raise ConfigurationError("at least one provider must be enabled")
        missing = [provider for provider in resolved if provider not in self._adapters]
        if missing:
            names = ", ".join(str(provider) for provider in missing)
            raise ConfigurationError(f"no adapter configured for: {names}")
        return resolved

    def _admit(
        self, providers: Sequence[Provider]
    ) -> tuple[tuple[Provider, ...], bool]:
        admitted = tuple(
            provider
            for provider in providers
            if self._registry.should_attempt(provider)
        )
        if admitted:
            return admitted, False
        return tuple(providers), True

    async def _call(self, provider: Provider, query: str) -> _Outcome:
        adapter = self._adapters[provider]
        try:
            results = await asyncio.wait_for(
                adapter.search(query),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError:
            self._registry.record_failure(provider)
            log_warning(
                self._logger,
                "provider.failed",
                provider=str(provider),
                reason="timeout",
                timeout_seconds=self._config.timeout_seconds,
            )
            return _Outcome(provider=provider, results=None)
        except ProviderError as exc:
            self._registry.record_failure(provider)
            log_warning(
                self._logger,
                "provider.failed",
                provider=str(provider),
                reason=exc.__class__.__name__,
                error=exc.message,
            )
            return _Outcome(provider=provider, results=None)
        except Exception:
            self._registry.record_failure(provider)
            log_exception(self._logger, "provider.crashed", provider=str(provider))
            return _Outcome(provider=provider, results=None)

        self._registry.record_success(provider)
        return _Outcome(provider=provider, results=tuple(results))

    async def run(
        self,
        query: str,
        providers: Iterable[Provider] | None = None,
    ) -> MergedResultSet:
        """Search ``query`` across ``providers`` and return merged results.

        Args:
            query: Search query text.
            providers: Providers to query. Defaults to the configured set.

        Returns:
            The merged, ranked results. Empty when every attempted provider
            failed; provider failures are never raised.

        Raises:
            ConfigurationError: When the query is blank, no provider is
                enabled, or an enabled provider has no adapter.
        """
        if not query.strip():
            raise ConfigurationError("query must be non-empty")
        configured = self._resolve_providers(providers)

        cache_key = CacheKey.build(query, configured)
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                log_info(self._logger, "search.cache_hit", results=len(cached))
                return replace(cached, query=query)

        attempted, fallback_used = self._admit(configured)
        if fallback_used:
            log_warning(
                self._logger,
                "search.fallback",
                providers=[str(provider) for provider in attempted],
            )
        log_info(
            self._logger,
            "search.started",
            providers=[str(provider) for provider in attempted],
            skipped=[str(p) for p in configured if p not in attempted],
        )

        tasks = [
            asyncio.create_task(
                self._call(provider, query),
                name=f"polysearch:{provider}",
            )
            for provider in attempted
        ]
        outcomes: list[_Outcome] = list(await asyncio.gather(*tasks))

        merged = self._merge(query, outcomes, fallback_used=fallback_used)
        if merged.all_failed:
            log_warning(
                self._logger,
                "search.all_providers_failed",
                providers=[str(provider) for provider in merged.failed],
            )
        elif self._cache is not None and merged.results:
            self._cache.put(cache_key, merged)
        log_info(
            self._logger,
            "search.completed",
            results=len(merged.results),
            succeeded=[str(provider) for provider in merged.succeeded],
            failed=[str(provider) for provider in merged.failed],
        )
        return merged

    def _merge(
        self,
        query: str,
        outcomes: Sequence[_Outcome],
        *,
        fallback_used: bool,
    ) -> MergedResultSet:
        scored: list[ProviderResult] = []
        for outcome in outcomes:
            if outcome.results is None:
                continue
            tagged = [
                result
                if result.provider == outcome.provider
                else replace(result, provider=outcome.provider)
                for result in outcome.results
            ]
            scored.extend(score_results(tagged))
        ranked = rank(deduplicate(scored))
        return MergedResultSet(
            query=query,
            results=tuple(ranked[: self._config.max_results]),
            attempted=tuple(outcome.provider for outcome in outcomes),
            succeeded=tuple(outcome.provider for outcome in outcomes if outcome.ok),
            failed=tuple(outcome.provider for outcome in outcomes if not outcome.ok),
            fallback_used=fallback_used,
        )
