from __future__ import annotations

import time

import pytest

from polysearch.cache import ResultCache
from polysearch.circuit_breaker import (
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitState,
    get_shared_registry,
)
from polysearch.errors import ConfigurationError
from polysearch.orchestrator import OrchestratorConfig, SearchOrchestrator
from polysearch.types import Provider
from tests.polysearch.support.fakes import (
    FakeAdapter,
    FakeClock,
    FakeLogger,
    make_result,
)

pytestmark = pytest.mark.asyncio


def _trip(registry: CircuitBreakerRegistry, provider: Provider) -> None:
    for _ in range(registry.config.failure_threshold):
        registry.record_failure(provider)


def _build(
    adapters: list[FakeAdapter],
    registry: CircuitBreakerRegistry,
    *,
    logger: FakeLogger | None = None,
    cache: ResultCache | None = None,
    **config: object,
) -> SearchOrchestrator:
    return SearchOrchestrator(
        {adapter.provider: adapter for adapter in adapters},
        registry=registry,
        config=OrchestratorConfig(**config),  # type: ignore[arg-type]
        cache=cache,
        logger=logger,
    )


async def test_overlapping_results_are_merged_once(
    registry: CircuitBreakerRegistry,
) -> None:
    google = FakeAdapter(
        Provider.GOOGLE,
        [
            make_result(Provider.GOOGLE, "https://example.com/page"),
            make_result(Provider.GOOGLE, "https://only-google.com"),
        ],
    )
    ddg = FakeAdapter(
        Provider.DUCKDUCKGO,
        [
            make_result(Provider.DUCKDUCKGO, "https://EXAMPLE.com/page/?utm_source=x"),
            make_result(Provider.DUCKDUCKGO, "https://only-ddg.com"),
        ],
    )
    orchestrator = _build([google, ddg], registry)

    merged = await orchestrator.run("rust", [Provider.GOOGLE, Provider.DUCKDUCKGO])

    keys = [item.key for item in merged.results]
    assert len(keys) == len(set(keys)) == 3
    top = merged.results[0]
    assert top.key == "https://example.com/page"
    assert top.providers == (Provider.GOOGLE, Provider.DUCKDUCKGO)
    assert top.result.provider == Provider.GOOGLE
    assert top.score == pytest.approx(1.2 * 1.2)
    assert [item.url for item in merged.results[1:]] == [
        "https://only-google.com",
        "https://only-ddg.com",
    ]
    assert merged.succeeded == (Provider.GOOGLE, Provider.DUCKDUCKGO)
    assert merged.failed == ()
    assert merged.fallback_used is False


async def test_open_provider_is_skipped(registry: CircuitBreakerRegistry) -> None:
    google = FakeAdapter(
        Provider.GOOGLE, [make_result(Provider.GOOGLE, "https://a.com")]
    )
    bing = FakeAdapter(Provider.BING, [make_result(Provider.BING, "https://b.com")])
    _trip(registry, Provider.BING)
    orchestrator = _build([google, bing], registry)

    merged = await orchestrator.run("query", [Provider.GOOGLE, Provider.BING])

    assert bing.queries == []
    assert google.queries == ["query"]
    assert merged.attempted == (Provider.GOOGLE,)
    assert [item.url for item in merged.results] == ["https://a.com"]
    assert registry.engine_status(Provider.BING) == CircuitState.OPEN


async def test_all_open_falls_back_to_every_provider(
    registry: CircuitBreakerRegistry, fake_logger: FakeLogger
) -> None:
    adapters = [
        FakeAdapter(
            Provider.DUCKDUCKGO,
            [make_result(Provider.DUCKDUCKGO, "https://a.com")],
        ),
        FakeAdapter(Provider.BRAVE, [make_result(Provider.BRAVE, "https://b.com")]),
        FakeAdapter.failing(Provider.GOOGLE),
        FakeAdapter.failing(Provider.BING),
        FakeAdapter.failing(Provider.STARTPAGE),
    ]
    for adapter in adapters:
        _trip(registry, adapter.provider)
    orchestrator = _build(adapters, registry, logger=fake_logger)

    merged = await orchestrator.run("query", Provider.all())

    assert all(adapter.queries == ["query"] for adapter in adapters)
    assert merged.fallback_used is True
    assert merged.attempted == Provider.all()
    assert merged.succeeded == (Provider.DUCKDUCKGO, Provider.BRAVE)
    assert merged.failed == (Provider.GOOGLE, Provider.BING, Provider.STARTPAGE)
    assert sorted(item.url for item in merged.results) == [
        "https://a.com",
        "https://b.com",
    ]
    for provider in (Provider.DUCKDUCKGO, Provider.BRAVE):
        health = registry.engine_health(provider)
        assert health.state == CircuitState.CLOSED
        assert health.consecutive_failures == 0
    for provider in (Provider.GOOGLE, Provider.BING, Provider.STARTPAGE):
        health = registry.engine_health(provider)
        assert health.state == CircuitState.OPEN
        assert health.consecutive_failures == 4
    assert "search.fallback" in fake_logger.events


async def test_cooled_down_provider_is_probed_and_closed(
    registry: CircuitBreakerRegistry, clock: FakeClock
) -> None:
    google = FakeAdapter(
        Provider.GOOGLE, [make_result(Provider.GOOGLE, "https://a.com")]
    )
    brave = FakeAdapter(Provider.BRAVE, [make_result(Provider.BRAVE, "https://b.com")])
    _trip(registry, Provider.GOOGLE)
    clock.advance(60.0)
    orchestrator = _build([google, brave], registry)

    merged = await orchestrator.run("query", [Provider.GOOGLE, Provider.BRAVE])

    assert merged.fallback_used is False
    assert google.queries == ["query"]
    assert registry.engine_status(Provider.GOOGLE) == CircuitState.CLOSED


async def test_failed_probe_reopens_circuit(
    registry: CircuitBreakerRegistry, clock: FakeClock
) -> None:
    google = FakeAdapter.failing(Provider.GOOGLE)
    brave = FakeAdapter(Provider.BRAVE, [make_result(Provider.BRAVE, "https://b.com")])
    _trip(registry, Provider.GOOGLE)
    clock.advance(60.0)
    orchestrator = _build([google, brave], registry)

    await orchestrator.run("query", [Provider.GOOGLE, Provider.BRAVE])

    assert registry.engine_status(Provider.GOOGLE) == CircuitState.OPEN
    assert registry.should_attempt(Provider.GOOGLE) is False


async def test_slow_provider_times_out_without_delaying_others(
    registry: CircuitBreakerRegistry, fake_logger: FakeLogger
) -> None:
    slow = FakeAdapter(
        Provider.BING,
        [make_result(Provider.BING, "https://slow.com")],
        delay=10.0,
    )
    fast = FakeAdapter(
        Provider.GOOGLE, [make_result(Provider.GOOGLE, "https://fast.com")]
    )
    orchestrator = _build(
        [slow, fast], registry, logger=fake_logger, timeout_seconds=0.05
    )

    started = time.monotonic()
    merged = await orchestrator.run("query", [Provider.BING, Provider.GOOGLE])
    elapsed = time.monotonic() - started

    assert elapsed < 2.0
    assert [item.url for item in merged.results] == ["https://fast.com"]
    assert merged.failed == (Provider.BING,)
    assert registry.engine_health(Provider.BING).consecutive_failures == 1
    assert (
        "warning",
        "provider.failed",
        {"provider": "Bing", "reason": "timeout", "timeout_seconds": 0.05},
    ) in fake_logger.calls


async def test_unexpected_adapter_exception_is_contained(
    registry: CircuitBreakerRegistry, fake_logger: FakeLogger
) -> None:
    crashing = FakeAdapter(Provider.BRAVE, error=RuntimeError("bug"))
    ok = FakeAdapter(Provider.GOOGLE, [make_result(Provider.GOOGLE, "https://a.com")])
    orchestrator = _build([crashing, ok], registry, logger=fake_logger)

    merged = await orchestrator.run("query", [Provider.BRAVE, Provider.GOOGLE])

    assert merged.failed == (Provider.BRAVE,)
    assert registry.engine_health(Provider.BRAVE).consecutive_failures == 1
    assert ("exception", "provider.crashed", {"provider": "Brave"}) in (
        fake_logger.calls
    )


async def test_total_failure_returns_empty_set(
    registry: CircuitBreakerRegistry, fake_logger: FakeLogger
) -> None:
    adapters = [
        FakeAdapter.failing(Provider.GOOGLE),
        FakeAdapter.failing(Provider.BING),
    ]
    orchestrator = _build(adapters, registry, logger=fake_logger)

    merged = await orchestrator.run("query", [Provider.GOOGLE, Provider.BING])

    assert merged.results == ()
    assert len(merged) == 0
    assert merged.all_failed is True
    assert "search.all_providers_failed" in fake_logger.events


async def test_no_results_is_not_total_failure(
    registry: CircuitBreakerRegistry,
) -> None:
    orchestrator = _build([FakeAdapter(Provider.GOOGLE)], registry)

    merged = await orchestrator.run("query", [Provider.GOOGLE])

    assert merged.results == ()
    assert merged.all_failed is False
    assert registry.engine_status(Provider.GOOGLE) == CircuitState.CLOSED


async def test_results_are_truncated_to_max_results(
    registry: CircuitBreakerRegistry,
) -> None:
    adapter = FakeAdapter(
        Provider.GOOGLE,
        [make_result(Provider.GOOGLE, f"https://example{i}.com") for i in range(20)],
    )
    orchestrator = _build([adapter], registry, max_results=5)

    merged = await orchestrator.run("query")

    assert [item.url for item in merged.results] == [
        f"https://example{i}.com" for i in range(5)
    ]


async def test_default_providers_follow_config_then_adapters(
    registry: CircuitBreakerRegistry,
) -> None:
    google = FakeAdapter(Provider.GOOGLE)
    bing = FakeAdapter(Provider.BING)
    brave = FakeAdapter(Provider.BRAVE)

    everything = _build([bing, google, brave], registry)
    merged = await everything.run("query")
    assert merged.attempted == (Provider.BRAVE, Provider.GOOGLE, Provider.BING)

    configured = _build(
        [bing, google, brave], registry, providers=(Provider.BING,)
    )
    merged = await configured.run("query")
    assert merged.attempted == (Provider.BING,)


async def test_duplicate_providers_are_called_once(
    registry: CircuitBreakerRegistry,
) -> None:
    google = FakeAdapter(Provider.GOOGLE)
    orchestrator = _build([google], registry)

    merged = await orchestrator.run("query", [Provider.GOOGLE, Provider.GOOGLE])

    assert google.queries == ["query"]
    assert merged.attempted == (Provider.GOOGLE,)


async def test_results_are_tagged_with_the_calling_provider(
    registry: CircuitBreakerRegistry,
) -> None:
    mislabeled = FakeAdapter(
        Provider.BING, [make_result(Provider.GOOGLE, "https://a.com")]
    )
    orchestrator = _build([mislabeled], registry)

    merged = await orchestrator.run("query", [Provider.BING])

    assert merged.results[0].providers == (Provider.BING,)
    assert merged.results[0].score == pytest.approx(0.8)


@pytest.mark.parametrize(
    ("query", "providers", "message"),
    [
        ("   ", [Provider.GOOGLE], "query"),
        ("query", [], "at least one provider"),
        ("query", [Provider.STARTPAGE], "Startpage"),
    ],
)
async def test_invalid_requests_raise_configuration_error(
    registry: CircuitBreakerRegistry,
    query: str,
    providers: list[Provider],
    message: str,
) -> None:
    orchestrator = _build([FakeAdapter(Provider.GOOGLE)], registry)

    with pytest.raises(ConfigurationError, match=message):
        await orchestrator.run(query, providers)


async def test_cache_hit_skips_dispatch_and_health_updates(
    registry: CircuitBreakerRegistry,
) -> None:
    google = FakeAdapter(
        Provider.GOOGLE, [make_result(Provider.GOOGLE, "https://a.com")]
    )
    cache = ResultCache(ttl_seconds=60.0)
    orchestrator = _build([google], registry, cache=cache)

    first = await orchestrator.run("Rust", [Provider.GOOGLE])
    registry.reset()
    second = await orchestrator.run("  rust ", [Provider.GOOGLE])

    assert first.query == "Rust"
    assert second.query == "  rust "
    assert second.results == first.results
    assert second.succeeded == first.succeeded
    assert google.queries == ["Rust"]
    assert registry.health_report() == ()


async def test_failed_search_is_not_cached(registry: CircuitBreakerRegistry) -> None:
    google = FakeAdapter.failing(Provider.GOOGLE)
    cache = ResultCache(ttl_seconds=60.0)
    orchestrator = _build([google], registry, cache=cache)

    await orchestrator.run("query", [Provider.GOOGLE])
    await orchestrator.run("query", [Provider.GOOGLE])

    assert len(google.queries) == 2
    assert len(cache) == 0


async def test_orchestrator_defaults_to_shared_registry() -> None:
    google = FakeAdapter.failing(Provider.GOOGLE)
    orchestrator = SearchOrchestrator({Provider.GOOGLE: google})

    await orchestrator.run("query")

    assert orchestrator.registry is get_shared_registry()
    health = get_shared_registry().engine_health(Provider.GOOGLE)
    assert health.consecutive_failures == 1


async def test_concurrent_runs_share_health_state(clock: FakeClock) -> None:
    registry = CircuitBreakerRegistry(
        CircuitBreakerConfig(failure_threshold=2, cooldown_seconds=60.0)
    )
    failing = FakeAdapter.failing(Provider.BING)
    ok = FakeAdapter(Provider.GOOGLE, [make_result(Provider.GOOGLE, "https://a.com")])
    first = _build([failing, ok], registry)
    second = _build([failing, ok], registry)

    await first.run("one", [Provider.BING, Provider.GOOGLE])
    await second.run("two", [Provider.BING, Provider.GOOGLE])
    merged = await first.run("three", [Provider.BING, Provider.GOOGLE])

    assert registry.engine_status(Provider.BING) == CircuitState.OPEN
    assert failing.queries == ["one", "two"]
    assert merged.attempted == (Provider.GOOGLE,)



async def test_malformed_result_url_does_not_abort_search(
    registry: CircuitBreakerRegistry,
) -> None:
    bing = FakeAdapter(
        Provider.BING, [make_result(Provider.BING, "http://[broken")]
    )
    google = FakeAdapter(
        Provider.GOOGLE, [make_result(Provider.GOOGLE, "https://a.com")]
    )
    orchestrator = _build([bing, google], registry)

    merged = await orchestrator.run("query", [Provider.BING, Provider.GOOGLE])

    assert merged.succeeded == (Provider.BING, Provider.GOOGLE)
    assert [item.key for item in merged.results] == [
        "http://[broken",
        "https://a.com/",
    ]
