from __future__ import annotations

from collections.abc import Iterator

import pytest

import polysearch.circuit_breaker.registry as registry_mod
from polysearch.circuit_breaker import (
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    reset_shared_registry,
)
from tests.polysearch.support.fakes import FakeClock, FakeLogger


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze the registry clock at a fixed instant that tests advance."""
    fake = FakeClock()
    monkeypatch.setattr(registry_mod, "_utcnow", fake.now)
    return fake


@pytest.fixture
def registry(clock: FakeClock) -> CircuitBreakerRegistry:
    """Provide an isolated registry with threshold 3 and a 60s cooldown."""
    return CircuitBreakerRegistry(
        CircuitBreakerConfig(failure_threshold=3, cooldown_seconds=60.0)
    )


@pytest.fixture(autouse=True)
def _isolate_shared_registry() -> Iterator[None]:
    reset_shared_registry()
    yield
    reset_shared_registry()
