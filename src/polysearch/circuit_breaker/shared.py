"""Process-wide health registry.

One registry is shared by every orchestrator in the process unless a caller
injects its own. It is built lazily on first use and never persisted.
"""

import threading

from polysearch.circuit_breaker.metrics import LoggingHealthListener
from polysearch.circuit_breaker.registry import (
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
)

_SHARED_REGISTRY: CircuitBreakerRegistry | None = None
_SHARED_REGISTRY_LOCK = threading.Lock()


def _build_registry(config: CircuitBreakerConfig | None) -> CircuitBreakerRegistry:
    return CircuitBreakerRegistry(config, listeners=[LoggingHealthListener()])


def get_shared_registry() -> CircuitBreakerRegistry:
    """Return the process-wide registry, creating it with defaults if needed."""
    global _SHARED_REGISTRY
    registry = _SHARED_REGISTRY
    if registry is not None:
        return registry
    with _SHARED_REGISTRY_LOCK:
        if _SHARED_REGISTRY is None:
            _SHARED_REGISTRY = _build_registry(None)
        return _SHARED_REGISTRY


def configure_shared_registry(config: CircuitBreakerConfig) -> CircuitBreakerRegistry:
    """Replace the process-wide registry with one using ``config``.

    Intended for startup, before any search has run. Health tracked by a
    previous shared registry is discarded.
    """
    global _SHARED_REGISTRY
    with _SHARED_REGISTRY_LOCK:
        _SHARED_REGISTRY = _build_registry(config)
        return _SHARED_REGISTRY


def reset_shared_registry() -> None:
    """Drop the process-wide registry. Intended for deterministic tests."""
    global _SHARED_REGISTRY
    with _SHARED_REGISTRY_LOCK:
        _SHARED_REGISTRY = None
