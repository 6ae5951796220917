"""Resilient multi-provider search.

Queries several unreliable search providers concurrently, tracks each
provider's health with a circuit breaker, skips providers that are currently
failing, and merges the surviving results into one ranked list.
"""

from polysearch.circuit_breaker import (
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitState,
    get_shared_registry,
)
from polysearch.errors import (
    ConfigurationError,
    PolysearchError,
    ProviderError,
    ProviderHttpError,
    ProviderParseError,
    ProviderTimeoutError,
    TransientProviderError,
)
from polysearch.orchestrator import (
    MergedResult,
    MergedResultSet,
    OrchestratorConfig,
    SearchOrchestrator,
)
from polysearch.types import Provider, ProviderResult

__all__ = [
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitState",
    "ConfigurationError",
    "MergedResult",
    "MergedResultSet",
    "OrchestratorConfig",
    "PolysearchError",
    "Provider",
    "ProviderError",
    "ProviderHttpError",
    "ProviderParseError",
    "ProviderResult",
    "ProviderTimeoutError",
    "SearchOrchestrator",
    "TransientProviderError",
    "get_shared_registry",
]
