"""Per-provider circuit breakers for adaptive provider selection.

Key behavior notes:
  - Every provider has an independent record, created lazily as ``CLOSED``.
  - ``should_attempt`` is the only operation that moves ``OPEN`` to
    ``HALF_OPEN``; it does so once the cooldown since the last failure has
    elapsed.
  - Concurrent callers that observe ``HALF_OPEN`` are all admitted as probes.
    A failed probe re-opens the circuit and restarts the cooldown, a
    successful one closes it.
  - Failures may be recorded without an admitted attempt (for example when
    every provider is open and the orchestrator probes them all anyway).
"""

from polysearch.circuit_breaker.metrics import HealthListener, LoggingHealthListener
from polysearch.circuit_breaker.registry import (
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
)
from polysearch.circuit_breaker.shared import (
    configure_shared_registry,
    get_shared_registry,
    reset_shared_registry,
)
from polysearch.circuit_breaker.state import (
    CircuitState,
    EngineHealth,
    HealthReportEntry,
)

__all__ = [
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitState",
    "EngineHealth",
    "HealthListener",
    "HealthReportEntry",
    "LoggingHealthListener",
    "configure_shared_registry",
    "get_shared_registry",
    "reset_shared_registry",
]
