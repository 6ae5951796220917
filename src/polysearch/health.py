from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from polysearch.circuit_breaker import (
    CircuitBreakerRegistry,
    CircuitState,
    HealthReportEntry,
)
from polysearch.types import Provider

STATUS_OK = "ok"
STATUS_DEGRADED = "degraded"
STATUS_UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class HealthSummary:
    """Immutable diagnostics view of provider health.

    ``unavailable`` means every tracked provider is open; searches still run
    through the liveness fallback, but are likely to come back empty.
    """

    status: str
    available: bool
    degraded_providers: tuple[Provider, ...]
    entries: tuple[HealthReportEntry, ...]
    checked_at: float

    def entry_for(self, provider: Provider) -> HealthReportEntry | None:
        """Return the report entry for ``provider``, if it was tracked."""
        for entry in self.entries:
            if entry.provider == provider:
                return entry
        return None


def summarize_health(
    report: Sequence[HealthReportEntry],
    *,
    now_fn: Callable[[], float] = time.time,
) -> HealthSummary:
    """Condense a registry health report into one status line."""
    order = Provider.all()
    entries = tuple(sorted(report, key=lambda entry: order.index(entry.provider)))
    degraded = tuple(
        entry.provider for entry in entries if entry.state != CircuitState.CLOSED
    )
    all_open = bool(entries) and all(
        entry.state == CircuitState.OPEN for entry in entries
    )
    if all_open:
        status = STATUS_UNAVAILABLE
    elif degraded:
        status = STATUS_DEGRADED
    else:
        status = STATUS_OK
    return HealthSummary(
        status=status,
        available=not all_open,
        degraded_providers=degraded,
        entries=entries,
        checked_at=now_fn(),
    )


def registry_health(
    registry: CircuitBreakerRegistry,
    *,
    now_fn: Callable[[], float] = time.time,
) -> HealthSummary:
    """Summarize the current health of every provider ``registry`` tracks."""
    return summarize_health(registry.health_report(), now_fn=now_fn)
