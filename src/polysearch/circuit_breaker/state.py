"""Circuit breaker state primitives."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from polysearch.types import Provider


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class EngineHealth:
    """Point-in-time view of one provider's health record.

    Attributes:
        provider: Provider the record belongs to.
        state: Current circuit state.
        consecutive_failures: Failures recorded since the last success.
        last_failure_at: Timestamp of the last recorded failure, if any.
        last_success_at: Timestamp of the last recorded success, if any.
    """

    provider: Provider
    state: CircuitState
    consecutive_failures: int
    last_failure_at: datetime | None
    last_success_at: datetime | None


@dataclass(frozen=True)
class HealthReportEntry:
    """One row of a registry health report."""

    provider: Provider
    state: CircuitState
    consecutive_failures: int


def default_health(provider: Provider) -> EngineHealth:
    """Return the healthy record a provider starts with."""
    return EngineHealth(
        provider=provider,
        state=CircuitState.CLOSED,
        consecutive_failures=0,
        last_failure_at=None,
        last_success_at=None,
    )
