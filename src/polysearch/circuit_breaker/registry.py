"""Per-provider circuit breaker registry."""

import threading
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta

import structlog

from polysearch.circuit_breaker.metrics import HealthListener
from polysearch.circuit_breaker.state import (
    CircuitState,
    EngineHealth,
    HealthReportEntry,
    default_health,
)
from polysearch.logging import StructuredLogger, log_exception
from polysearch.types import Provider

_Transition = tuple[Provider, CircuitState, CircuitState]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration values.

    Attributes:
        failure_threshold: Consecutive failures required before opening.
        cooldown_seconds: Seconds to wait while ``OPEN`` before allowing a probe.
    """

    failure_threshold: int = 3
    cooldown_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.cooldown_seconds <= 0:
            raise ValueError("cooldown_seconds must be > 0")


class CircuitBreakerRegistry:
    """Track health for every provider and gate attempts against it.

    Each provider record is guarded by its own lock, so concurrent searches
    touching unrelated providers never contend. Records are immutable
    snapshots replaced on every transition, which keeps reads atomic.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        *,
        listeners: Sequence[HealthListener] | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        """Build an empty registry.

        Args:
            config: Breaker thresholds. Defaults to ``CircuitBreakerConfig()``.
            listeners: Optional hooks notified on every state transition.
            logger: Logger used to report listener failures.
        """
        self._config = CircuitBreakerConfig() if config is None else config
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._logger = structlog.get_logger(__name__) if logger is None else logger
        self._records: dict[Provider, EngineHealth] = {}
        self._record_locks: dict[Provider, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @property
    def config(self) -> CircuitBreakerConfig:
        """Return the breaker configuration."""
        return self._config

    def _lock_for(self, provider: Provider) -> threading.Lock:
        with self._registry_lock:
            lock = self._record_locks.get(provider)
            if lock is None:
                lock = threading.Lock()
                self._record_locks[provider] = lock
            return lock

    def _load(self, provider: Provider) -> EngineHealth:
        # Caller holds the record lock; inserts also take the registry lock.
        record = self._records.get(provider)
        if record is None:
            record = default_health(provider)
            with self._registry_lock:
                self._records[provider] = record
        return record

    def _emit(self, transition: _Transition | None) -> None:
        if transition is None:
            return
        provider, old, new = transition
        for listener in self._listeners:
            try:
                listener.on_state_change(provider, old, new)
            except Exception:
                log_exception(
                    self._logger,
                    "circuit.listener_failed",
                    provider=str(provider),
                    listener=listener.__class__.__name__,
                )

    def _cooldown_elapsed(self, record: EngineHealth, now: datetime) -> bool:
        if record.last_failure_at is None:
            return True
        cooldown = timedelta(seconds=self._config.cooldown_seconds)
        return now - record.last_failure_at >= cooldown

    def should_attempt(self, provider: Provider) -> bool:
        """Return whether a call to ``provider`` should be made now.

        This is the only place an ``OPEN`` record moves to ``HALF_OPEN``: once
        the cooldown has elapsed since the last failure, the record is marked
        as probing and the call is admitted. Concurrent callers that observe
        ``HALF_OPEN`` are all admitted.
        """
        transition: _Transition | None = None
        with self._lock_for(provider):
            record = self._load(provider)
            if record.state != CircuitState.OPEN:
                return True
            if not self._cooldown_elapsed(record, _utcnow()):
                return False
            self._records[provider] = replace(record, state=CircuitState.HALF_OPEN)
            transition = (provider, CircuitState.OPEN, CircuitState.HALF_OPEN)
        self._emit(transition)
        return True

    def record_success(self, provider: Provider) -> None:
        """Record a successful call and close the circuit."""
        transition: _Transition | None = None
        with self._lock_for(provider):
            record = self._load(provider)
            self._records[provider] = replace(
                record,
                state=CircuitState.CLOSED,
                consecutive_failures=0,
                last_success_at=_utcnow(),
            )
            if record.state != CircuitState.CLOSED:
                transition = (provider, record.state, CircuitState.CLOSED)
        self._emit(transition)

    def record_failure(self, provider: Provider) -> None:
        """Record a failed call, opening the circuit when required.

        A failed ``HALF_OPEN`` probe re-opens the circuit regardless of the
        failure count. Failures may also be recorded against an ``OPEN``
        record; the count grows and the cooldown restarts from this failure.
        """
        transition: _Transition | None = None
        with self._lock_for(provider):
            record = self._load(provider)
            failures = record.consecutive_failures + 1
            state = record.state
            if state == CircuitState.HALF_OPEN:
                state = CircuitState.OPEN
            elif (
                state != CircuitState.OPEN
                and failures >= self._config.failure_threshold
            ):
                state = CircuitState.OPEN
            self._records[provider] = replace(
                record,
                state=state,
                consecutive_failures=failures,
                last_failure_at=_utcnow(),
            )
            if state != record.state:
                transition = (provider, record.state, state)
        self._emit(transition)

    def engine_health(self, provider: Provider) -> EngineHealth:
        """Return the current record for ``provider`` without mutating it."""
        with self._lock_for(provider):
            record = self._records.get(provider)
        return default_health(provider) if record is None else record

    def engine_status(self, provider: Provider) -> CircuitState:
        """Return the current circuit state for ``provider``."""
        return self.engine_health(provider).state

    def health_report(self) -> tuple[HealthReportEntry, ...]:
        """Return one entry per provider this registry has tracked."""
        with self._registry_lock:
            providers = tuple(self._records)
        entries: list[HealthReportEntry] = []
        for provider in providers:
            with self._lock_for(provider):
                record = self._records.get(provider)
            if record is None:
                continue
            entries.append(
                HealthReportEntry(
                    provider=provider,
                    state=record.state,
                    consecutive_failures=record.consecutive_failures,
                )
            )
        return tuple(entries)

    def reset(self) -> None:
        """Forget every record so all providers read as healthy again."""
        with self._registry_lock:
            locks = tuple(self._record_locks.values())
        for lock in locks:
            lock.acquire()
        try:
            with self._registry_lock:
                self._records.clear()
        finally:
            for lock in locks:
                lock.release()
