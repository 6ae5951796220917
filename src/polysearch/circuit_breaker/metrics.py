"""Observability hooks for the health registry."""

from __future__ import annotations

from typing import Protocol

import structlog

from polysearch.circuit_breaker.state import CircuitState
from polysearch.logging import StructuredLogger, log_info, log_warning
from polysearch.types import Provider


class HealthListener(Protocol):
    """Listener protocol for provider circuit transitions.

    Notes:
        Listeners run synchronously after the record lock is released, so
        they must not block. ``OPEN -> HALF_OPEN`` is emitted by the admission
        check that grants the probe.
    """

    def on_state_change(
        self, provider: Provider, old: CircuitState, new: CircuitState
    ) -> None:
        """Handle a circuit state transition."""


class LoggingHealthListener:
    """Log every circuit transition as a structured event."""

    def __init__(self, logger: StructuredLogger | None = None) -> None:
        self._logger = structlog.get_logger(__name__) if logger is None else logger

    def on_state_change(
        self, provider: Provider, old: CircuitState, new: CircuitState
    ) -> None:
        if new == CircuitState.OPEN:
            log_warning(
                self._logger,
                "circuit.state_changed",
                provider=str(provider),
                old=str(old),
                new=str(new),
            )
            return
        log_info(
            self._logger,
            "circuit.state_changed",
            provider=str(provider),
            old=str(old),
            new=str(new),
        )
