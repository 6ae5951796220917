"""Search orchestration: breaker-gated fan-out, dedup, scoring, ranking."""

from polysearch.orchestrator.models import MergedResult, MergedResultSet
from polysearch.orchestrator.search import OrchestratorConfig, SearchOrchestrator

__all__ = [
    "MergedResult",
    "MergedResultSet",
    "OrchestratorConfig",
    "SearchOrchestrator",
]
