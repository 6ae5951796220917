from __future__ import annotations

from typing import Annotated

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from polysearch.adapters.base import AdapterOptions
from polysearch.circuit_breaker import CircuitBreakerConfig
from polysearch.logging import get_log_level_value
from polysearch.orchestrator import OrchestratorConfig
from polysearch.types import Provider

DEFAULT_PROVIDERS = (
    Provider.DUCKDUCKGO,
    Provider.BRAVE,
    Provider.GOOGLE,
    Provider.BING,
)


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class SearchSettings(BaseSettings):
    """Environment-driven settings for a polysearch deployment."""

    model_config = prefixed_settings_config("POLYSEARCH_")

    providers: Annotated[tuple[Provider, ...], NoDecode] = DEFAULT_PROVIDERS
    max_results: int = 10
    timeout_seconds: float = 8.0
    safe_search: bool = True
    cache_ttl_seconds: float = 600.0
    user_agent: str | None = None
    failure_threshold: int = 3
    cooldown_seconds: float = 60.0
    log_level: str = "INFO"

    @field_validator("providers", mode="before")
    @classmethod
    def _parse_providers(cls, value: object) -> object:
        if isinstance(value, str):
            names = [name for name in value.split(",") if name.strip()]
            return tuple(Provider.parse(name) for name in names)
        return value

    @field_validator("providers")
    @classmethod
    def _validate_providers(
        cls, value: tuple[Provider, ...]
    ) -> tuple[Provider, ...]:
        resolved = tuple(dict.fromkeys(value))
        if not resolved:
            raise ValueError("at least one provider must be enabled")
        return resolved

    @field_validator("max_results", "failure_threshold")
    @classmethod
    def _validate_positive_int(cls, value: int, info: ValidationInfo) -> int:
        if value < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return value

    @field_validator("timeout_seconds", "cooldown_seconds")
    @classmethod
    def _validate_positive_seconds(cls, value: float, info: ValidationInfo) -> float:
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _validate_cache_ttl(cls, value: float) -> float:
        if value < 0:
            raise ValueError("cache_ttl_seconds must be >= 0")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        get_log_level_value(value)
        return value.strip().upper()

    @field_validator("user_agent", mode="before")
    @classmethod
    def _blank_user_agent_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def breaker_config(self) -> CircuitBreakerConfig:
        """Build the circuit breaker configuration."""
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            cooldown_seconds=self.cooldown_seconds,
        )

    def orchestrator_config(self) -> OrchestratorConfig:
        """Build the orchestrator configuration."""
        return OrchestratorConfig(
            max_results=self.max_results,
            timeout_seconds=self.timeout_seconds,
            providers=self.providers,
        )

    def adapter_options(self) -> AdapterOptions:
        """Build the per-request options handed to adapter factories."""
        return AdapterOptions(
            timeout_seconds=self.timeout_seconds,
            max_results=self.max_results,
            safe_search=self.safe_search,
            user_agent=self.user_agent,
        )
