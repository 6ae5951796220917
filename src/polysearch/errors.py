"""Shared error types for polysearch."""

from __future__ import annotations

from polysearch.types import Provider


class PolysearchError(Exception):
    """Base exception for the polysearch package."""


class ConfigurationError(PolysearchError, ValueError):
    """Raised when a search is requested with invalid inputs."""


class ProviderError(PolysearchError):
    """Base exception for one failed provider call.

    Adapters raise subclasses of this for ordinary network, HTTP, parse and
    timeout failures so the orchestrator can classify them uniformly.
    """

    def __init__(self, provider: Provider, message: str) -> None:
        """Initialize provider-failure metadata.

        Args:
            provider: Provider whose call failed.
            message: Human-readable failure description.
        """
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its timeout."""


class ProviderHttpError(ProviderError):
    """Raised for transport failures and non-success HTTP responses."""

    def __init__(
        self,
        provider: Provider,
        message: str,
        *,
        http_status: int | None = None,
        response_body: str | None = None,
    ) -> None:
        """Initialize HTTP error metadata.

        Args:
            provider: Provider whose call failed.
            message: Human-readable failure description.
            http_status: Optional HTTP status observed from the provider.
            response_body: Optional response payload text.
        """
        super().__init__(provider, message)
        self.http_status = http_status
        self.response_body = response_body


class TransientProviderError(ProviderHttpError):
    """Raised for retry-safe HTTP statuses such as 429 or 503."""


class ProviderParseError(ProviderError):
    """Raised when a provider response cannot be parsed into results."""
