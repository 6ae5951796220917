"""Shared HTTP plumbing for concrete provider adapters."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Self

import httpx

from polysearch.adapters.base import AdapterOptions
from polysearch.errors import (
    ProviderError,
    ProviderHttpError,
    ProviderParseError,
    ProviderTimeoutError,
    TransientProviderError,
)
from polysearch.retry import (
    RETRY_STATUSES,
    RetryBackoffPolicy,
    build_transient_retrying,
)
from polysearch.types import Provider, ProviderResult

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:133.0) Gecko/20100101 "
    "Firefox/133.0",
)
_MAX_ERROR_BODY = 1024


def random_user_agent() -> str:
    """Return one browser-like User-Agent string."""
    return random.choice(USER_AGENTS)


class HttpProviderAdapter(ABC):
    """Base adapter that performs one HTTP search request per query.

    Subclasses describe the request and parse the response; the base applies
    the per-request timeout and headers, retries transient statuses, and
    classifies every failure as a :class:`ProviderError`.
    """

    def __init__(
        self,
        provider: Provider,
        *,
        client: httpx.AsyncClient,
        timeout_seconds: float = 8.0,
        max_results: int = 10,
        safe_search: bool = True,
        user_agent: str | None = None,
        retry_policy: RetryBackoffPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Create an adapter bound to a shared HTTP client.

        Args:
            provider: Provider served by this adapter.
            client: Shared async HTTP client.
            timeout_seconds: Timeout applied to each request.
            max_results: Maximum results returned per query.
            safe_search: Whether subclasses should request filtered results.
            user_agent: Fixed User-Agent; a random browser one when omitted.
            retry_policy: Backoff policy for transient statuses.
            sleep: Optional async sleep used between retries.
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if max_results < 1:
            raise ValueError("max_results must be >= 1")
        self.provider = provider
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.max_results = max_results
        self.safe_search = safe_search
        self._user_agent = user_agent
        self._retry_policy = (
            RetryBackoffPolicy() if retry_policy is None else retry_policy
        )
        self._sleep = sleep

    @classmethod
    def from_options(
        cls,
        provider: Provider,
        options: AdapterOptions,
        *,
        client: httpx.AsyncClient,
        retry_policy: RetryBackoffPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> Self:
        """Create an adapter configured from deployment-wide options."""
        return cls(
            provider,
            client=client,
            timeout_seconds=options.timeout_seconds,
            max_results=options.max_results,
            safe_search=options.safe_search,
            user_agent=options.user_agent,
            retry_policy=retry_policy,
            sleep=sleep,
        )

    @abstractmethod
    def build_request(self, query: str) -> httpx.Request:
        """Build the search request for ``query``; see :meth:`request_for`."""

    @abstractmethod
    def parse_response(self, response: httpx.Response) -> list[ProviderResult]:
        """Parse a successful response into results in provider order."""

    def request_for(
        self,
        method: str,
        url: str,
        **kwargs: object,
    ) -> httpx.Request:
        """Build a request carrying this adapter's timeout and headers."""
        headers = {
            "User-Agent": self._user_agent or random_user_agent(),
            "Accept-Language": "en-US,en;q=0.9",
        }
        return self.client.build_request(
            method,
            url,
            headers=headers,
            timeout=self.timeout_seconds,
            **kwargs,  # type: ignore[arg-type]
        )

    async def search(self, query: str) -> list[ProviderResult]:
        """Run the search, retrying transient failures per the retry policy."""
        retrying = build_transient_retrying(self._retry_policy, sleep=self._sleep)
        async for attempt in retrying:
            with attempt:
                return await self._search_once(query)
        raise RuntimeError("search retry loop exited unexpectedly.")

    async def _search_once(self, query: str) -> list[ProviderResult]:
        request = self.build_request(query)
        try:
            response = await self.client.send(request)
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                self.provider,
                f"request timed out after {self.timeout_seconds:g}s",
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderHttpError(
                self.provider, f"request failed: {exc}"
            ) from exc

        self._raise_for_status(response)

        try:
            results = self.parse_response(response)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderParseError(
                self.provider,
                f"{exc.__class__.__name__}: {exc}",
            ) from exc
        return results[: self.max_results]

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        body = response.text[:_MAX_ERROR_BODY]
        if status in RETRY_STATUSES:
            raise TransientProviderError(
                self.provider,
                f"transient failure (HTTP {status})",
                http_status=status,
                response_body=body,
            )
        raise ProviderHttpError(
            self.provider,
            f"HTTP {status}",
            http_status=status,
            response_body=body,
        )
