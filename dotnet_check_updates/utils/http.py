"""
HTTP access to NuGet feeds.

A single :class:`HTTPClient` is shared by every feed lookup of a run. It
pools HTTP/2 connections, caps the number of requests in flight, and
retries transient failures:

- timeouts, connection errors and 5xx answers are retried with
  exponential backoff, up to ``max_retries`` extra attempts;
- 429 answers wait for ``Retry-After`` and do not use up an attempt;
- 404 raises :class:`NuGetError` at once, since feeds answer 404 for
  unknown packages;
- any other 4xx raises :class:`NetworkError` at once.
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Dict, Optional, cast

from dotnet_check_updates.utils.logger import get_logger
from dotnet_check_updates.__version__ import __version__
from dotnet_check_updates.exceptions import NetworkError, NuGetError
from dotnet_check_updates.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")


def _retry_after_seconds(value: Optional[str]) -> float:
    """Parse a ``Retry-After`` header given in seconds; default to one second."""
    try:
        return max(float(value or "1"), 0.0)
    except ValueError:
        return 1.0


def _backoff_delay(failures: int) -> float:
    # 1s, 2s, 4s, ... plus jitter so parallel lookups do not retry in lockstep
    return (2 ** (failures - 1)) + random.uniform(0.0, 0.3)


def _client_error(url: str, response: httpx.Response) -> NetworkError:
    status = response.status_code
    if status == 404:
        return NuGetError(f"Resource not found: {url}", url=url, status_code=status)
    return NetworkError(
        f"HTTP {status} error for {url}",
        url=url,
        status_code=status,
        response_body=response.text,
    )


class HTTPClient:
    """Asynchronous feed client with retries and a concurrency cap.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Extra attempts after a transient failure.
        verify_ssl: Whether to verify TLS certificates.
        user_agent: ``User-Agent`` header; defaults to
            ``dotnet-check-updates/<version>``.
        max_concurrency: Requests allowed in flight at once.

    Example:
        >>> async with HTTPClient() as client:
        ...     index = await client.get_json(
        ...         "https://api.nuget.org/v3-flatcontainer/newtonsoft.json/index.json"
        ...     )
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = 10,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency

        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._max_429_retries = 5

    async def __aenter__(self) -> "HTTPClient":
        self._open()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _open(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                http2=True,
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = self._open()
        async with self._semaphore:
            return await client.request(method, url, **kwargs)

    async def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transient failures.

        Raises:
            NuGetError: The feed answered 404.
            NetworkError: Any other client error, too many 429 answers,
                or every attempt failed.
        """
        attempts = self.max_retries + 1
        failures = 0
        rate_limited = 0
        last_error: Optional[Exception] = None

        while failures < attempts:
            try:
                response = await self._send(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_error = exc
                logger.warning(
                    "%s for %s (attempt %d/%d)",
                    type(exc).__name__,
                    url,
                    failures + 1,
                    attempts,
                )
            else:
                status = response.status_code

                if status == 429:
                    rate_limited += 1
                    if rate_limited > self._max_429_retries:
                        raise NetworkError(
                            f"Rate limit exceeded after {self._max_429_retries} retries",
                            url=url,
                            status_code=status,
                        )
                    wait = _retry_after_seconds(response.headers.get("Retry-After"))
                    logger.warning(
                        "Feed rate limit hit, waiting %.0fs (%d/%d)",
                        wait,
                        rate_limited,
                        self._max_429_retries,
                    )
                    await asyncio.sleep(wait)
                    continue

                if status < 400:
                    return response

                if status < 500:
                    raise _client_error(url, response)

                last_error = NetworkError(f"HTTP {status} error for {url}", url=url, status_code=status)
                logger.warning("HTTP %d from %s (attempt %d/%d)", status, url, failures + 1, attempts)

            failures += 1
            if failures < attempts:
                delay = _backoff_delay(failures)
                logger.debug("Retrying %s in %.2fs", url, delay)
                await asyncio.sleep(delay)

        raise NetworkError(
            f"Request failed after {attempts} attempts: {url}",
            url=url,
        ) from last_error

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._request_with_retry("GET", url, **kwargs)

    async def get_text(self, url: str, **kwargs: Any) -> str:
        """Fetch ``url`` and return the decoded body."""
        response = await self.get(url, **kwargs)
        return response.text

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Fetch ``url`` and return its body as a JSON object.

        Raises:
            NetworkError: The body is not JSON, or not a JSON object.
        """
        response = await self.get(url, **kwargs)

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(payload, dict):
            raise NetworkError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], payload)
