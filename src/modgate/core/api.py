"""Modrinth API client built on the rate-limited transport."""

import asyncio
import logging
import re
import time
from types import TracebackType
from typing import Self

import httpx

from modgate import __version__
from modgate.core.exceptions import APIError, ProjectNotFoundError, RateLimitError
from modgate.core.models import ProbeResult, RateLimitSettings
from modgate.core.transport import ATTEMPTS_EXTENSION, RateLimitTransport

logger = logging.getLogger(__name__)

BASE_URL = "https://api.modrinth.com/v2"


def _default_headers() -> dict[str, str]:
    return {"User-Agent": f"modgate/{__version__}"}


def create_client(
    settings: RateLimitSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an httpx.AsyncClient that absorbs Modrinth rate limiting.

    Args:
        settings: Rate limit settings (defaults to the production ceiling)
        transport: Optional delegate transport wrapped by the retry layer

    Returns:
        Client configured with base URL, User-Agent, timeout and retry transport
    """
    settings = settings or RateLimitSettings()
    return httpx.AsyncClient(
        base_url=BASE_URL,
        headers=_default_headers(),
        timeout=settings.timeout,
        transport=RateLimitTransport.from_settings(settings, transport=transport),
    )


class ModrinthClient:
    """Async client for Modrinth API v2."""

    BASE_URL = BASE_URL

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        settings: RateLimitSettings | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            client: Optional httpx.AsyncClient for dependency injection.
                If provided, it must be pre-configured with base_url and a
                RateLimitTransport. The client will not be closed.
            settings: Settings used when the client creates its own
                httpx.AsyncClient
        """
        self._client = client
        self._owns_client = client is None
        self.settings = settings or RateLimitSettings()

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        if self._client is None:
            self._client = create_client(self.settings)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        if self._owns_client and self._client:
            await self._client.aclose()

    def _raise_for_status(
        self, response: httpx.Response, slug: str | None = None
    ) -> None:
        """Raise the matching exception for an error response.

        Args:
            response: HTTP response to check
            slug: Optional project slug for better error messages

        Raises:
            ProjectNotFoundError: For 404 responses
            APIError: For other error responses
        """
        if response.status_code == 404:
            if slug is None:
                match = re.search(r"/project/([^/]+)", str(response.url.path))
                slug = match.group(1) if match else "unknown"
            raise ProjectNotFoundError(slug)

        if response.status_code >= 400:
            raise APIError(
                f"API request failed: {response.status_code}",
                status_code=response.status_code,
            )

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request.

        Rate limiting is absorbed by the transport; only exhaustion surfaces.
        Other error statuses are returned as-is so callers can inspect the
        response before calling _raise_for_status.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API endpoint path
            params: Query parameters

        Returns:
            httpx.Response object

        Raises:
            RateLimitError: When retries are exhausted
        """
        if self._client is None:
            msg = "Client not initialized. Use async with context manager."
            raise RuntimeError(msg)
        return await self._client.request(method, path, params=params)

    async def probe(self, slug: str) -> ProbeResult:
        """Fetch a project and record how the rate limiter treated the request.

        Args:
            slug: Project slug (e.g., "sodium")

        Returns:
            ProbeResult; request failures are recorded, not raised
        """
        start = time.monotonic()
        status_code: int | None = None
        attempts = 1
        remaining: int | None = None
        error: str | None = None

        try:
            response = await self._request("GET", f"/project/{slug}")
            # Attempts are known even when the final status is an error
            status_code = response.status_code
            attempts = response.extensions.get(ATTEMPTS_EXTENSION, 1)
            remaining_str = response.headers.get("X-Ratelimit-Remaining")
            if remaining_str and remaining_str.isdigit():
                remaining = int(remaining_str)
            self._raise_for_status(response, slug=slug)
        except RateLimitError as e:
            status_code = e.status_code
            attempts = e.retries + 1
            error = str(e)
        except APIError as e:
            status_code = e.status_code
            error = str(e)
        except httpx.HTTPError as e:
            logger.warning("Request for %s failed: %s", slug, e)
            error = f"HTTP error: {e}"

        return ProbeResult(
            slug=slug,
            status_code=status_code,
            attempts=attempts,
            elapsed=time.monotonic() - start,
            remaining=remaining,
            error=error,
        )

    async def probe_all(self, slugs: list[str]) -> list[ProbeResult]:
        """Probe multiple projects concurrently through the shared client.

        Uses asyncio.Semaphore to limit concurrent requests.

        Args:
            slugs: Project slugs, duplicates allowed

        Returns:
            List of ProbeResult in the same order as input slugs
        """
        semaphore = asyncio.Semaphore(self.settings.max_concurrent)

        async def probe_with_semaphore(slug: str) -> ProbeResult:
            async with semaphore:
                return await self.probe(slug)

        results = await asyncio.gather(
            *[probe_with_semaphore(slug) for slug in slugs],
        )
        return list(results)
