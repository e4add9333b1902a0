"""httpx transport that absorbs Modrinth rate limiting."""

import asyncio
import logging
from types import TracebackType
from typing import Self

import httpx

from modgate.core.backoff import BackoffPolicy, resolve_max_retries
from modgate.core.exceptions import RateLimitError
from modgate.core.models import RateLimitSettings
from modgate.core.wait import hinted_wait

logger = logging.getLogger(__name__)

# Response extension holding the number of attempts a request needed
ATTEMPTS_EXTENSION = "rate_limit_attempts"


def format_duration(seconds: float) -> str:
    """Format a wait for progress output (e.g. "160ms", "2.25s").

    Args:
        seconds: Duration in seconds

    Returns:
        Human-readable duration
    """
    if seconds < 1:
        value, unit = seconds * 1000, "ms"
    else:
        value, unit = seconds, "s"
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return f"{text}{unit}"


class RateLimitTransport(httpx.AsyncBaseTransport):
    """Async transport that retries requests answered with HTTP 429.

    The transport holds only read-only configuration, so a single instance
    can serve any number of concurrent requests. Retry state lives in each
    ``handle_async_request`` call.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int | None = None,
        policy: BackoffPolicy | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            transport: Delegate transport that performs the actual I/O.
                Defaults to a new httpx.AsyncHTTPTransport.
            max_retries: Retries allowed after the initial attempt
                (None means DEFAULT_MAX_RETRIES)
            policy: Backoff policy for waits without a server hint
        """
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._max_retries = resolve_max_retries(max_retries)
        self._policy = policy or BackoffPolicy()

    @classmethod
    def from_settings(
        cls,
        settings: RateLimitSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        """Create a transport configured from RateLimitSettings."""
        return cls(
            transport=transport,
            max_retries=settings.max_retries,
            policy=settings.to_policy(),
        )

    @property
    def max_retries(self) -> int:
        """Retries allowed after the initial attempt."""
        return self._max_retries

    @property
    def policy(self) -> BackoffPolicy:
        """Backoff policy in use."""
        return self._policy

    async def __aenter__(self) -> Self:
        await self._transport.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> None:
        await self._transport.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send a request, waiting and retrying while the server answers 429.

        Args:
            request: Request to send

        Returns:
            The first response whose status is not 429

        Raises:
            RateLimitError: If every attempt was rate limited
            httpx.TransportError: If the delegate fails; never retried
        """
        # A streamed body can be consumed only once, buffer it for replays
        await request.aread()

        for attempt in range(self._max_retries + 1):
            logger.debug(
                "%s %s (attempt %d/%d)",
                request.method,
                request.url,
                attempt + 1,
                self._max_retries + 1,
            )
            response = await self._transport.handle_async_request(
                self._copy_request(request)
            )

            if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
                response.extensions[ATTEMPTS_EXTENSION] = attempt + 1
                return response

            try:
                await response.aread()
            finally:
                await response.aclose()

            hint = hinted_wait(response.text, response.headers.get("Retry-After"))
            wait = self._policy.delay(attempt, hint)

            if attempt < self._max_retries:
                logger.warning(
                    "Rate limited by Modrinth API, waiting %s before retry "
                    "(attempt %d/%d)...",
                    format_duration(wait),
                    attempt + 1,
                    self._max_retries,
                )
                await asyncio.sleep(wait)
                continue

            raise RateLimitError(self._max_retries, retry_after=wait)

        # This should never be reached due to return/raise in the loop,
        # but is needed for type checker
        msg = "Unexpected code path"
        raise RuntimeError(msg)  # pragma: no cover

    @staticmethod
    def _copy_request(request: httpx.Request) -> httpx.Request:
        """Duplicate a buffered request for a single attempt."""
        return httpx.Request(
            request.method,
            request.url,
            headers=request.headers,
            stream=httpx.ByteStream(request.content),
            extensions=dict(request.extensions),
        )
