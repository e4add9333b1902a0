"""Shared test fixtures."""

from collections.abc import Callable

import httpx
import pytest

from modgate.core.backoff import BackoffPolicy
from modgate.core.models import RateLimitSettings

Handler = Callable[[httpx.Request], httpx.Response]


def _modrinth_rate_limit_body(ms: int) -> str:
    return (
        '{"error":"ratelimit_error","description":"You are being rate-limited. '
        f'Please wait {ms} milliseconds. 0/300 remaining."}}'
    )


@pytest.fixture
def rate_limit_body() -> Callable[[int], str]:
    """Return a builder for Modrinth-style 429 bodies asking to wait N ms."""
    return _modrinth_rate_limit_body


@pytest.fixture
def fast_policy() -> BackoffPolicy:
    """Return a BackoffPolicy with tiny waits for fast testing."""
    return BackoffPolicy(base_delay=0.001, buffer_ratio=0.1, buffer_fixed=0.0)


@pytest.fixture
def fast_settings() -> RateLimitSettings:
    """Return RateLimitSettings with tiny waits and a small retry ceiling."""
    return RateLimitSettings(max_retries=3, base_delay=0.001, buffer_fixed=0.0)


@pytest.fixture
def rate_limited_handler() -> Callable[..., Handler]:
    """Return a factory for MockTransport handlers that answer 429 N times.

    The returned handler exposes ``calls``, the number of requests seen.
    """

    def factory(failures: int, ms: int = 1) -> Handler:
        def handler(request: httpx.Request) -> httpx.Response:
            handler.calls += 1  # type: ignore[attr-defined]
            if handler.calls <= failures:  # type: ignore[attr-defined]
                return httpx.Response(429, text=_modrinth_rate_limit_body(ms))
            return httpx.Response(200, json={"success": True})

        handler.calls = 0  # type: ignore[attr-defined]
        return handler

    return factory
