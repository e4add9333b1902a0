"""Core business logic for modgate."""

from modgate.core.api import ModrinthClient, create_client
from modgate.core.backoff import (
    DEFAULT_MAX_RETRIES,
    PRODUCTION_MAX_RETRIES,
    BackoffPolicy,
)
from modgate.core.exceptions import (
    APIError,
    ModgateError,
    ProjectNotFoundError,
    RateLimitError,
)
from modgate.core.transport import RateLimitTransport

__all__ = [
    "DEFAULT_MAX_RETRIES",
    "PRODUCTION_MAX_RETRIES",
    "APIError",
    "BackoffPolicy",
    "ModgateError",
    "ModrinthClient",
    "ProjectNotFoundError",
    "RateLimitError",
    "RateLimitTransport",
    "create_client",
]
