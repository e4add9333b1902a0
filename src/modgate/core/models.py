"""Data models for modgate."""

from pydantic import BaseModel, Field

from modgate.core.backoff import PRODUCTION_MAX_RETRIES, BackoffPolicy

# Local data models


class RateLimitSettings(BaseModel):
    """Rate limit and HTTP settings from config.toml."""

    max_retries: int = Field(default=PRODUCTION_MAX_RETRIES, ge=0)
    base_delay: float = Field(default=0.1, ge=0)
    buffer_ratio: float = Field(default=0.1, ge=0)
    buffer_fixed: float = Field(default=0.05, ge=0)
    max_delay: float | None = Field(default=None, ge=0)
    timeout: float = Field(default=30.0, gt=0)
    max_concurrent: int = Field(default=8, ge=1)

    def to_policy(self) -> BackoffPolicy:
        """Build the backoff policy described by these settings."""
        return BackoffPolicy(
            base_delay=self.base_delay,
            buffer_ratio=self.buffer_ratio,
            buffer_fixed=self.buffer_fixed,
            max_delay=self.max_delay,
        )


# Internal data models


class ProbeResult(BaseModel):
    """Outcome of probing a single project through the rate-limited client."""

    slug: str
    status_code: int | None
    attempts: int
    elapsed: float
    remaining: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """Whether the project was fetched without error."""
        return self.error is None

    @property
    def rate_limited(self) -> bool:
        """Whether at least one 429 was absorbed or the probe ran out of retries."""
        return self.attempts > 1 or self.status_code == 429
