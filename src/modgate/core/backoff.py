"""Fallback wait schedule and safety buffer for rate-limited requests."""

from dataclasses import dataclass

# Ceiling used when a transport is built without an explicit retry count
DEFAULT_MAX_RETRIES = 100
# Ceiling used by the Modrinth client and the CLI
PRODUCTION_MAX_RETRIES = 50


def resolve_max_retries(max_retries: int | None) -> int:
    """Resolve the retry ceiling for a transport.

    Args:
        max_retries: Requested ceiling, or None for the default

    Returns:
        Number of retries allowed after the initial attempt

    Raises:
        ValueError: If max_retries is negative
    """
    if max_retries is None:
        return DEFAULT_MAX_RETRIES
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")
    return max_retries


@dataclass(frozen=True)
class BackoffPolicy:
    """Backoff schedule applied when the server gives no explicit wait.

    All durations are in seconds.
    """

    base_delay: float = 0.1
    buffer_ratio: float = 0.1
    buffer_fixed: float = 0.05
    max_delay: float | None = None  # caps the fallback only, never server hints

    def __post_init__(self) -> None:
        for name in ("base_delay", "buffer_ratio", "buffer_fixed"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError("max_delay must be >= 0")

    def fallback(self, attempt: int) -> float:
        """Exponential wait for the given zero-based attempt index.

        Args:
            attempt: Attempt index (0 for the initial request)

        Returns:
            base_delay * 2**attempt, capped at max_delay when set
        """
        wait = self.base_delay * (2**attempt)
        if self.max_delay is not None:
            wait = min(wait, self.max_delay)
        return wait

    def buffered(self, wait: float) -> float:
        """Add the proportional and fixed safety buffer to a wait."""
        return wait + wait * self.buffer_ratio + self.buffer_fixed

    def delay(self, attempt: int, hint: float = 0.0) -> float:
        """Final wait before the next attempt.

        Args:
            attempt: Attempt index that was rate limited
            hint: Wait advertised by the server, 0 if none

        Returns:
            Buffered wait in seconds
        """
        wait = hint if hint > 0 else self.fallback(attempt)
        return self.buffered(wait)
