"""Exceptions for modgate."""


class ModgateError(Exception):
    """Base exception for all modgate errors."""


class APIError(ModgateError):
    """General API error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize APIError.

        Args:
            message: Error message
            status_code: HTTP status code if applicable
        """
        super().__init__(message)
        self.status_code = status_code


class ProjectNotFoundError(APIError):
    """Project does not exist on Modrinth."""

    def __init__(self, slug: str) -> None:
        """Initialize ProjectNotFoundError.

        Args:
            slug: Project slug that was not found
        """
        super().__init__(f"Project not found: {slug}", status_code=404)
        self.slug = slug


class RateLimitError(APIError):
    """Rate limit still in effect after every retry was used up."""

    def __init__(self, retries: int, retry_after: float | None = None) -> None:
        """Initialize RateLimitError.

        Args:
            retries: Number of retries performed before giving up
            retry_after: Last computed wait in seconds, if known
        """
        message = (
            f"rate limit exceeded after {retries} retries - "
            "Modrinth API is heavily rate limiting requests. "
            "Please try again later or contact Modrinth support if this persists"
        )
        super().__init__(message, status_code=429)
        self.retries = retries
        self.retry_after = retry_after
