"""modgate - rate-limit aware HTTP transport for the Modrinth API."""

__version__ = "0.1.0"
