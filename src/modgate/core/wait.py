"""Extract the server-advertised wait from a rate-limit response."""

import math
import re

# Modrinth answers 429 with e.g.
# "You are being rate-limited. Please wait 20 milliseconds. 0/300 remaining."
_WAIT_PATTERNS: tuple[tuple[re.Pattern[str], float], ...] = (
    (re.compile(r"Please wait ([0-9]+) milliseconds?"), 0.001),
    (re.compile(r"Please wait ([0-9]+) seconds?"), 1.0),
)

_MAX_COUNT = 2**63 - 1


def extract_wait_time(body: str) -> float:
    """Parse the wait phrase from a rate-limit response body.

    Args:
        body: Response body text

    Returns:
        Wait in seconds, or 0.0 if the body carries no wait phrase
    """
    for pattern, unit in _WAIT_PATTERNS:
        match = pattern.search(body)
        if match is None:
            continue
        try:
            value = int(match.group(1))
        except ValueError:
            continue
        # Counts beyond a signed 64-bit integer are treated as unparseable
        if value > _MAX_COUNT:
            continue
        return value * unit
    return 0.0


def parse_retry_after(value: str | None) -> float:
    """Parse a Retry-After header holding seconds.

    Args:
        value: Header value, may be None

    Returns:
        Wait in seconds, or 0.0 when missing or unusable
    """
    if not value:
        return 0.0
    try:
        seconds = float(value.strip())
    except ValueError:
        return 0.0
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def hinted_wait(body: str, retry_after: str | None) -> float:
    """Best explicit wait from body text, then from the Retry-After header.

    Returns 0.0 if neither yields a value, leaving the choice to the backoff
    policy.
    """
    wait = extract_wait_time(body)
    if wait == 0:
        wait = parse_retry_after(retry_after)
    return wait
