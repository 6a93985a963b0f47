"""Retry logic with exponential backoff for Confluence API rate limits.

Confluence Cloud answers bursts of requests (such as a publish run fanning out
over many pages) with HTTP 429. Calls are retried with exponential backoff
(1s, 2s, 4s), honouring a Retry-After header when the server sends one. Every
other error fails fast.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3

# Upper bound for a server-provided Retry-After value
MAX_RETRY_AFTER_SECONDS = 30.0

RATE_LIMIT_PATTERNS = (
    '429',
    'too many requests',
    'rate limit exceeded',
    'rate limited',
)


def call_with_retry(
    func: Callable[[], T],
    max_retries: int = MAX_RETRIES,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call func, retrying on rate limit responses.

    Args:
        func: Zero-argument callable performing one API request
        max_retries: Number of retries after the first attempt
        base_delay: Delay before the first retry; doubled on each retry
        sleep: Sleep function (injected by tests)

    Returns:
        The return value of func

    Raises:
        APIAccessError: If the rate limit persists after max_retries retries
        Other exceptions: Passed through immediately without retry
    """
    for attempt in range(max_retries + 1):
        try:
            return func()
        except Exception as e:
            if not is_rate_limit_error(e):
                raise

            if attempt >= max_retries:
                logger.error(
                    f"Rate limit persisted after {max_retries} retries, giving up"
                )
                raise APIAccessError(
                    f"Confluence API failure (after {max_retries} retries)"
                ) from e

            wait_time = _retry_after(e)
            if wait_time is None:
                wait_time = base_delay * (2 ** attempt)
            logger.info(
                f"Rate limit hit, retrying in {wait_time:.0f}s "
                f"(retry {attempt + 1}/{max_retries})"
            )
            sleep(wait_time)

    raise APIAccessError(f"Confluence API failure (after {max_retries} retries)")


def is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a rate limit (429) response."""
    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    if getattr(exception, 'status_code', None) == 429:
        return True

    error_msg = str(exception).lower()
    return any(pattern in error_msg for pattern in RATE_LIMIT_PATTERNS)


def _retry_after(exception: Exception) -> Optional[float]:
    """Extract a Retry-After delay (seconds) from an HTTP error, if present."""
    response = getattr(exception, 'response', None)
    headers = getattr(response, 'headers', None)
    if not headers:
        return None

    value = headers.get('Retry-After')
    if value is None:
        return None
    try:
        return min(float(value), MAX_RETRY_AFTER_SECONDS)
    except (TypeError, ValueError):
        return None
