"""
Retry policy with exponential backoff and jitter for async API calls.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import MemoryRelayError
from .logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

MAX_ATTEMPTS = 4
INITIAL_DELAY = 1.0  # seconds
JITTER_RATIO = 0.3
NON_RETRYABLE_STATUS_CODES = frozenset({400, 401, 403, 404})


def is_retryable(error: BaseException) -> bool:
    """Classify a failure.

    Client-side validation failures and 400/401/403/404 responses are fatal;
    everything else (5xx, 429, timeouts, network errors) may be retried.
    """
    if isinstance(error, MemoryRelayError):
        if error.status_code in NON_RETRYABLE_STATUS_CODES:
            return False
        return error.retryable
    return getattr(error, 'status_code', None) not in NON_RETRYABLE_STATUS_CODES


def backoff_delay(attempt: int, initial_delay: float = INITIAL_DELAY) -> float:
    """Delay before the next attempt: ``initial_delay * 2**attempt`` plus up to 30% jitter."""
    delay = initial_delay * (2**attempt)
    return delay + random.uniform(0, JITTER_RATIO * delay)


async def with_retry(operation: Callable[[], Awaitable[T]],
                     max_attempts: int = MAX_ATTEMPTS,
                     initial_delay: float = INITIAL_DELAY,
                     log: Optional[logging.Logger] = None) -> T:
    """Run an async operation, retrying retryable failures.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total attempts including the first (default: 4)
        initial_delay: Base backoff in seconds for the first retry
        log: Logger to report retries on (defaults to this module's logger)

    Returns:
        The operation's result

    Raises:
        The first non-retryable failure, or the failure of the final attempt
    """
    log = log or logger

    for attempt in range(max_attempts):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            if attempt == max_attempts - 1:
                log.warning(f'Giving up after {max_attempts} attempts: {e}')
                raise

            delay = backoff_delay(attempt, initial_delay)
            log.warning(f'Attempt {attempt + 1}/{max_attempts} failed: {e}; retrying in {delay:.2f}s')
            await asyncio.sleep(delay)

    raise RuntimeError('with_retry requires max_attempts >= 1')
