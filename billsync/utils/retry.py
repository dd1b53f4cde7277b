"""
Retry logic with exponential backoff for upstream fetches.

The upstream client never retries on its own; the synchronization facade
decides how many attempts a fetch gets and uses retry_async to run them.
Only errors flagged retryable (UpstreamUnavailable) are attempted again.

Responsibility: Backoff calculation and async retry helper
"""

import asyncio
import random
from typing import Awaitable, TypeVar, Callable, Optional, Type, Tuple
import logging

from ..errors import SyncError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True
) -> float:
    """
    Calculate backoff delay for retry attempt.

    Formula: min(max_delay, base_delay * (exponential_base ** attempt)),
    optionally scaled by a random factor in [0.5, 1.0).

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap in seconds
        exponential_base: Base for exponential calculation (usually 2.0)
        jitter: Add randomization to prevent synchronized retries

    Returns:
        Delay in seconds for this attempt

    Example:
        >>> calculate_backoff(0, jitter=False)
        1.0
        >>> calculate_backoff(3, jitter=False)
        8.0
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)

    if jitter:
        delay = delay * (0.5 + random.random() * 0.5)

    return delay


def is_retryable_error(
    exception: BaseException,
    retryable_exceptions: Tuple[Type[BaseException], ...] = ()
) -> bool:
    """
    Determine if an exception should trigger another attempt.

    Args:
        exception: Exception that was raised
        retryable_exceptions: Additional exception types that are retryable

    Returns:
        True for SyncErrors flagged retryable and for listed types
    """
    if retryable_exceptions and isinstance(exception, retryable_exceptions):
        return True

    if isinstance(exception, SyncError):
        return exception.retryable

    return False


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 1,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[BaseException], ...] = (),
    logger_instance: Optional[logging.Logger] = None
) -> T:
    """
    Run an async callable, retrying retryable failures with backoff.

    Args:
        func: Zero-argument coroutine function
        max_attempts: Maximum attempts (1 = no retries)
        base_delay: Base delay between retries in seconds
        max_delay: Maximum delay cap in seconds
        exponential_base: Base for exponential backoff
        jitter: Add randomization to delays
        retryable_exceptions: Additional exception types to retry
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        Result of the first successful call

    Raises:
        The last exception once attempts are exhausted, or the first
        non-retryable exception unchanged
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    log = logger_instance or logger

    for attempt in range(max_attempts):
        try:
            result = await func()

            if attempt > 0:
                log.info(f"Succeeded after {attempt + 1} attempts")

            return result

        except Exception as e:
            if not is_retryable_error(e, retryable_exceptions):
                raise

            if attempt + 1 >= max_attempts:
                if max_attempts > 1:
                    log.error(f"All {max_attempts} attempts exhausted. Last error: {e}")
                raise

            delay = calculate_backoff(
                attempt=attempt,
                base_delay=base_delay,
                max_delay=max_delay,
                exponential_base=exponential_base,
                jitter=jitter
            )

            log.warning(
                f"Attempt {attempt + 1}/{max_attempts} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )

            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
