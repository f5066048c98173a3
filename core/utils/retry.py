"""Retry utilities for LLM calls."""

import logging
import time
from functools import wraps
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

RATE_LIMIT_INDICATORS = (
    'ratelimiterror',
    'rate limit',
    'quota',
    'exceeded your current quota',
    'insufficient credits',
    '402',  # Payment required
    '429',  # Too many requests
)

TIMEOUT_INDICATORS = (
    'timeout',
    'timed out',
)


def _matches(exception: Exception, indicators) -> bool:
    error_str = str(exception).lower()
    error_type = type(exception).__name__.lower()
    return any(indicator in error_str or indicator in error_type for indicator in indicators)


def is_rate_limit_error(exception: Exception) -> bool:
    """
    Check if an exception is a rate limit/quota error that should not be retried.

    Args:
        exception: Exception to check

    Returns:
        True if this is a rate limit error
    """
    return _matches(exception, RATE_LIMIT_INDICATORS)


def is_timeout_error(exception: Exception) -> bool:
    """Check if an exception signals a request timeout."""
    if isinstance(exception, TimeoutError):
        return True
    return _matches(exception, TIMEOUT_INDICATORS)


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: tuple = (Exception,),
    log_errors: bool = True,
    skip_rate_limit_errors: bool = True,
    skip_timeout_errors: bool = True,
):
    """
    Decorator for retrying functions with exponential backoff.

    Rate limit and timeout errors are re-raised immediately by default: neither
    is transient on the time scale of a single mapping request.

    Args:
        max_retries: Maximum number of retry attempts (0 = call once)
        initial_delay: Initial delay in seconds before first retry
        backoff_factor: Multiplier for delay between retries
        exceptions: Tuple of exceptions to catch and retry on
        log_errors: Whether to log retry attempts
        skip_rate_limit_errors: Don't retry rate limit/quota errors
        skip_timeout_errors: Don't retry timeouts

    Returns:
        Decorated function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if skip_rate_limit_errors and is_rate_limit_error(e):
                        if log_errors:
                            logger.error(f"{func.__name__} hit rate limit/quota error (not retrying): {e}")
                        raise
                    if skip_timeout_errors and is_timeout_error(e):
                        if log_errors:
                            logger.warning(f"{func.__name__} timed out (not retrying): {e}")
                        raise
                    if attempt >= max_retries:
                        if log_errors:
                            logger.error(f"{func.__name__} failed after {max_retries + 1} attempts: {e}")
                        raise

                    if log_errors:
                        logger.warning(
                            f"{func.__name__} failed (attempt {attempt + 1}/{max_retries + 1}): {e}. "
                            f"Retrying in {delay:.2f}s..."
                        )
                    time.sleep(delay)
                    delay *= backoff_factor

        return wrapper
    return decorator
