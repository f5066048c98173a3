"""Utility functions for the column mapping service."""

from core.utils.retry import is_rate_limit_error, is_timeout_error, retry_with_backoff
from core.utils.sanitize import sanitize_for_logging, sanitize_values

__all__ = [
    "is_rate_limit_error",
    "is_timeout_error",
    "retry_with_backoff",
    "sanitize_for_logging",
    "sanitize_values",
]
