"""Utilities for sanitizing user-supplied data before it reaches the logs."""

from typing import Iterable, List, Optional


def sanitize_for_logging(value: Optional[str], max_length: int = 200) -> str:
    """
    Sanitize any string value for logging.

    Control characters are replaced so a crafted column header cannot
    forge log lines.

    Args:
        value: Value to sanitize
        max_length: Maximum length to return

    Returns:
        Sanitized string
    """
    if value is None:
        return ""

    value_str = "".join(ch if ch.isprintable() else "?" for ch in str(value))
    if len(value_str) > max_length:
        return value_str[:max_length] + "..."

    return value_str


def sanitize_values(values: Iterable[Optional[str]], max_items: int = 5, max_length: int = 40) -> List[str]:
    """Sanitize the first few sample values of a column for logging."""
    return [sanitize_for_logging(v, max_length=max_length) for v in list(values)[:max_items]]
