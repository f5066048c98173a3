"""Custom exceptions for column mapping."""


class ColumnMappingError(Exception):
    """Base exception for column mapping errors."""
    pass


class InvalidMappingInputError(ColumnMappingError):
    """Headers or sample rows are malformed."""
    pass


class FallbackClassificationError(ColumnMappingError):
    """The language model fallback could not produce a usable answer."""
    pass
