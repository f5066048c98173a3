"""Authorization exceptions."""


class AuthorizationError(Exception):
    """Base exception for caller authorization failures."""
    pass


class NotAuthenticatedError(AuthorizationError):
    """Raised when no caller identity is available."""
    pass


class NotAuthorizedError(AuthorizationError):
    """Raised when the caller may not access the target workspace."""
    pass
