"""Caller identity and workspace authorization."""

from core.auth.exceptions import AuthorizationError, NotAuthenticatedError, NotAuthorizedError
from core.auth.identity import CallerIdentity
from core.auth.workspace_access import (
    DatabaseWorkspaceAuthorizer,
    WorkspaceAuthorizer,
    is_super_admin,
)

__all__ = [
    "AuthorizationError",
    "CallerIdentity",
    "DatabaseWorkspaceAuthorizer",
    "NotAuthenticatedError",
    "NotAuthorizedError",
    "WorkspaceAuthorizer",
    "is_super_admin",
]
