"""Workspace access checks for the column mapping endpoint."""

import logging
from typing import Iterable, Optional, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from core.auth.exceptions import NotAuthenticatedError, NotAuthorizedError
from core.auth.identity import CallerIdentity
from core.database.models import MembershipStatus, WorkspaceMember

logger = logging.getLogger(__name__)


def is_super_admin(email: Optional[str], super_admin_emails: Iterable[str]) -> bool:
    """
    Check if a user email is a super admin.

    Args:
        email: User email to check
        super_admin_emails: Configured super-admin emails

    Returns:
        True if the user is a super admin
    """
    if not email:
        return False
    admins = {admin.strip().lower() for admin in super_admin_emails if admin and admin.strip()}
    return email.strip().lower() in admins


@runtime_checkable
class WorkspaceAuthorizer(Protocol):
    """Decides whether a caller may work inside a workspace."""

    def authorize(self, caller: Optional[CallerIdentity], workspace_id: str) -> None:
        """Return normally when allowed, raise an AuthorizationError otherwise."""
        ...


class DatabaseWorkspaceAuthorizer:
    """Authorizer backed by the ``workspace_members`` table.

    Super admins pass without a membership lookup. Everyone else needs an
    active membership row for the requested workspace.
    """

    def __init__(self, session_factory: sessionmaker, super_admin_emails: Iterable[str] = ()):
        """
        Initialize authorizer.

        Args:
            session_factory: SQLAlchemy session factory
            super_admin_emails: Emails granted access to every workspace
        """
        self.session_factory = session_factory
        self.super_admin_emails = tuple(super_admin_emails)

    def authorize(self, caller: Optional[CallerIdentity], workspace_id: str) -> None:
        if caller is None or not caller.is_authenticated:
            raise NotAuthenticatedError("Not authenticated")

        if is_super_admin(caller.email, self.super_admin_emails):
            logger.debug(f"Super admin {caller.user_id} granted access to workspace {workspace_id}")
            return

        if not workspace_id:
            raise NotAuthorizedError("Not authorized: no workspace specified")

        if not self.is_active_member(caller.user_id, workspace_id):
            logger.info(f"User {caller.user_id} denied access to workspace {workspace_id}")
            raise NotAuthorizedError("Not authorized")

    def is_active_member(self, user_id: str, workspace_id: str) -> bool:
        """Check for an active membership row."""
        session = self.session_factory()
        try:
            membership = session.query(WorkspaceMember).filter(
                WorkspaceMember.workspace_id == workspace_id,
                WorkspaceMember.user_id == user_id,
                WorkspaceMember.status == MembershipStatus.ACTIVE,
            ).first()
            return membership is not None
        except SQLAlchemyError as e:
            logger.error(f"Membership lookup failed for workspace {workspace_id}: {e}", exc_info=True)
            raise
        finally:
            session.close()
