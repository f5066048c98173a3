"""Database module for workspace membership lookups."""

from core.database.models import Base, MembershipStatus, Workspace, WorkspaceMember
from core.database.schema import get_session_factory, init_database

__all__ = [
    "Base",
    "MembershipStatus",
    "Workspace",
    "WorkspaceMember",
    "get_session_factory",
    "init_database",
]
