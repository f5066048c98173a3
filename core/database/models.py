"""SQLAlchemy models for workspace membership."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class MembershipStatus:
    """Workspace membership status constants."""
    ACTIVE = "active"
    INVITED = "invited"
    DISABLED = "disabled"


class Workspace(Base):
    """A tenant workspace that owns imported datasets."""

    __tablename__ = "workspaces"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Workspace(id={self.id}, name={self.name})>"


class WorkspaceMember(Base):
    """Membership of a user in a workspace.

    Only rows with status ``active`` grant access to the column mapping endpoint.
    """

    __tablename__ = "workspace_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    workspace_id = Column(String(64), ForeignKey("workspaces.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    role = Column(String(50), default="member", nullable=False)  # owner, admin, member
    status = Column(String(20), default=MembershipStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_workspace_member"),
        Index("idx_member_lookup", "workspace_id", "user_id", "status"),
    )

    def __repr__(self):
        return f"<WorkspaceMember(workspace={self.workspace_id}, user={self.user_id}, status={self.status})>"
