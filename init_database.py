#!/usr/bin/env python3
"""Database initialization script.

Creates the workspace membership schema and optionally registers a member.

Usage:
  python init_database.py
  python init_database.py --workspace acme --workspace-name "Acme Inc" --user user-123 --role owner
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from sqlalchemy import inspect

from core.config import get_config
from core.database.models import MembershipStatus, Workspace, WorkspaceMember
from core.database.schema import get_session_factory, init_database

EXPECTED_TABLES = ["workspaces", "workspace_members"]


def add_member(session_factory, workspace_id: str, workspace_name: str, user_id: str, role: str) -> None:
    """Create the workspace if needed and activate the user's membership."""
    session = session_factory()
    try:
        workspace = session.get(Workspace, workspace_id)
        if workspace is None:
            session.add(Workspace(id=workspace_id, name=workspace_name or workspace_id))
            session.flush()
            print(f"✓ Created workspace {workspace_id}")

        member = session.query(WorkspaceMember).filter(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_id == user_id,
        ).first()
        if member is None:
            session.add(WorkspaceMember(workspace_id=workspace_id, user_id=user_id, role=role))
        else:
            member.role = role
            member.status = MembershipStatus.ACTIVE
        session.commit()
        print(f"✓ {user_id} is an active {role} of {workspace_id}")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def main():
    """Initialize database and verify setup."""
    parser = argparse.ArgumentParser(description="Initialize the workspace membership database.")
    parser.add_argument("--workspace", help="Workspace ID to create or update")
    parser.add_argument("--workspace-name", default="", help="Display name for a new workspace")
    parser.add_argument("--user", help="User ID to register as an active member")
    parser.add_argument("--role", default="member", choices=["owner", "admin", "member"])
    args = parser.parse_args()

    if bool(args.workspace) != bool(args.user):
        parser.error("--workspace and --user must be given together")

    print("=" * 50)
    print("Database Initialization")
    print("=" * 50)

    try:
        config = get_config()
        db_path = config.database_path
        print(f"Database path: {db_path}")

        engine = init_database(db_path, echo=False)
        print("✓ Database initialized successfully")

        tables = inspect(engine).get_table_names()
        missing_tables = [t for t in EXPECTED_TABLES if t not in tables]
        if missing_tables:
            print(f"⚠ Warning: Some expected tables are missing: {missing_tables}")
        else:
            print("✓ All expected tables are present")

        if args.workspace:
            add_member(get_session_factory(engine), args.workspace, args.workspace_name, args.user, args.role)

        print("=" * 50)
        return 0

    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
