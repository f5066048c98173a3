"""FastAPI dependencies for database, authorization and the mapping agent."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from core.agents.column_mapping import ColumnMappingAgent
from core.auth import CallerIdentity, DatabaseWorkspaceAuthorizer, NotAuthenticatedError, WorkspaceAuthorizer
from core.config import get_config
from core.database.schema import get_session_factory, init_database


@lru_cache()
def get_database_engine():
    """Get cached database engine."""
    config = get_config()
    return init_database(config.database_path)


@lru_cache()
def get_session_factory_cached():
    """Get cached session factory."""
    engine = get_database_engine()
    return get_session_factory(engine)


def get_workspace_authorizer() -> WorkspaceAuthorizer:
    """
    Get workspace authorizer backed by the membership table.

    Returns:
        DatabaseWorkspaceAuthorizer instance
    """
    config = get_config()
    return DatabaseWorkspaceAuthorizer(
        get_session_factory_cached(),
        super_admin_emails=config.get_super_admin_emails(),
    )


@lru_cache()
def _get_cached_agent() -> ColumnMappingAgent:
    # Built once: constructing the DSPy client is not free
    return ColumnMappingAgent.from_config(get_config())


def get_column_mapping_agent(
    authorizer: WorkspaceAuthorizer = Depends(get_workspace_authorizer),
) -> ColumnMappingAgent:
    """
    Get column mapping agent wired to the request's authorizer.

    Returns:
        ColumnMappingAgent instance
    """
    base = _get_cached_agent()
    return ColumnMappingAgent(
        catalog=base.catalog,
        completion_client=base.fallback.client,
        authorizer=authorizer,
        classifiers=base.classifiers,
        sample_size=base.sample_size,
        max_workers=base.max_workers,
    )


def get_caller_identity(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
) -> Optional[CallerIdentity]:
    """
    Resolve the caller from headers set by the authentication gateway.

    Returns:
        CallerIdentity, or None when the request is anonymous
    """
    if not x_user_id:
        return None
    return CallerIdentity(user_id=x_user_id, email=x_user_email)


def require_caller_identity(
    caller: Optional[CallerIdentity] = Depends(get_caller_identity),
) -> CallerIdentity:
    """
    Reject anonymous requests.

    FastAPI solves dependencies before validating the request body, so an
    anonymous caller gets 401 even when the body is malformed.

    Raises:
        NotAuthenticatedError: If the gateway supplied no user id
    """
    if caller is None:
        raise NotAuthenticatedError("Not authenticated")
    return caller
