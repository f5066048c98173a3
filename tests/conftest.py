"""Shared fixtures for the column mapping tests."""

import json
from typing import List, Optional

import pytest

from core.agents.column_mapping import ColumnMappingAgent
from core.agents.column_mapping.field_catalog import DEFAULT_FIELD_CATALOG
from core.auth import CallerIdentity, NotAuthenticatedError, NotAuthorizedError
from core.database.models import MembershipStatus, Workspace, WorkspaceMember
from core.database.schema import get_session_factory, init_database


class FakeCompletionClient:
    """Completion client returning canned answers and recording prompts."""

    def __init__(self, responses=None, error: Optional[Exception] = None):
        self.responses = responses if responses is not None else {}
        self.error = error
        self.prompts: List[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if callable(self.responses):
            return self.responses(prompt)
        for header, answer in self.responses.items():
            if f'Column name: "{header}"' in prompt:
                return answer if isinstance(answer, str) else json.dumps(answer)
        return json.dumps({"field": "unmapped", "confidence": 0, "reasoning": "no idea"})


class AllowListAuthorizer:
    """Authorizer granting access to a fixed set of (user, workspace) pairs."""

    def __init__(self, allowed=()):
        self.allowed = set(allowed)
        self.calls = []

    def authorize(self, caller, workspace_id):
        self.calls.append((caller, workspace_id))
        if caller is None or not caller.is_authenticated:
            raise NotAuthenticatedError("Not authenticated")
        if (caller.user_id, workspace_id) not in self.allowed:
            raise NotAuthorizedError("Not authorized")


@pytest.fixture
def catalog():
    return DEFAULT_FIELD_CATALOG


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def member():
    return CallerIdentity(user_id="user-1", email="member@example.com")


@pytest.fixture
def authorizer():
    return AllowListAuthorizer({("user-1", "ws-1")})


@pytest.fixture
def agent(authorizer):
    """Heuristics-only agent."""
    return ColumnMappingAgent(authorizer=authorizer)


@pytest.fixture
def session_factory():
    engine = init_database(None)
    factory = get_session_factory(engine)
    session = factory()
    session.add(Workspace(id="ws-1", name="Acme"))
    session.add(Workspace(id="ws-2", name="Globex"))
    session.add(WorkspaceMember(workspace_id="ws-1", user_id="user-1", role="owner"))
    session.add(
        WorkspaceMember(
            workspace_id="ws-2",
            user_id="user-2",
            role="member",
            status=MembershipStatus.INVITED,
        )
    )
    session.commit()
    session.close()
    yield factory
    engine.dispose()
