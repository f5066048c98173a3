"""Tests for the column mapping HTTP API."""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_column_mapping_agent
from api.main import app
from core.agents.column_mapping import ColumnMappingAgent
from core.agents.column_mapping.classifiers import HeuristicClassifier
from core.auth import DatabaseWorkspaceAuthorizer

MEMBER = {"X-User-Id": "user-1", "X-User-Email": "member@example.com"}
OUTSIDER = {"X-User-Id": "user-9", "X-User-Email": "outsider@example.com"}
ADMIN = {"X-User-Id": "admin", "X-User-Email": "Admin@Example.com"}

BODY = {
    "headers": ["Customer Name", "contact", "week"],
    "sampleRows": [["Acme", "alice@acme.com", "202501"], ["Globex", "bob@globex.com", 202502]],
    "workspaceId": "ws-1",
}


class ExplodingClassifier(HeuristicClassifier):
    def propose(self, column, catalog):
        raise RuntimeError("unexpected")


@pytest.fixture
def make_client(session_factory):
    def _make(**agent_kwargs):
        authorizer = DatabaseWorkspaceAuthorizer(session_factory, super_admin_emails=["admin@example.com"])
        agent = ColumnMappingAgent(authorizer=authorizer, **agent_kwargs)
        app.dependency_overrides[get_column_mapping_agent] = lambda: agent
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").status_code == 200


def test_list_fields(client):
    response = client.get("/api/v1/fields")
    assert response.status_code == 200
    names = [f["name"] for f in response.json()]
    assert names[0] == "customer_name"
    assert "renewal_date" in names


def test_map_columns(client):
    response = client.post("/api/v1/ai/map-columns", json=BODY, headers=MEMBER)
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert [s["original_column"] for s in payload["suggestions"]] == BODY["headers"]
    assert [s["suggested_field"] for s in payload["suggestions"]] == [
        "customer_name",
        "customer_email",
        "last_activity",
    ]
    for suggestion in payload["suggestions"]:
        assert set(suggestion) == {"original_column", "suggested_field", "confidence", "reasoning"}


def test_map_columns_accepts_snake_case_fields(client):
    body = {"headers": ["mrr"], "sample_rows": [], "workspace_id": "ws-1"}
    response = client.post("/api/v1/ai/map-columns", json=body, headers=MEMBER)
    assert response.status_code == 200
    assert response.json()["suggestions"][0]["suggested_field"] == "mrr"


def test_sample_rows_optional(client):
    body = {"headers": ["mrr"], "workspaceId": "ws-1"}
    assert client.post("/api/v1/ai/map-columns", json=body, headers=MEMBER).status_code == 200


def test_super_admin_allowed_anywhere(client):
    body = dict(BODY, workspaceId="ws-2")
    assert client.post("/api/v1/ai/map-columns", json=body, headers=ADMIN).status_code == 200


def test_missing_identity_is_401(client):
    response = client.post("/api/v1/ai/map-columns", json=BODY)
    assert response.status_code == 401
    assert "error" in response.json()


def test_non_member_is_403(client):
    response = client.post("/api/v1/ai/map-columns", json=BODY, headers=OUTSIDER)
    assert response.status_code == 403
    assert "suggestions" not in response.json()


def test_empty_headers_is_400(client):
    body = dict(BODY, headers=[])
    response = client.post("/api/v1/ai/map-columns", json=body, headers=MEMBER)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid column mapping request"


@pytest.mark.parametrize(
    "body",
    [
        {"headers": ["a"]},
        {"headers": "a", "workspaceId": "ws-1"},
        {"headers": ["a"], "workspaceId": "ws 1; drop"},
    ],
)
def test_malformed_body_is_422(client, body):
    response = client.post("/api/v1/ai/map-columns", json=body, headers=MEMBER)
    assert response.status_code == 422
    assert response.json()["error"] == "Invalid request body"


def test_classification_failure_is_500(make_client):
    client = make_client(classifiers=[ExplodingClassifier()])
    response = client.post("/api/v1/ai/map-columns", json=BODY, headers=MEMBER)
    assert response.status_code == 500
    assert response.json()["error"] == "Column mapping analysis failed"
    assert "unexpected" in response.json()["details"]


@pytest.mark.parametrize("body", [{"headers": ["a"]}, {"headers": "a"}, {}])
def test_anonymous_caller_rejected_before_body_validation(client, body):
    response = client.post("/api/v1/ai/map-columns", json=body)
    assert response.status_code == 401
    assert "details" not in response.json()
