"""Tests for the HTTP surface."""

import uuid

import pytest
from fastapi.testclient import TestClient

from workflow_engine.config import EngineSettings
from workflow_engine.main import app, create_app


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def workflow_id() -> str:
    # Routes share one checkpoint store; keep every test in its own workflow.
    return f"wf-{uuid.uuid4().hex[:8]}"


def test_health_reports_workflows_and_storage(client: TestClient) -> None:
    health = client.get("/health").json()

    assert health["status"] == "healthy"
    assert "code_review" in health["workflows"]
    assert health["checkpoint_storage"] == "InMemoryCheckpointStorage"


def test_cors_origins_come_from_settings() -> None:
    settings = EngineSettings(_env_file=None, cors_origins="http://localhost:5173, https://flows.example")
    client = TestClient(create_app(settings))

    response = client.get("/health", headers={"Origin": "https://flows.example"})
    assert response.headers["access-control-allow-origin"] == "https://flows.example"

    response = client.get("/health", headers={"Origin": "https://elsewhere.example"})
    assert "access-control-allow-origin" not in response.headers


def test_list_workflows(client: TestClient) -> None:
    workflows = client.get("/api/v1/workflows").json()["workflows"]
    review = next(w for w in workflows if w["name"] == "code_review")

    assert review["entry_point"] == "extract_functions"
    assert review["node_count"] == 6
    assert review["edge_count"] == 5


def test_run_unknown_workflow_is_404(client: TestClient) -> None:
    response = client.post("/api/v1/workflows/missing/run", json={"initial_state": {}})
    assert response.status_code == 404


def test_run_with_invalid_budget_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/api/v1/workflows/code_review/run", json={"initial_state": {"code": ""}, "max_steps": 0}
    )
    assert response.status_code == 422


def test_partial_run_then_resume(client: TestClient) -> None:
    first = client.post(
        "/api/v1/workflows/code_review/run",
        json={"initial_state": {"code": "def f():\n    return 1\n"}, "max_steps": 1},
    ).json()

    assert first["status"] == "partial"
    assert first["executed_nodes"] == ["extract_functions"]
    assert first["next_node"] == "check_complexity"

    second = client.post(
        "/api/v1/workflows/code_review/run",
        json={"initial_state": first["final_state"], "resume_from": first["next_node"]},
    ).json()

    assert second["status"] == "completed"
    assert second["executed_nodes"][0] == "check_complexity"
    assert second["final_state"]["review_status"] in {"approved", "changes_requested"}


def test_resume_from_unknown_node_is_404(client: TestClient) -> None:
    response = client.post(
        "/api/v1/workflows/code_review/run",
        json={"initial_state": {}, "resume_from": "nowhere"},
    )
    assert response.status_code == 404


def test_failed_run_is_reported_in_body(client: TestClient) -> None:
    response = client.post(
        "/api/v1/workflows/code_review/run", json={"initial_state": {"code": "def broken(:\n"}}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failed"
    assert body["failed_node"] == "extract_functions"
    assert body["error"]


def test_demo_code_review_with_checkpoints(client: TestClient, workflow_id: str) -> None:
    demo = client.post("/api/v1/demo/code-review", json={"workflow_id": workflow_id}).json()

    assert demo["status"] == "completed"
    assert demo["results"]["quality_score"] is not None
    assert demo["execution_log"][0]["node"] == "extract_functions"

    listed = client.get(f"/api/v1/checkpoints/{workflow_id}").json()
    assert len(listed) == len(demo["executed_nodes"])
    assert listed[0]["current_node"] == demo["executed_nodes"][-1]

    latest = client.get(f"/api/v1/checkpoints/{workflow_id}/latest").json()
    assert latest["id"] == listed[0]["id"]

    fetched = client.get(f"/api/v1/checkpoint/{latest['id']}").json()
    assert fetched["state"]["review_status"] == demo["results"]["review_status"]

    assert client.delete(f"/api/v1/checkpoint/{latest['id']}").status_code == 200
    assert client.get(f"/api/v1/checkpoint/{latest['id']}").status_code == 404

    assert client.delete(f"/api/v1/checkpoints/{workflow_id}").status_code == 200
    assert client.get(f"/api/v1/checkpoints/{workflow_id}").json() == []
    assert client.get(f"/api/v1/checkpoints/{workflow_id}/latest").status_code == 404


def test_demo_code_review_without_body(client: TestClient) -> None:
    demo = client.post("/api/v1/demo/code-review").json()

    assert demo["status"] == "completed"
    assert demo["results"]["function_count"] == 2
