"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from onboarding_engine.domain.exceptions import ComplianceServiceError

pytestmark = pytest.mark.integration

HIGH_RISK_DATA = {
    "source_of_funds": {"primary_source": "inheritance", "expected_investment": "100000+"},
}


def start(client: TestClient) -> dict:
    response = client.post("/v1/sessions")
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/risk/assess", json={})
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "onboarding_risk_assessment_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_oversized_request_id_is_replaced(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "x" * 500})
    assert len(response.headers["X-Request-ID"]) == 36


def test_request_duration_uses_route_template(client: TestClient):
    session_id = start(client)["session_id"]
    client.get(f"/v1/sessions/{session_id}")

    metrics = client.get("/metrics").text
    assert 'endpoint="/v1/sessions/{session_id}"' in metrics
    assert session_id not in metrics


def test_start_session(client: TestClient):
    state = start(client)

    assert state["current_step"] == "account_type"
    assert state["progress"] == 0
    assert state["data"] == {}
    assert state["risk_assessment"]["risk_level"] == "low"
    assert state["customer_id"] is None
    assert state["is_loading"] is False
    assert "enhanced_due_diligence" not in [s["step"] for s in state["steps"]]


def test_unknown_session_returns_404(client: TestClient):
    assert client.get("/v1/sessions/does-not-exist").status_code == 404
    assert client.post("/v1/sessions/does-not-exist/next").status_code == 404


def test_business_account_type_changes_sequence(client: TestClient):
    session_id = start(client)["session_id"]

    response = client.put(f"/v1/sessions/{session_id}/account-type", json={"account_type": "business"})

    assert response.status_code == 200
    steps = [s["step"] for s in response.json()["steps"]]
    assert steps[:2] == ["account_type", "business_data"]
    assert response.json()["account_type"] == "business"


def test_update_data_inserts_edd_step(client: TestClient):
    session_id = start(client)["session_id"]

    response = client.patch(f"/v1/sessions/{session_id}/data", json=HIGH_RISK_DATA)

    assert response.status_code == 200
    state = response.json()
    steps = [s["step"] for s in state["steps"]]
    assert steps[steps.index("bank_account") + 1] == "enhanced_due_diligence"
    assert state["risk_assessment"]["overall_score"] == 50
    assert state["risk_assessment"]["risk_level"] == "high"
    assert state["risk_assessment"]["auto_approved"] is False
    assert state["data"]["source_of_funds"]["primary_source"] == "inheritance"


def test_account_type_in_data_patch_keeps_state_consistent(client: TestClient):
    session_id = start(client)["session_id"]

    state = client.patch(f"/v1/sessions/{session_id}/data", json={"account_type": "business"}).json()

    assert state["account_type"] == "business"
    assert state["data"]["account_type"] == "business"
    assert [s["step"] for s in state["steps"]][1] == "business_data"

    response = client.patch(f"/v1/sessions/{session_id}/data", json={"account_type": "trust"})
    assert response.status_code == 422


def test_navigation(client: TestClient):
    session_id = start(client)["session_id"]

    assert client.post(f"/v1/sessions/{session_id}/previous").json()["current_step"] == "account_type"
    assert client.post(f"/v1/sessions/{session_id}/next").json()["current_step"] == "personal_data"

    state = client.post(f"/v1/sessions/{session_id}/goto", json={"step": "review"}).json()
    assert state["current_step"] == "review"
    assert state["progress"] == 100

    assert client.post(f"/v1/sessions/{session_id}/next").json()["current_step"] == "review"


def test_goto_rejects_unknown_step(client: TestClient):
    session_id = start(client)["session_id"]
    response = client.post(f"/v1/sessions/{session_id}/goto", json={"step": "not_a_step"})
    assert response.status_code == 422


def test_submit_completes_session(client: TestClient, gateway: AsyncMock):
    session_id = start(client)["session_id"]
    client.post(f"/v1/sessions/{session_id}/goto", json={"step": "review"})

    response = client.post(f"/v1/sessions/{session_id}/submit")

    assert response.status_code == 200
    state = response.json()
    assert state["current_step"] == "completed"
    assert state["compliance_result"]["status"] == "APPROVED"
    assert state["customer_id"] == "cust_test_0001"
    assert state["submission_state"] == "completed"

    # Second click does not reach the backend again
    client.post(f"/v1/sessions/{session_id}/submit")
    assert gateway.submit_onboarding.await_count == 1


def test_submit_failure_returns_503_and_allows_retry(client: TestClient, gateway: AsyncMock, approved_result):
    gateway.submit_onboarding.side_effect = [ComplianceServiceError("down"), approved_result]
    session_id = start(client)["session_id"]
    client.post(f"/v1/sessions/{session_id}/goto", json={"step": "review"})

    response = client.post(f"/v1/sessions/{session_id}/submit")
    assert response.status_code == 503

    state = client.get(f"/v1/sessions/{session_id}").json()
    assert state["current_step"] == "review"
    assert state["compliance_result"] is None
    assert state["error"] is not None

    retry = client.post(f"/v1/sessions/{session_id}/submit")
    assert retry.status_code == 200
    assert retry.json()["current_step"] == "completed"


def test_abandon_session(client: TestClient):
    session_id = start(client)["session_id"]

    assert client.delete(f"/v1/sessions/{session_id}").status_code == 204
    assert client.get(f"/v1/sessions/{session_id}").status_code == 404
    assert client.delete(f"/v1/sessions/{session_id}").status_code == 404


def test_stateless_risk_assessment(client: TestClient):
    response = client.post(
        "/v1/risk/assess",
        json={"tax_status": {"is_pep": True}, "source_of_funds": {"primary_source": "salary"}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["overall_score"] == 40
    assert data["risk_level"] == "high"
    assert data["risk_label"] == "High risk"
    assert [f["category"] for f in data["factors"]][0] == "PEP Status"
    assert len(data["factors"]) == 6
