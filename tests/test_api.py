import pytest
from fastapi.testclient import TestClient

from claimcare.core import dependencies
from claimcare.main import app
from claimcare.services.rule_engine import RuleEngine
from claimcare.services.sla_monitor import SLAMonitor
from claimcare.ai.risk_scoring import RiskScorer
from claimcare.workflows.claim_decisioning import ClaimDecisionService
from claimcare.workflows.claim_pipeline import ClaimPipeline

from conftest import BENEFICIARY_NIK, LIFE_DOCUMENTS, POLICY_ID

CLAIMS = "/api/v1/claims"
APPROVALS = "/api/v1/approvals"


@pytest.fixture
def client(claim_store, policy_store, fraud_detector, approval_manager):
    rule_engine = RuleEngine()
    risk_scorer = RiskScorer(fraud_detector)
    sla_monitor = SLAMonitor()
    pipeline = ClaimPipeline(
        claim_store=claim_store,
        policy_store=policy_store,
        rule_engine=rule_engine,
        fraud_detector=fraud_detector,
        risk_scorer=risk_scorer,
        sla_monitor=sla_monitor,
    )
    decision_service = ClaimDecisionService(claim_store=claim_store, approval_manager=approval_manager)

    overrides = {
        dependencies.get_claim_store: lambda: claim_store,
        dependencies.get_policy_store: lambda: policy_store,
        dependencies.get_fraud_detector: lambda: fraud_detector,
        dependencies.get_risk_scorer: lambda: risk_scorer,
        dependencies.get_rule_engine: lambda: rule_engine,
        dependencies.get_approval_manager: lambda: approval_manager,
        dependencies.get_sla_monitor: lambda: sla_monitor,
        dependencies.get_claim_pipeline: lambda: pipeline,
        dependencies.get_decision_service: lambda: decision_service,
    }
    app.dependency_overrides.update(overrides)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    dependencies.reset_dependencies()


def _submit(client, **overrides) -> dict:
    payload = {
        "policy_id": POLICY_ID,
        "claim_type": "Life",
        "channel": "WhatsApp",
        "beneficiary": {"name": "Siti Rahma", "nik": BENEFICIARY_NIK},
        "claimed_amount": 30000000,
        "documents": [{"document_type": t.value, "ocr_status": "Matched"} for t in LIFE_DOCUMENTS],
    }
    payload.update(overrides)
    response = client.post(f"{CLAIMS}/", json=payload)
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_submit_and_fetch_claim(client):
    claim = _submit(client)

    assert claim["claim_id"].startswith("CLM-")
    assert claim["stage"] == "Intake"

    response = client.get(f"{CLAIMS}/{claim['claim_id']}")
    assert response.status_code == 200
    assert response.json()["beneficiary"]["nik"] == BENEFICIARY_NIK

    listing = client.get(f"{CLAIMS}/", params={"claim_type": "Life"}).json()
    assert listing["total"] == 1
    assert listing["claims"][0]["claim_id"] == claim["claim_id"]


def test_unknown_claim_is_404(client):
    response = client.get(f"{CLAIMS}/CLM-2025-404404")

    assert response.status_code == 404
    assert response.json()["error_code"] == "CLAIM_NOT_FOUND"


def test_invalid_stage_transition_is_409(client):
    claim = _submit(client)

    response = client.patch(f"{CLAIMS}/{claim['claim_id']}/stage", json={"stage": "Payment"})

    assert response.status_code == 409
    assert response.json()["error_code"] == "INVALID_STAGE_TRANSITION"


def test_invalid_claim_type_is_422(client):
    response = client.post(f"{CLAIMS}/", json={
        "policy_id": POLICY_ID,
        "claim_type": "Marine",
        "beneficiary": {"nik": BENEFICIARY_NIK},
    })

    assert response.status_code == 422


def test_evaluate_claim(client):
    claim = _submit(client)

    response = client.post(f"{CLAIMS}/{claim['claim_id']}/evaluate")

    assert response.status_code == 200
    body = response.json()
    assert body["final_recommendation"] == "auto_approve"
    assert body["approval_tier"] == "low"
    assert len(body["steps"]) == 7

    stored = client.get(f"{CLAIMS}/{claim['claim_id']}").json()
    assert stored["ai_analysis"]["recommended_action"] == "auto_approve"


def test_approval_workflow_and_letter(client):
    claim_id = _submit(client)["claim_id"]

    first = client.post(f"{APPROVALS}/{claim_id}/actions", json={
        "user_id": "adj-1", "user_role": "L1_Adjuster", "action": "approve",
    })
    assert first.status_code == 200
    assert first.json()["decision_status"] is None

    repeat = client.post(f"{APPROVALS}/{claim_id}/actions", json={
        "user_id": "adj-1", "user_role": "L1_Adjuster", "action": "approve",
    })
    assert repeat.status_code == 409
    assert repeat.json()["error_code"] == "DUPLICATE_APPROVAL_ACTION"

    assert client.get(f"{APPROVALS}/{claim_id}/letter").status_code == 422

    second = client.post(f"{APPROVALS}/{claim_id}/actions", json={
        "user_id": "sup-1", "user_role": "L2_Supervisor", "action": "approve",
    })
    assert second.json()["decision_status"] == "Approved"

    stored = client.get(f"{CLAIMS}/{claim_id}").json()
    assert stored["stage"] == "Payment"

    letter = client.get(f"{APPROVALS}/{claim_id}/letter").json()["letter"]
    assert "DECISION: APPROVED" in letter
    assert "APPROVED AMOUNT: IDR 30,000,000" in letter


def test_role_outside_tier_is_403(client):
    claim_id = _submit(client)["claim_id"]

    response = client.post(f"{APPROVALS}/{claim_id}/actions", json={
        "user_id": "head-1", "user_role": "Head", "action": "approve",
    })

    assert response.status_code == 403


def test_sla_endpoints(client):
    claim_id = _submit(client)["claim_id"]

    status = client.get(f"/api/v1/sla/claims/{claim_id}").json()
    assert status["status"] == "green"
    assert status["target_time"] == 6

    report = client.get("/api/v1/sla/ojk-report").json()
    assert report["summary"]["total_claims"] == 1
    assert report["summary"]["on_time_claims"] == 1

    assert client.get("/api/v1/sla/breaches").json() == []


def test_decision_views(client):
    claim_id = _submit(client)["claim_id"]

    checklist = client.get("/api/v1/decisions/checklist/Life").json()
    assert {item["document_type"] for item in checklist} >= {t.value for t in LIFE_DOCUMENTS}

    completeness = client.get(f"/api/v1/decisions/{claim_id}/completeness").json()
    assert completeness["complete"]

    rules = client.get(f"/api/v1/decisions/{claim_id}/rules").json()
    assert rules["recommendation"]["action"] in ("approve", "review")

    fraud = client.get(f"/api/v1/decisions/{claim_id}/fraud").json()
    assert fraud["fraud_indicators"] == []

    assert client.get("/api/v1/decisions/CLM-2025-404404/risk").status_code == 404


def test_policy_registration_and_lookup(client):
    body = {
        "policy_id": "ignored",
        "status": "Lapsed",
        "product": "Accident",
        "holder_name": "Dewi Lestari",
        "holder_nik": "3174000000000001",
        "start_date": "2023-01-15",
        "beneficiaries": [{"name": "Dewi Lestari", "nik": "3174000000000001"}],
    }

    registered = client.put("/api/v1/policies/POL-2023-000042", json=body)
    assert registered.status_code == 200
    assert registered.json()["policy_id"] == "POL-2023-000042"

    listing = client.get("/api/v1/policies/", params={"active_only": True}).json()
    assert [p["policy_id"] for p in listing["policies"]] == [POLICY_ID]

    missing = client.get("/api/v1/policies/POL-0000-000000")
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "POLICY_NOT_FOUND"


def test_lapsed_policy_is_flagged_on_evaluation(client):
    client.put(f"/api/v1/policies/{POLICY_ID}", json={
        "policy_id": POLICY_ID,
        "status": "Lapsed",
        "product": "Life",
        "holder_name": "Budi Santoso",
        "holder_nik": "3217050801900001",
        "start_date": "2020-01-01",
        "beneficiaries": [{"name": "Siti Rahma", "nik": BENEFICIARY_NIK}],
    })
    claim_id = _submit(client)["claim_id"]

    body = client.post(f"{CLAIMS}/{claim_id}/evaluate").json()

    assert body["policy_check"]["passed"] is False
    assert "Policy status: Lapsed" in body["red_flags"]
    assert body["final_recommendation"] != "auto_approve"

    claims = client.get(f"/api/v1/policies/{POLICY_ID}/claims").json()
    assert [c["claim_id"] for c in claims] == [claim_id]


def test_action_on_decided_claim_is_409(client):
    claim_id = _submit(client)["claim_id"]
    client.post(f"{APPROVALS}/{claim_id}/actions", json={
        "user_id": "adj-1", "user_role": "L1_Adjuster", "action": "reject", "comments": "Forged documents",
    })

    response = client.post(f"{APPROVALS}/{claim_id}/actions", json={
        "user_id": "sup-1", "user_role": "L2_Supervisor", "action": "approve",
    })

    assert response.status_code == 409
    assert response.json()["error_code"] == "CLAIM_ALREADY_DECIDED"
    assert client.get(f"{CLAIMS}/{claim_id}").json()["decision"]["status"] == "Denied"
