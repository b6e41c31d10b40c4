import math
from datetime import timedelta

from claimcare.core.constants import ClaimStage, ClaimType, DocumentType, FraudSeverity, SLAColor
from claimcare.models.claim import FraudIndicator
from claimcare.services.sla_monitor import SLAMonitor, calculate_breach_risk, get_sla_config

from conftest import fixed_clock, hours_ago, make_claim, make_documents

ACCIDENT_DOCUMENTS = [
    DocumentType.CLAIM_FORM,
    DocumentType.POLIS,
    DocumentType.ID_TERTANGGUNG,
    DocumentType.MEDICAL_RECEIPT,
    DocumentType.MEDICAL_RESUME,
]


def _monitor() -> SLAMonitor:
    return SLAMonitor(clock=fixed_clock())


def _claim(hours: float, stage: ClaimStage = ClaimStage.INTAKE, **overrides):
    return make_claim(created_at=hours_ago(hours), stage=stage, **overrides)


# ===================
# Status
# ===================

def test_fresh_claim_is_green():
    status = _monitor().calculate_sla_status(_claim(1))

    assert status.status == SLAColor.GREEN
    assert status.target_time == 6
    assert abs(status.time_remaining - 5) < 1e-9


def test_past_warning_threshold_is_amber():
    assert _monitor().calculate_sla_status(_claim(5)).status == SLAColor.AMBER


def test_life_decision_past_target_is_red():
    status = _monitor().calculate_sla_status(_claim(130, ClaimStage.DECISION))

    assert status.status == SLAColor.RED
    assert status.target_time == 120
    assert status.time_remaining == 0
    assert "Immediate escalation required - SLA breached or critical" in status.recommendations


def test_red_when_no_time_remains():
    config = get_sla_config(ClaimType.ACCIDENT.value, ClaimStage.PAYMENT.value)
    assert config.target_hours == 24

    status = _monitor().calculate_sla_status(
        _claim(24, ClaimStage.PAYMENT, claim_type=ClaimType.ACCIDENT)
    )
    assert status.status == SLAColor.RED


def test_unknown_stage_uses_first_row():
    status = _monitor().calculate_sla_status(_claim(1, ClaimStage.CLOSED))

    assert status.target_time == 6


def test_unknown_claim_type_uses_life_table():
    assert get_sla_config("Marine", "Decision").target_hours == 120


def test_breach_risk_is_logistic():
    near_certain = calculate_breach_risk(130, 120, "Life", "Decision", 6)
    assert abs(near_certain - 1 / (1 + math.exp(-5))) < 1e-9

    untouched = calculate_breach_risk(0, 6, "Life", "Intake", 6)
    assert abs(untouched - 1 / (1 + math.exp(5))) < 1e-9


def test_document_shortfall_raises_breach_risk():
    full = calculate_breach_risk(2, 6, "Accident", "Intake", 5)
    short = calculate_breach_risk(2, 6, "Accident", "Intake", 1)

    assert short > full


def test_predicted_completion_blends_history_and_pace():
    claim = _claim(10)

    status = _monitor().calculate_sla_status(claim)

    # 0.6 * 96h + 0.4 * (2 * 10h)
    assert status.predicted_completion_time == claim.created_at + timedelta(hours=65.6)


def test_recommendations_for_thin_and_flagged_claims():
    indicator = FraudIndicator(indicator_type="early_claim", severity=FraudSeverity.MEDIUM, description="Early")
    claim = _claim(1, documents=make_documents([DocumentType.POLIS]), fraud_indicators=[indicator])

    recommendations = _monitor().calculate_sla_status(claim).recommendations

    assert recommendations == [
        "Follow up on missing documents to avoid delays",
        "Fraud flags may cause delays - assign to SIU early",
    ]


# ===================
# Rollups
# ===================

def test_predicted_breaches_sorted_by_risk():
    fresh = _claim(0, claim_id="CLM-FRESH")
    amber = _claim(5, claim_id="CLM-AMBER")
    red = _claim(130, ClaimStage.DECISION, claim_id="CLM-RED")

    at_risk = _monitor().predict_sla_breaches([fresh, amber, red])

    assert [c.claim_id for c in at_risk] == ["CLM-RED", "CLM-AMBER"]


def test_ojk_report():
    claims = [
        _claim(1, claim_id="CLM-OK"),
        _claim(130, ClaimStage.DECISION, claim_id="CLM-LIFE-LATE"),
        _claim(
            10, claim_id="CLM-ACC-LATE", claim_type=ClaimType.ACCIDENT,
            documents=make_documents([DocumentType.CLAIM_FORM, DocumentType.POLIS]),
        ),
    ]

    report = _monitor().generate_ojk_report(claims)

    assert report.summary.total_claims == 3
    assert report.summary.on_time_claims == 1
    assert report.summary.delayed_claims == 2
    assert abs(report.summary.average_processing_time - 47) < 1e-9
    assert abs(report.summary.sla_compliance_rate - 100 / 3) < 1e-9

    assert report.by_type["Life"].count == 2
    assert report.by_type["Life"].compliance == 50
    assert report.by_type["Accident"].compliance == 0

    breaches = {b.claim_id: b for b in report.breaches}
    assert breaches["CLM-LIFE-LATE"].reason == "Complex medical review"
    assert abs(breaches["CLM-LIFE-LATE"].delay_hours - 10) < 1e-9
    assert breaches["CLM-ACC-LATE"].reason == "Incomplete documentation"
    assert abs(breaches["CLM-ACC-LATE"].delay_hours - 6) < 1e-9


def test_delay_reasons_for_accident_claims():
    indicator = FraudIndicator(indicator_type="velocity", severity=FraudSeverity.MEDIUM, description="Velocity")
    documents = make_documents(ACCIDENT_DOCUMENTS)
    claims = [
        _claim(10, claim_id="CLM-FRAUD", claim_type=ClaimType.ACCIDENT, documents=documents, fraud_indicators=[indicator]),
        _claim(10, claim_id="CLM-UNASSIGNED", claim_type=ClaimType.ACCIDENT, documents=documents),
        _claim(10, claim_id="CLM-SLOW", claim_type=ClaimType.ACCIDENT, documents=documents, assignee="adjuster-7"),
    ]

    reasons = {b.claim_id: b.reason for b in _monitor().generate_ojk_report(claims).breaches}

    assert reasons == {
        "CLM-FRAUD": "Fraud investigation required",
        "CLM-UNASSIGNED": "Pending assignment",
        "CLM-SLOW": "Processing delays",
    }


def test_ojk_report_on_no_claims():
    report = _monitor().generate_ojk_report([])

    assert report.summary.total_claims == 0
    assert report.summary.average_processing_time == 0
    assert report.summary.sla_compliance_rate == 0
    assert report.by_type == {}
    assert report.breaches == []


def test_sla_metrics():
    claims = [
        _claim(1, claim_id="A"),
        _claim(5, claim_id="B"),
        _claim(10, claim_id="C"),
        _claim(30, ClaimStage.ANALYSIS, claim_id="D"),
    ]

    metrics = _monitor().calculate_sla_metrics(claims)

    assert abs(metrics.intake.average - 16 / 3) < 1e-9
    assert metrics.intake.p95 == 10
    assert abs(metrics.intake.compliance - 200 / 3) < 1e-9
    assert metrics.validation.average == 0
    assert metrics.validation.p95 == 0
    assert metrics.validation.compliance == 100
    assert abs(metrics.overall.average - 16 / 3) < 1e-9
    assert metrics.overall.p95 == 0
    assert metrics.overall.compliance == 0


def test_sla_metrics_on_no_claims():
    metrics = _monitor().calculate_sla_metrics([])

    assert metrics.decision.compliance == 100
    assert metrics.overall.average == 0
