from datetime import timedelta

from claimcare.ai.fraud_detection import FraudDetector
from claimcare.ai.risk_scoring import (
    RiskScorer, assess_amount_risk, assess_document_risk, assess_policy_risk,
    assess_velocity_risk, calculate_confidence, calculate_overall_risk,
    generate_ai_recommendation
)
from claimcare.ai.signals import SetBlacklist, StaticSignalProvider
from claimcare.core.constants import (
    AIRecommendation, ClaimType, DocumentType, OCRStatus, RISK_WEIGHTS, RiskLevel
)
from claimcare.models.claim import ClaimHistory, PolicyTerms
from claimcare.models.decisioning import RiskComponents

from conftest import (
    BLACKLISTED_NIK, LIFE_DOCUMENTS, NOW, make_claim, make_documents, make_fraud
)


def _scorer(blacklist=()) -> RiskScorer:
    return RiskScorer(FraudDetector(signals=StaticSignalProvider(), blacklist=SetBlacklist(blacklist)))


# ===================
# Components
# ===================

def test_document_risk_is_maximal_without_documents():
    assert assess_document_risk(make_claim(documents=[])) == 1.0


def test_document_risk_averages_penalties_over_document_count():
    documents = make_documents(LIFE_DOCUMENTS)
    documents[0] = documents[0].model_copy(update={"ocr_status": OCRStatus.MISMATCH})

    assert abs(assess_document_risk(make_claim(documents=documents)) - 0.05) < 1e-9


def test_document_risk_includes_incompleteness():
    claim = make_claim(
        claim_type=ClaimType.HEALTH,
        documents=make_documents([DocumentType.CLAIM_FORM, DocumentType.POLIS, DocumentType.ID_TERTANGGUNG]),
    )

    # 50% complete -> 0.25, spread over three documents
    assert abs(assess_document_risk(claim) - 0.25 / 3) < 1e-9


def test_policy_risk_for_young_policy_with_prior_claims():
    claim = make_claim(policy_terms=PolicyTerms(start_date=(NOW - timedelta(days=10)).date()))

    assert assess_policy_risk(claim, ClaimHistory()) == 0.5
    assert abs(assess_policy_risk(claim, ClaimHistory(prior_policy_claims=3)) - 0.8) < 1e-9
    assert assess_policy_risk(make_claim(), ClaimHistory(prior_policy_claims=1)) == 0.1


def test_amount_risk_combines_size_and_typical_ratio():
    assert abs(assess_amount_risk(make_claim(claimed_amount=1_600_000_000)) - 0.9) < 1e-9
    assert abs(assess_amount_risk(make_claim(claim_type=ClaimType.HEALTH, claimed_amount=25_000_000)) - 0.2) < 1e-9
    assert assess_amount_risk(make_claim(claimed_amount=None)) == 0.0


def test_velocity_risk():
    assert abs(assess_velocity_risk(ClaimHistory(recent_claims=4, same_day_claims=2)) - 0.8) < 1e-9
    assert assess_velocity_risk(ClaimHistory(recent_claims=2)) == 0.2
    assert assess_velocity_risk(ClaimHistory()) == 0.0


def test_overall_risk_is_weighted_and_bounded():
    all_max = RiskComponents(fraud_risk=1, document_risk=1, policy_risk=1, amount_risk=1, velocity_risk=1)
    only_fraud = RiskComponents(fraud_risk=1, document_risk=0, policy_risk=0, amount_risk=0, velocity_risk=0)

    assert abs(calculate_overall_risk(all_max) - 1.0) < 1e-9
    assert abs(calculate_overall_risk(only_fraud) - 0.35) < 1e-9


def test_each_component_moves_overall_risk_by_its_weight():
    baseline = dict(fraud_risk=0.2, document_risk=0.2, policy_risk=0.2, amount_risk=0.2, velocity_risk=0.2)
    base_score = calculate_overall_risk(RiskComponents(**baseline))

    for name, weight in RISK_WEIGHTS.items():
        for delta in (0.5, -0.2):
            shifted = dict(baseline, **{f"{name}_risk": baseline[f"{name}_risk"] + delta})

            moved = calculate_overall_risk(RiskComponents(**shifted)) - base_score

            assert abs(moved - weight * delta) < 1e-9, name


def test_confidence_has_a_floor():
    assert calculate_confidence(make_claim(documents=[]), 1.0) == 0.3
    assert abs(calculate_confidence(make_claim(), 0.0) - 0.7) < 1e-9
    assert abs(calculate_confidence(make_claim(claim_type=ClaimType.HEALTH), 0.0) - 0.8) < 1e-9


# ===================
# Recommendation
# ===================

def test_low_risk_small_claim_is_auto_approved():
    assert generate_ai_recommendation(0.2, make_fraud(), 30_000_000) == AIRecommendation.AUTO_APPROVE


def test_large_claim_is_never_auto_approved():
    assert generate_ai_recommendation(0.1, make_fraud(), 60_000_000) == AIRecommendation.MANUAL_REVIEW


def test_blacklist_or_siu_forces_investigation():
    assert generate_ai_recommendation(0.1, make_fraud(blacklist=True), 10_000_000) == AIRecommendation.INVESTIGATE
    assert generate_ai_recommendation(0.1, make_fraud(siu=True), 10_000_000) == AIRecommendation.INVESTIGATE


def test_high_risk_is_investigated_mid_risk_reviewed():
    assert generate_ai_recommendation(0.7, make_fraud(), 10_000_000) == AIRecommendation.INVESTIGATE
    assert generate_ai_recommendation(0.95, make_fraud(), 10_000_000) == AIRecommendation.INVESTIGATE
    assert generate_ai_recommendation(0.5, make_fraud(), 10_000_000) == AIRecommendation.MANUAL_REVIEW


# ===================
# Scorer
# ===================

def test_clean_claim_scores_low():
    risk = _scorer().calculate_comprehensive_risk_score(make_claim())

    assert risk.overall_risk_score == 0.0
    assert risk.risk_category == RiskLevel.LOW
    assert risk.ai_recommendation == AIRecommendation.AUTO_APPROVE
    assert risk.insights == ["Low risk profile - eligible for fast-track processing"]
    assert risk.requires_actions == ["Eligible for streamlined processing"]


def test_blacklisted_claim_is_never_auto_approved():
    claim = make_claim(beneficiary={"name": "Andi", "nik": BLACKLISTED_NIK})

    risk = _scorer(blacklist=[BLACKLISTED_NIK]).calculate_comprehensive_risk_score(claim)

    assert risk.ai_recommendation == AIRecommendation.INVESTIGATE
    assert "Beneficiary found in fraud blacklist" in risk.insights
    assert "Verify beneficiary identity with enhanced KYC" in risk.requires_actions
    assert "Assign to SIU team for investigation" in risk.requires_actions


def test_early_claim_warning_insight():
    claim = make_claim(policy_terms=PolicyTerms(start_date=(NOW - timedelta(days=10)).date()))

    risk = _scorer().calculate_comprehensive_risk_score(claim)

    assert "Early claim warning: Policy only 10 days old" in risk.insights


def test_reuses_supplied_fraud_assessment():
    risk = _scorer().calculate_comprehensive_risk_score(make_claim(), make_fraud(risk=1.0))

    assert risk.components.fraud_risk == 1.0
    assert "High fraud risk detected (100%)" in risk.insights


def test_ai_analysis_for_eligible_claim():
    analysis = _scorer().generate_ai_analysis(make_claim())

    assert analysis.eligibility_check.eligible
    assert analysis.eligibility_check.reasons == ["All checks passed"]
    assert analysis.document_completeness == 100
    assert analysis.recommended_action == AIRecommendation.AUTO_APPROVE


def test_ai_analysis_lists_reasons_when_ineligible():
    claim = make_claim(
        documents=[],
        claimed_amount=1_600_000_000,
        policy_terms=PolicyTerms(start_date=(NOW - timedelta(days=10)).date()),
    )
    scorer = _scorer()
    risk = scorer.calculate_comprehensive_risk_score(claim, make_fraud(risk=1.0))

    analysis = scorer.generate_ai_analysis(claim, risk)

    assert risk.risk_category in (RiskLevel.HIGH, RiskLevel.CRITICAL)
    assert not analysis.eligibility_check.eligible
    assert analysis.eligibility_check.reasons == ["High fraud risk detected", "Document verification issues"]
