# claimcare/ai/risk_scoring.py
"""Composite risk score blending fraud, document, policy, amount and velocity risk."""

from typing import List, Optional

from claimcare.ai.fraud_detection import FraudDetector, get_risk_level, policy_age_days
from claimcare.ai.signals import ClaimHistoryProvider, NoHistory
from claimcare.core.config import settings
from claimcare.core.constants import (
    AIRecommendation, ClaimType, OCRStatus, RiskLevel,
    RISK_WEIGHTS, TYPICAL_CLAIM_AMOUNTS, DEFAULT_TYPICAL_CLAIM_AMOUNT,
    AUTO_APPROVE_RISK_CEILING, INVESTIGATE_RISK_FLOOR, DENY_RISK_FLOOR
)
from claimcare.core.logging import get_logger
from claimcare.models.base import utcnow
from claimcare.models.claim import Claim, ClaimHistory, AIAnalysis, EligibilityCheck
from claimcare.models.decisioning import (
    FraudRiskAssessment, RiskAssessment, RiskComponents
)
from claimcare.services.document_requirements import check_completeness

logger = get_logger(__name__)


# ===================
# Component Scores
# ===================

def assess_document_risk(claim: Claim) -> float:
    """Incompleteness plus per-document OCR penalties, averaged over uploaded documents."""
    if not claim.documents:
        return 1.0

    completeness = check_completeness(claim.claim_type, claim.uploaded_document_types)
    total_risk = (100 - completeness.percentage) / 100 * 0.5

    for document in claim.documents:
        if document.ocr_status == OCRStatus.MISMATCH:
            total_risk += 0.3
        elif document.ocr_status == OCRStatus.PENDING:
            total_risk += 0.1

    total_risk = total_risk / len(claim.documents)
    return min(total_risk, 1.0)


def assess_policy_risk(claim: Claim, history: ClaimHistory) -> float:
    risk = 0.0

    age = policy_age_days(claim)
    if age < 30:
        risk += 0.5
    elif age < 90:
        risk += 0.3
    elif age < 180:
        risk += 0.1

    if history.prior_policy_claims > 2:
        risk += 0.3
    elif history.prior_policy_claims > 0:
        risk += 0.1

    return min(risk, 1.0)


def assess_amount_risk(claim: Claim) -> float:
    amount = claim.benefit_amount
    risk = 0.0

    if amount > 1_000_000_000:
        risk += 0.5
    elif amount > 500_000_000:
        risk += 0.3
    elif amount > 100_000_000:
        risk += 0.15
    elif amount > 50_000_000:
        risk += 0.05

    typical = TYPICAL_CLAIM_AMOUNTS.get(claim.claim_type.value, DEFAULT_TYPICAL_CLAIM_AMOUNT)
    ratio = amount / typical
    if ratio > 3:
        risk += 0.4
    elif ratio > 2:
        risk += 0.2
    elif ratio > 1.5:
        risk += 0.1

    return min(risk, 1.0)


def assess_velocity_risk(history: ClaimHistory) -> float:
    risk = 0.0

    if history.recent_claims > 3:
        risk += 0.5
    elif history.recent_claims > 1:
        risk += 0.2

    if history.same_day_claims > 1:
        risk += 0.3

    return min(risk, 1.0)


def calculate_overall_risk(components: RiskComponents) -> float:
    """Convex combination of the five components."""
    return min(
        components.fraud_risk * RISK_WEIGHTS["fraud"]
        + components.document_risk * RISK_WEIGHTS["document"]
        + components.policy_risk * RISK_WEIGHTS["policy"]
        + components.amount_risk * RISK_WEIGHTS["amount"]
        + components.velocity_risk * RISK_WEIGHTS["velocity"],
        1.0
    )


# ===================
# Recommendation
# ===================

def generate_ai_recommendation(
    risk_score: float,
    fraud: FraudRiskAssessment,
    amount: float
) -> AIRecommendation:
    if (
        risk_score < AUTO_APPROVE_RISK_CEILING
        and not fraud.blacklist_match
        and not fraud.requires_siu
        and amount < settings.AUTO_APPROVE_MAX_AMOUNT
    ):
        return AIRecommendation.AUTO_APPROVE

    if risk_score >= INVESTIGATE_RISK_FLOOR or fraud.requires_siu or fraud.blacklist_match:
        return AIRecommendation.INVESTIGATE

    if risk_score > DENY_RISK_FLOOR and fraud.blacklist_match:
        return AIRecommendation.DENY

    return AIRecommendation.MANUAL_REVIEW


def calculate_confidence(claim: Claim, document_risk: float) -> float:
    confidence = 1.0

    if not claim.documents:
        confidence -= 0.3

    confidence -= document_risk * 0.2

    if claim.ai_analysis is None:
        confidence -= 0.2

    if claim.claim_type in (ClaimType.CRITICAL_ILLNESS, ClaimType.LIFE):
        confidence -= 0.1

    return max(0.3, confidence)


def generate_insights(
    claim: Claim,
    fraud: FraudRiskAssessment,
    components: RiskComponents
) -> List[str]:
    insights: List[str] = []

    if fraud.risk_score > 0.5:
        insights.append(f"High fraud risk detected ({fraud.risk_score * 100:.0f}%)")

    if fraud.blacklist_match:
        insights.append("Beneficiary found in fraud blacklist")

    if components.document_risk > 0.5:
        insights.append("Document quality or completeness issues detected")

    if components.policy_risk > 0.3:
        age = int(policy_age_days(claim))
        if age < 90:
            insights.append(f"Early claim warning: Policy only {age} days old")

    if components.amount_risk > 0.3:
        insights.append("Claim amount significantly above typical range")

    if components.velocity_risk > 0.3:
        insights.append("Multiple recent claims detected from same source")

    if fraud.risk_score < 0.2 and components.document_risk < 0.2:
        insights.append("Low risk profile - eligible for fast-track processing")

    return insights


_CATEGORY_ACTIONS = {
    RiskLevel.CRITICAL: ["Mandatory SIU investigation required", "Senior management approval required"],
    RiskLevel.HIGH: ["Enhanced due diligence required", "Manager approval required"],
    RiskLevel.MEDIUM: ["Standard review process", "Supervisor approval required"],
    RiskLevel.LOW: ["Eligible for streamlined processing"],
}


def determine_required_actions(
    category: RiskLevel,
    fraud: FraudRiskAssessment,
    document_risk: float
) -> List[str]:
    actions = list(_CATEGORY_ACTIONS[category])

    if fraud.blacklist_match:
        actions.append("Verify beneficiary identity with enhanced KYC")

    if document_risk > 0.5:
        actions.append("Request original documents for verification")

    if fraud.requires_siu:
        actions.append("Assign to SIU team for investigation")

    return actions


# ===================
# Scorer
# ===================

class RiskScorer:
    """Produces a RiskAssessment and AIAnalysis for a claim."""

    def __init__(
        self,
        fraud_detector: Optional[FraudDetector] = None,
        history: Optional[ClaimHistoryProvider] = None
    ):
        self.fraud_detector = fraud_detector or FraudDetector()
        self.history = history or self.fraud_detector.history or NoHistory()

    def calculate_comprehensive_risk_score(
        self,
        claim: Claim,
        fraud_assessment: Optional[FraudRiskAssessment] = None
    ) -> RiskAssessment:
        """
        Blend the five risk components into one score and recommendation.

        Args:
            claim: The claim to score
            fraud_assessment: Reuse an assessment already computed for this claim

        Returns:
            RiskAssessment with components, category, recommendation and insights
        """
        fraud = fraud_assessment or self.fraud_detector.assess_fraud_risk(claim)
        history = self.history.history_for(claim)

        components = RiskComponents(
            fraud_risk=fraud.risk_score,
            document_risk=assess_document_risk(claim),
            policy_risk=assess_policy_risk(claim, history),
            amount_risk=assess_amount_risk(claim),
            velocity_risk=assess_velocity_risk(history)
        )
        overall = calculate_overall_risk(components)
        category = get_risk_level(overall)

        assessment = RiskAssessment(
            overall_risk_score=overall,
            risk_category=category,
            components=components,
            ai_recommendation=generate_ai_recommendation(overall, fraud, claim.benefit_amount),
            confidence_level=calculate_confidence(claim, components.document_risk),
            insights=generate_insights(claim, fraud, components),
            requires_actions=determine_required_actions(category, fraud, components.document_risk)
        )

        logger.info(
            "Risk scored",
            claim_id=claim.claim_id,
            score=round(overall, 3),
            category=category.value,
            recommendation=assessment.ai_recommendation.value
        )
        return assessment

    def generate_ai_analysis(
        self,
        claim: Claim,
        risk: Optional[RiskAssessment] = None
    ) -> AIAnalysis:
        risk = risk or self.calculate_comprehensive_risk_score(claim)
        completeness = check_completeness(claim.claim_type, claim.uploaded_document_types)

        eligible = risk.risk_category in (RiskLevel.LOW, RiskLevel.MEDIUM)
        reasons: List[str] = []
        if not eligible:
            if risk.components.fraud_risk > 0.6:
                reasons.append("High fraud risk detected")
            if risk.components.document_risk > 0.6:
                reasons.append("Document verification issues")
            if risk.components.policy_risk > 0.6:
                reasons.append("Policy validation concerns")

        return AIAnalysis(
            eligibility_check=EligibilityCheck(
                eligible=eligible,
                reasons=["All checks passed"] if eligible else reasons
            ),
            document_completeness=completeness.percentage,
            risk_score=risk.overall_risk_score,
            recommended_action=risk.ai_recommendation,
            insights=risk.insights,
            generated_at=utcnow()
        )
