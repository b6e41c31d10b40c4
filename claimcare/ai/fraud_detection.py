# claimcare/ai/fraud_detection.py
"""Weighted fraud indicators, anomaly score and blacklist screening."""

from datetime import datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from claimcare.ai.signals import (
    FraudSignalProvider, BlacklistService, ClaimHistoryProvider,
    StaticSignalProvider, SetBlacklist, NoHistory
)
from claimcare.core.constants import (
    FraudIndicatorType, FraudSeverity, RiskLevel,
    RISK_LEVEL_MEDIUM, RISK_LEVEL_HIGH, RISK_LEVEL_CRITICAL,
    MANUAL_REVIEW_THRESHOLD, SIU_THRESHOLD, BLACKLIST_MULTIPLIER,
    AVERAGE_CLAIM_AMOUNTS, DEFAULT_AVERAGE_CLAIM_AMOUNT, DEFAULT_POLICY_AGE_DAYS,
    OCRStatus
)
from claimcare.core.logging import get_logger
from claimcare.models.claim import Claim, ClaimHistory, FraudIndicator
from claimcare.models.decisioning import FraudCheck, FraudRiskAssessment

logger = get_logger(__name__)

EARLY_CLAIM_DAYS = 90
DUPLICATE_SIMILARITY_THRESHOLD = 0.8
PATTERN_MATCH_THRESHOLD = 0.9
NETWORK_SCORE_THRESHOLD = 0.8
VELOCITY_CLAIM_LIMIT = 3


class IndicatorDefinition(BaseModel):
    description: str
    weight: float
    severity: FraudSeverity
    recommendation: str


FRAUD_INDICATORS: Dict[FraudIndicatorType, IndicatorDefinition] = {
    FraudIndicatorType.EARLY_CLAIM: IndicatorDefinition(
        description="Claim filed within 90 days of policy start",
        weight=0.3,
        severity=FraudSeverity.MEDIUM,
        recommendation="Verify policy inception date and premium payments"
    ),
    FraudIndicatorType.HIGH_AMOUNT: IndicatorDefinition(
        description="Claim amount exceeds typical range",
        weight=0.25,
        severity=FraudSeverity.MEDIUM,
        recommendation="Validate claim amount against policy coverage"
    ),
    FraudIndicatorType.MULTIPLE_CLAIMS: IndicatorDefinition(
        description="Multiple claims from same beneficiary",
        weight=0.2,
        severity=FraudSeverity.MEDIUM,
        recommendation="Review claim history for this beneficiary"
    ),
    FraudIndicatorType.DOCUMENT_MISMATCH: IndicatorDefinition(
        description="OCR detected document inconsistencies",
        weight=0.35,
        severity=FraudSeverity.HIGH,
        recommendation="Request original documents for manual verification"
    ),
    FraudIndicatorType.SUSPICIOUS_PATTERN: IndicatorDefinition(
        description="Matches known fraud patterns",
        weight=0.4,
        severity=FraudSeverity.HIGH,
        recommendation="Compare claim against known fraud case patterns"
    ),
    FraudIndicatorType.VELOCITY: IndicatorDefinition(
        description="Too many claims within 30 days",
        weight=0.2,
        severity=FraudSeverity.MEDIUM,
        recommendation="Check for claim splitting across recent submissions"
    ),
    FraudIndicatorType.NETWORK_CONNECTION: IndicatorDefinition(
        description="Beneficiary linked to a suspicious claimant network",
        weight=0.3,
        severity=FraudSeverity.HIGH,
        recommendation="Map relationships between linked claimants and agents"
    ),
}


def get_risk_level(score: float) -> RiskLevel:
    if score < RISK_LEVEL_MEDIUM:
        return RiskLevel.LOW
    if score < RISK_LEVEL_HIGH:
        return RiskLevel.MEDIUM
    if score < RISK_LEVEL_CRITICAL:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def policy_start_datetime(claim: Claim) -> datetime:
    """Policy start, or a mature default when the start date is unknown."""
    if claim.policy_terms and claim.policy_terms.start_date:
        return datetime.combine(claim.policy_terms.start_date, time())
    return claim.created_at - timedelta(days=DEFAULT_POLICY_AGE_DAYS)


def policy_age_days(claim: Claim) -> float:
    """Days between policy start and claim creation."""
    return (claim.created_at - policy_start_datetime(claim)).total_seconds() / 86400


def calculate_risk_score(checks: List[FraudCheck]) -> float:
    total_weight = sum(c.weight for c in checks)
    if total_weight <= 0:
        return 0.0
    detected_weight = sum(c.weight for c in checks if c.detected)
    return max(0.0, min(detected_weight / total_weight, 1.0))


class FraudDetector:
    """Scores a claim against the weighted indicator table."""

    def __init__(
        self,
        signals: Optional[FraudSignalProvider] = None,
        blacklist: Optional[BlacklistService] = None,
        history: Optional[ClaimHistoryProvider] = None
    ):
        self.signals = signals or StaticSignalProvider()
        self.blacklist = blacklist or SetBlacklist()
        self.history = history or NoHistory()

    def _run_checks(self, claim: Claim, history: ClaimHistory) -> Dict[FraudIndicatorType, Tuple[bool, float]]:
        """Detection flag and confidence per indicator."""
        average = AVERAGE_CLAIM_AMOUNTS.get(claim.claim_type.value, DEFAULT_AVERAGE_CLAIM_AMOUNT)
        duplicate = self.signals.duplicate_similarity(claim)
        pattern = self.signals.pattern_match_score(claim)
        network = self.signals.network_score(claim)

        checks: Dict[FraudIndicatorType, Tuple[bool, float]] = {
            FraudIndicatorType.EARLY_CLAIM: (policy_age_days(claim) < EARLY_CLAIM_DAYS, 0.9),
            FraudIndicatorType.HIGH_AMOUNT: (claim.benefit_amount > average * 2, 0.9),
            FraudIndicatorType.MULTIPLE_CLAIMS: (
                history.beneficiary_claims > 1 or duplicate > DUPLICATE_SIMILARITY_THRESHOLD,
                1.0 if history.beneficiary_claims > 1 else duplicate
            ),
            FraudIndicatorType.DOCUMENT_MISMATCH: (
                any(d.ocr_status == OCRStatus.MISMATCH for d in claim.documents), 0.85
            ),
            FraudIndicatorType.SUSPICIOUS_PATTERN: (pattern > PATTERN_MATCH_THRESHOLD, pattern),
            FraudIndicatorType.VELOCITY: (history.recent_claims > VELOCITY_CLAIM_LIMIT, 0.9),
            FraudIndicatorType.NETWORK_CONNECTION: (network > NETWORK_SCORE_THRESHOLD, network),
        }
        return checks

    @staticmethod
    def _recommendations(checks: List[FraudCheck], level: RiskLevel) -> List[str]:
        recommendations: List[str] = []
        if level in (RiskLevel.HIGH, RiskLevel.CRITICAL):
            recommendations.append("Require senior management approval")
            recommendations.append("Conduct detailed investigation")

        for check in checks:
            if check.detected:
                definition = FRAUD_INDICATORS[FraudIndicatorType(check.indicator_type)]
                recommendations.append(definition.recommendation)
        return recommendations

    def assess_fraud_risk(self, claim: Claim) -> FraudRiskAssessment:
        history = self.history.history_for(claim)
        results = self._run_checks(claim, history)

        checks: List[FraudCheck] = []
        indicators: List[FraudIndicator] = []
        for indicator_type, definition in FRAUD_INDICATORS.items():
            detected, confidence = results[indicator_type]
            checks.append(FraudCheck(
                indicator_type=indicator_type.value,
                description=definition.description,
                weight=definition.weight,
                detected=detected
            ))
            if detected:
                indicators.append(FraudIndicator(
                    indicator_type=indicator_type.value,
                    severity=definition.severity,
                    description=definition.description,
                    confidence=max(0.0, min(confidence, 1.0))
                ))

        risk_score = calculate_risk_score(checks)
        anomaly_score = max(0.0, min(self.signals.anomaly_score(claim), 1.0))
        blacklist_match = self.blacklist.is_blacklisted(claim.beneficiary.nik)

        combined = risk_score * 0.7 + anomaly_score * 0.3
        if blacklist_match:
            combined *= BLACKLIST_MULTIPLIER
        combined = min(combined, 1.0)

        level = get_risk_level(combined)
        assessment = FraudRiskAssessment(
            risk_score=risk_score,
            combined_score=combined,
            risk_level=level,
            indicators=checks,
            fraud_indicators=indicators,
            recommendations=self._recommendations(checks, level),
            requires_manual_review=combined > MANUAL_REVIEW_THRESHOLD,
            requires_siu=combined >= SIU_THRESHOLD or blacklist_match,
            anomaly_score=anomaly_score,
            blacklist_match=blacklist_match
        )

        if assessment.requires_siu:
            logger.warning(
                "Claim requires SIU referral",
                claim_id=claim.claim_id, combined=round(combined, 3), blacklist=blacklist_match
            )
        return assessment
