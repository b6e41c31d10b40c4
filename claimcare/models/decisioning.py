# claimcare/models/decisioning.py
"""Results produced by the completeness checker, rule engine and risk scoring."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from claimcare.core.constants import (
    DocumentType, RiskLevel, AIRecommendation, ApprovalTier
)
from claimcare.models.base import utcnow
from claimcare.models.claim import FraudIndicator, AIAnalysis

# ===================
# Documents
# ===================

class CompletenessResult(BaseModel):
    complete: bool
    missing: List[DocumentType] = Field(default_factory=list)
    percentage: int = Field(ge=0, le=100, default=0)

# ===================
# Rules
# ===================

class RuleResult(BaseModel):
    """Outcome of evaluating one rule against a claim."""
    rule_id: str
    rule_name: str
    passed: bool
    action: str  # RuleAction value when passed, "none" otherwise
    message: str


class RuleRecommendation(BaseModel):
    action: str  # approve, deny, review
    confidence: float = Field(ge=0, le=1)
    reasons: List[str] = Field(default_factory=list)

# ===================
# Fraud
# ===================

class FraudCheck(BaseModel):
    """One weighted fraud indicator check."""
    indicator_type: str
    description: str
    weight: float
    detected: bool


class FraudRiskAssessment(BaseModel):
    risk_score: float = Field(ge=0, le=1)
    combined_score: float = Field(ge=0, le=1)
    risk_level: RiskLevel
    indicators: List[FraudCheck] = Field(default_factory=list)
    fraud_indicators: List[FraudIndicator] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    requires_manual_review: bool = False
    requires_siu: bool = False
    anomaly_score: float = Field(ge=0, le=1, default=0.0)
    blacklist_match: bool = False

# ===================
# Composite Risk
# ===================

class RiskComponents(BaseModel):
    fraud_risk: float = Field(ge=0, le=1)
    document_risk: float = Field(ge=0, le=1)
    policy_risk: float = Field(ge=0, le=1)
    amount_risk: float = Field(ge=0, le=1)
    velocity_risk: float = Field(ge=0, le=1)


class RiskAssessment(BaseModel):
    overall_risk_score: float = Field(ge=0, le=1)
    risk_category: RiskLevel
    components: RiskComponents
    ai_recommendation: AIRecommendation
    confidence_level: float = Field(ge=0, le=1)
    insights: List[str] = Field(default_factory=list)
    requires_actions: List[str] = Field(default_factory=list)

# ===================
# Pipeline
# ===================

class PolicyCheck(BaseModel):
    passed: bool
    message: str
    beneficiary_match_score: Optional[float] = None


class EvaluationStep(BaseModel):
    """Single step in the evaluation pipeline."""
    step_name: str
    status: str  # passed, failed, warning
    details: str = ""
    timestamp: datetime = Field(default_factory=utcnow)


class ClaimEvaluation(BaseModel):
    """Everything one pipeline run decided about a claim."""
    claim_id: str
    steps: List[EvaluationStep] = Field(default_factory=list)
    policy_check: PolicyCheck
    completeness: CompletenessResult
    rule_results: List[RuleResult] = Field(default_factory=list)
    rule_recommendation: RuleRecommendation
    fraud: FraudRiskAssessment
    risk: RiskAssessment
    ai_analysis: AIAnalysis
    approval_tier: ApprovalTier
    final_recommendation: AIRecommendation
    red_flags: List[str] = Field(default_factory=list)
