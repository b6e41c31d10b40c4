# claimcare/api/v1/decisions.py
"""Read-only decisioning views. Nothing here is persisted."""

from fastapi import APIRouter, Depends
from typing import List
from pydantic import BaseModel

from claimcare.models.claim import AIAnalysis
from claimcare.models.decisioning import (
    CompletenessResult, FraudRiskAssessment, RiskAssessment, RuleRecommendation, RuleResult
)
from claimcare.core.constants import ClaimType
from claimcare.core.dependencies import (
    get_claim_store, get_rule_engine, get_fraud_detector, get_risk_scorer
)
from claimcare.core.exceptions import ClaimNotFoundError
from claimcare.services.document_requirements import (
    DocumentRequirement, check_completeness, get_checklist
)
from claimcare.services.rule_engine import RuleEngine

router = APIRouter()


class RuleEvaluationResponse(BaseModel):
    claim_id: str
    results: List[RuleResult]
    recommendation: RuleRecommendation


def _load(claim_id: str, store):
    claim = store.get_claim_by_id(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim


@router.get("/checklist/{claim_type}", response_model=List[DocumentRequirement])
async def document_checklist(claim_type: ClaimType):
    return get_checklist(claim_type)

@router.get("/{claim_id}/completeness", response_model=CompletenessResult)
async def document_completeness(claim_id: str, store=Depends(get_claim_store)):
    claim = _load(claim_id, store)
    return check_completeness(claim.claim_type, claim.uploaded_document_types, claim.incident.conditions)

@router.get("/{claim_id}/rules", response_model=RuleEvaluationResponse)
async def evaluate_rules(claim_id: str, store=Depends(get_claim_store), engine=Depends(get_rule_engine)):
    """Evaluate coverage and exclusion rules against the claim."""
    results = engine.evaluate_claim(_load(claim_id, store))
    return RuleEvaluationResponse(
        claim_id=claim_id,
        results=results,
        recommendation=RuleEngine.get_recommended_action(results)
    )

@router.get("/{claim_id}/fraud", response_model=FraudRiskAssessment)
async def assess_fraud(claim_id: str, store=Depends(get_claim_store), detector=Depends(get_fraud_detector)):
    return detector.assess_fraud_risk(_load(claim_id, store))

@router.get("/{claim_id}/risk", response_model=RiskAssessment)
async def score_risk(claim_id: str, store=Depends(get_claim_store), scorer=Depends(get_risk_scorer)):
    return scorer.calculate_comprehensive_risk_score(_load(claim_id, store))

@router.get("/{claim_id}/analysis", response_model=AIAnalysis)
async def ai_analysis(claim_id: str, store=Depends(get_claim_store), scorer=Depends(get_risk_scorer)):
    return scorer.generate_ai_analysis(_load(claim_id, store))
