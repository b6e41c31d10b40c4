# claimcare/api/v1/claims.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from pydantic import BaseModel

from claimcare.models.claim import (
    AMLCheck, Claim, ClaimCreate, ClaimSummary, ClaimUpdate, Document
)
from claimcare.models.decisioning import ClaimEvaluation
from claimcare.core.constants import ClaimStage, ClaimType, Channel
from claimcare.core.dependencies import get_claim_store, get_claim_pipeline
from claimcare.core.exceptions import ClaimNotFoundError
from claimcare.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# ===================
# Request Models
# ===================

class StageUpdateRequest(BaseModel):
    stage: ClaimStage
    actor: str = "system"

class ClaimListResponse(BaseModel):
    total: int
    skip: int
    limit: int
    claims: List[ClaimSummary]

# ===================
# Endpoints
# ===================

@router.post("/", response_model=Claim, status_code=201)
async def submit_claim(data: ClaimCreate, store=Depends(get_claim_store)):
    """Submit a new claim at the Intake stage."""
    return store.create_claim(data)

@router.get("/", response_model=ClaimListResponse)
async def list_claims(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    claim_type: Optional[ClaimType] = None,
    stage: Optional[ClaimStage] = None,
    channel: Optional[Channel] = None,
    policy_id: Optional[str] = None,
    assignee: Optional[str] = None,
    include_closed: bool = True,
    store=Depends(get_claim_store)
):
    """List claims with optional filtering, newest first."""
    claims = store.list_claims(
        claim_type=claim_type,
        stage=stage,
        channel=channel,
        policy_id=policy_id,
        assignee=assignee,
        include_closed=include_closed
    )
    return ClaimListResponse(
        total=len(claims),
        skip=skip,
        limit=limit,
        claims=[ClaimSummary.from_claim(c) for c in claims[skip:skip + limit]]
    )

@router.get("/{claim_id}", response_model=Claim)
async def get_claim(claim_id: str, store=Depends(get_claim_store)):
    """Get complete claim details."""
    claim = store.get_claim_by_id(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim

@router.patch("/{claim_id}/stage", response_model=Claim)
async def update_stage(claim_id: str, request: StageUpdateRequest, store=Depends(get_claim_store)):
    """Move a claim to another stage. Invalid transitions return 409."""
    claim = store.update_claim(claim_id, ClaimUpdate(stage=request.stage), actor=request.actor)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim

@router.post("/{claim_id}/documents", response_model=Claim)
async def add_document(claim_id: str, document: Document, store=Depends(get_claim_store)):
    """Attach a document, with any OCR result already computed."""
    claim = store.add_document(claim_id, document)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim

@router.put("/{claim_id}/aml-check", response_model=Claim)
async def record_aml_check(claim_id: str, check: AMLCheck, store=Depends(get_claim_store)):
    """Record the AML/PEP screening result for the claim."""
    claim = store.update_claim(claim_id, ClaimUpdate(aml_check=check))
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim

@router.delete("/{claim_id}", response_model=Claim)
async def close_claim(claim_id: str, store=Depends(get_claim_store)):
    """Close a claim. Claims are never removed."""
    claim = store.close_claim(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim

@router.post("/{claim_id}/evaluate", response_model=ClaimEvaluation)
async def evaluate_claim(claim_id: str, pipeline=Depends(get_claim_pipeline)):
    """Run the full evaluation pipeline and store its outcome on the claim."""
    evaluation = pipeline.evaluate(claim_id)
    if evaluation is None:
        raise ClaimNotFoundError(claim_id)
    return evaluation
