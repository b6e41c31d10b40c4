# claimcare/api/v1/approvals.py
from fastapi import APIRouter, Depends
from typing import List, Optional
from pydantic import BaseModel

from claimcare.models.approval import (
    ApprovalAction, ApprovalMatrix, ApprovalOutcome, ApprovalStatus, EscalationResult
)
from claimcare.models.claim import Claim
from claimcare.core.constants import ApprovalDecision, UserRole
from claimcare.core.dependencies import (
    get_claim_store, get_approval_manager, get_decision_service
)
from claimcare.core.exceptions import (
    ClaimNotFoundError, ClaimValidationError, DuplicateApprovalError
)
from claimcare.services.approval import generate_decision_letter

router = APIRouter()

# ===================
# Request/Response Models
# ===================

class ApprovalActionRequest(BaseModel):
    user_id: str
    user_role: UserRole
    action: ApprovalDecision
    comments: Optional[str] = None

class CanApproveResponse(BaseModel):
    user_id: str
    user_role: UserRole
    can_approve: bool

class DecisionLetterResponse(BaseModel):
    claim_id: str
    letter: str

def _load(claim_id: str, store) -> Claim:
    claim = store.get_claim_by_id(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim

# ===================
# Endpoints
# ===================

@router.get("/{claim_id}/matrix", response_model=ApprovalMatrix)
async def approval_matrix(claim_id: str, store=Depends(get_claim_store), manager=Depends(get_approval_manager)):
    """Tier requirement and per-role progress."""
    return manager.generate_approval_matrix(_load(claim_id, store))

@router.get("/{claim_id}/status", response_model=ApprovalStatus)
async def approval_status(claim_id: str, store=Depends(get_claim_store), manager=Depends(get_approval_manager)):
    return manager.check_approval_status(_load(claim_id, store))

@router.get("/{claim_id}/chain", response_model=List[ApprovalAction])
async def approval_chain(claim_id: str, store=Depends(get_claim_store), manager=Depends(get_approval_manager)):
    _load(claim_id, store)
    return manager.get_approval_chain(claim_id)

@router.get("/{claim_id}/can-approve", response_model=CanApproveResponse)
async def can_approve(
    claim_id: str,
    user_id: str,
    user_role: UserRole,
    store=Depends(get_claim_store),
    manager=Depends(get_approval_manager)
):
    claim = _load(claim_id, store)
    return CanApproveResponse(
        user_id=user_id,
        user_role=user_role,
        can_approve=manager.can_user_approve(user_id, user_role, claim)
    )

@router.post("/{claim_id}/actions", response_model=ApprovalOutcome)
async def record_action(claim_id: str, request: ApprovalActionRequest, service=Depends(get_decision_service)):
    """Record an approve, reject or request-info action. Repeat actions by a user return 409."""
    outcome = service.record_approval(claim_id, ApprovalAction(**request.model_dump()))
    if outcome is None:
        raise ClaimNotFoundError(claim_id)
    if not outcome.accepted:
        raise DuplicateApprovalError(claim_id, request.user_id)
    return outcome

@router.post("/{claim_id}/escalate", response_model=EscalationResult)
async def escalate(claim_id: str, store=Depends(get_claim_store), manager=Depends(get_approval_manager)):
    return manager.escalate_if_needed(_load(claim_id, store))

@router.post("/{claim_id}/auto-approve", response_model=Claim)
async def auto_approve(claim_id: str, service=Depends(get_decision_service)):
    claim = service.auto_approve(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return claim

@router.get("/{claim_id}/letter", response_model=DecisionLetterResponse)
async def decision_letter(claim_id: str, store=Depends(get_claim_store)):
    """Customer decision letter for a decided claim."""
    claim = _load(claim_id, store)
    if claim.decision is None:
        raise ClaimValidationError("claim has no decision yet", claim_id)
    return DecisionLetterResponse(claim_id=claim_id, letter=generate_decision_letter(claim, claim.decision))
