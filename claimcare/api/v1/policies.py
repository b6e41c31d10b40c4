# claimcare/api/v1/policies.py
from fastapi import APIRouter, Depends, Query
from typing import Optional, List
from pydantic import BaseModel
from datetime import date

from claimcare.models.claim import ClaimSummary
from claimcare.models.policy import Policy
from claimcare.core.constants import ClaimType, PolicyStatus
from claimcare.core.dependencies import get_claim_store, get_policy_store
from claimcare.core.exceptions import PolicyNotFoundError
from claimcare.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# ===================
# Response Models
# ===================

class PolicySummary(BaseModel):
    policy_id: str
    product: ClaimType
    status: PolicyStatus
    holder_name: str
    start_date: Optional[date] = None
    max_benefit: Optional[float] = None
    beneficiary_count: int = 0

class PolicyListResponse(BaseModel):
    total: int
    skip: int
    limit: int
    policies: List[PolicySummary]

def _summary(policy: Policy) -> PolicySummary:
    return PolicySummary(
        policy_id=policy.policy_id,
        product=policy.product,
        status=policy.status,
        holder_name=policy.holder_name,
        start_date=policy.start_date,
        max_benefit=policy.max_benefit,
        beneficiary_count=len(policy.beneficiaries)
    )

# ===================
# Endpoints
# ===================

@router.put("/{policy_id}", response_model=Policy)
async def register_policy(policy_id: str, policy: Policy, store=Depends(get_policy_store)):
    """
    Register or replace the policy record decisioning reads.
    The path id wins over any id in the body.
    """
    saved = store.save(policy.model_copy(update={"policy_id": policy_id}))
    logger.info("Policy registered", policy_id=policy_id, status=saved.status.value)
    return saved

@router.get("/", response_model=PolicyListResponse)
async def list_policies(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    product: Optional[ClaimType] = None,
    active_only: bool = Query(False, description="Only show active policies"),
    store=Depends(get_policy_store)
):
    """List registered policies."""
    policies = store.get_all()
    if product:
        policies = [p for p in policies if p.product == product]
    if active_only:
        policies = [p for p in policies if p.is_active]
    policies.sort(key=lambda p: p.policy_id)

    return PolicyListResponse(
        total=len(policies),
        skip=skip,
        limit=limit,
        policies=[_summary(p) for p in policies[skip:skip + limit]]
    )

@router.get("/{policy_id}", response_model=Policy)
async def get_policy(policy_id: str, store=Depends(get_policy_store)):
    policy = store.get_policy(policy_id)
    if policy is None:
        raise PolicyNotFoundError(policy_id)
    return policy

@router.get("/{policy_id}/claims", response_model=List[ClaimSummary])
async def get_policy_claims(
    policy_id: str,
    store=Depends(get_policy_store),
    claim_store=Depends(get_claim_store)
):
    """Claims filed against the policy, newest first."""
    if store.get_policy(policy_id) is None:
        raise PolicyNotFoundError(policy_id)
    return [ClaimSummary.from_claim(c) for c in claim_store.list_claims(policy_id=policy_id)]
