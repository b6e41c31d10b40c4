from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from claimcare.core.constants import (
    UserRole, ApprovalDecision, ApprovalTier, ApprovalState
)
from claimcare.models.base import utcnow


class ApprovalRequirement(BaseModel):
    """Static approval requirement for one tier."""
    roles: List[UserRole]
    min_approvals: int
    mandatory_roles: List[UserRole] = Field(default_factory=list)
    escalation_hours: int


class ApprovalAction(BaseModel):
    """Append-only ledger entry."""
    user_id: str
    user_role: UserRole
    action: ApprovalDecision
    comments: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        frozen = True


class ApprovalStatus(BaseModel):
    tier: ApprovalTier
    state: ApprovalState
    is_complete: bool
    current_approvals: int
    required_approvals: int
    missing_roles: List[UserRole] = Field(default_factory=list)
    can_auto_approve: bool = False


class ApprovalProgress(BaseModel):
    role: UserRole
    required: bool
    approved: bool
    approver: Optional[str] = None
    timestamp: Optional[datetime] = None


class ApprovalMatrix(BaseModel):
    level: ApprovalTier  # Amount-based level, before overrides
    tier: ApprovalTier   # Tier actually applied
    requirement: ApprovalRequirement
    progress: List[ApprovalProgress] = Field(default_factory=list)


class EscalationResult(BaseModel):
    should_escalate: bool
    escalation_level: Optional[ApprovalTier] = None
    notify_roles: List[UserRole] = Field(default_factory=list)


class ApprovalOutcome(BaseModel):
    """Result of recording an action through the decision service."""
    accepted: bool
    status: ApprovalStatus
    decision_status: Optional[str] = None
