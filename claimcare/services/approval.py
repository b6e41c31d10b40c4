# claimcare/services/approval.py
"""
Tiered approval workflow.

Every claim is routed to one approval tier. A tier names the roles allowed to
act, how many approvals complete it, which roles are mandatory, and how long
it may wait before escalating. Actions are recorded in an append-only ledger;
a user acts at most once per claim.
"""

import math
from typing import Callable, Dict, List, Optional, Tuple

from claimcare.core.config import settings
from claimcare.core.constants import (
    ApprovalDecision, ApprovalState, ApprovalTier, ClaimType, DecisionStatus,
    FraudSeverity, UserRole, AIRecommendation,
    SIU_THRESHOLD, AUTO_APPROVE_RISK_CEILING,
    AUTO_APPROVE_MIN_COMPLETENESS, AUTO_APPROVE_MIN_AML_MATCH
)
from claimcare.core.logging import get_logger
from claimcare.models.approval import (
    ApprovalAction, ApprovalMatrix, ApprovalProgress, ApprovalRequirement,
    ApprovalStatus, EscalationResult
)
from claimcare.models.base import utcnow
from claimcare.models.claim import Claim, Decision
from claimcare.storage.approval_store import ApprovalLedger

logger = get_logger(__name__)


# ===================
# Approval Matrix
# ===================

APPROVAL_MATRIX: Dict[ApprovalTier, ApprovalRequirement] = {
    ApprovalTier.LOW: ApprovalRequirement(
        roles=[UserRole.L1_ADJUSTER, UserRole.L2_SUPERVISOR],
        min_approvals=2,
        escalation_hours=24
    ),
    ApprovalTier.MEDIUM: ApprovalRequirement(
        roles=[UserRole.L2_SUPERVISOR, UserRole.MANAGER],
        min_approvals=2,
        escalation_hours=48
    ),
    ApprovalTier.HIGH: ApprovalRequirement(
        roles=[UserRole.MANAGER, UserRole.HEAD, UserRole.COMPLIANCE],
        min_approvals=2,
        mandatory_roles=[UserRole.HEAD],
        escalation_hours=72
    ),
    ApprovalTier.FRAUD_FLAGGED: ApprovalRequirement(
        roles=[UserRole.SIU_INVESTIGATOR, UserRole.MANAGER, UserRole.COMPLIANCE],
        min_approvals=2,
        mandatory_roles=[UserRole.SIU_INVESTIGATOR],
        escalation_hours=96
    ),
    ApprovalTier.MEDICAL_REQUIRED: ApprovalRequirement(
        roles=[UserRole.MEDICAL_OFFICER, UserRole.L2_SUPERVISOR],
        min_approvals=2,
        mandatory_roles=[UserRole.MEDICAL_OFFICER],
        escalation_hours=48
    ),
    ApprovalTier.REINSURANCE: ApprovalRequirement(
        roles=[UserRole.REINSURANCE_COORDINATOR, UserRole.HEAD, UserRole.FINANCE],
        min_approvals=3,
        mandatory_roles=[UserRole.REINSURANCE_COORDINATOR, UserRole.HEAD],
        escalation_hours=120
    ),
}

LOW_LEVEL_MAX_AMOUNT = 50_000_000
MEDIUM_LEVEL_MAX_AMOUNT = 250_000_000

# High is the top of the amount ladder
ESCALATION_PATH: Dict[ApprovalTier, ApprovalTier] = {
    ApprovalTier.LOW: ApprovalTier.MEDIUM,
    ApprovalTier.MEDIUM: ApprovalTier.HIGH,
    ApprovalTier.HIGH: ApprovalTier.HIGH,
}


def get_approval_level(amount: float) -> ApprovalTier:
    """Amount-based level before any special-case override."""
    if amount <= LOW_LEVEL_MAX_AMOUNT:
        return ApprovalTier.LOW
    if amount <= MEDIUM_LEVEL_MAX_AMOUNT:
        return ApprovalTier.MEDIUM
    return ApprovalTier.HIGH


def get_required_approvals(claim: Claim) -> Tuple[ApprovalTier, ApprovalRequirement]:
    """
    Route a claim to its approval tier.

    Overrides apply in order: fraud flagged, medical review, reinsurance.
    The first that matches wins; otherwise the amount level applies.
    """
    amount = claim.benefit_amount

    high_severity = any(f.severity == FraudSeverity.HIGH for f in claim.fraud_indicators)
    risky = claim.risk_score is not None and claim.risk_score >= SIU_THRESHOLD
    if high_severity or risky:
        tier = ApprovalTier.FRAUD_FLAGGED
    elif claim.claim_type in (ClaimType.CRITICAL_ILLNESS, ClaimType.HEALTH):
        tier = ApprovalTier.MEDICAL_REQUIRED
    elif amount > settings.REINSURANCE_RETENTION_LIMIT:
        tier = ApprovalTier.REINSURANCE
    else:
        tier = get_approval_level(amount)

    return tier, APPROVAL_MATRIX[tier]


def can_auto_approve(claim: Claim) -> bool:
    """Low-risk, fully documented, identity-verified, small claims skip manual approval."""
    analysis = claim.ai_analysis
    if analysis is None or analysis.recommended_action != AIRecommendation.AUTO_APPROVE:
        return False

    risk_score = claim.risk_score if claim.risk_score is not None else 1.0
    name_match = claim.aml_check.name_match_score if claim.aml_check else 0.0

    return (
        risk_score < AUTO_APPROVE_RISK_CEILING
        and analysis.document_completeness >= AUTO_APPROVE_MIN_COMPLETENESS
        and name_match >= AUTO_APPROVE_MIN_AML_MATCH
        and claim.benefit_amount < settings.AUTO_APPROVE_MAX_AMOUNT
    )


# ===================
# Approval Manager
# ===================

class ApprovalManager:
    """Records approval actions and derives each claim's approval status."""

    def __init__(self, ledger: Optional[ApprovalLedger] = None, clock: Callable = utcnow):
        self.ledger = ledger or ApprovalLedger()
        self._clock = clock

    def add_approval(self, claim_id: str, action: ApprovalAction) -> bool:
        """
        Record an action.

        Returns False without touching the ledger when the user already acted
        on this claim.
        """
        added = self.ledger.append_if_new_user(claim_id, action)
        if added:
            logger.info(
                "Approval action recorded",
                claim_id=claim_id, user_id=action.user_id,
                role=action.user_role.value, action=action.action.value
            )
        else:
            logger.warning("Duplicate approval action ignored", claim_id=claim_id, user_id=action.user_id)
        return added

    def get_approval_chain(self, claim_id: str) -> List[ApprovalAction]:
        return self.ledger.actions_for(claim_id)

    def check_approval_status(self, claim: Claim) -> ApprovalStatus:
        tier, requirement = get_required_approvals(claim)
        actions = self.ledger.actions_for(claim.claim_id)
        approved = [a for a in actions if a.action == ApprovalDecision.APPROVE]

        missing_roles = [
            role for role in requirement.mandatory_roles
            if not any(a.user_role == role for a in approved)
        ]
        is_complete = len(approved) >= requirement.min_approvals and not missing_roles

        if any(a.action == ApprovalDecision.REJECT for a in actions):
            state = ApprovalState.REJECTED
        elif is_complete:
            state = ApprovalState.COMPLETE
        elif self.ledger.escalation_for(claim.claim_id) is not None:
            state = ApprovalState.ESCALATED
        elif approved:
            state = ApprovalState.PARTIAL
        else:
            state = ApprovalState.PENDING

        return ApprovalStatus(
            tier=tier,
            state=state,
            is_complete=is_complete,
            current_approvals=len(approved),
            required_approvals=requirement.min_approvals,
            missing_roles=missing_roles,
            can_auto_approve=can_auto_approve(claim)
        )

    def can_user_approve(self, user_id: str, user_role: UserRole, claim: Claim) -> bool:
        _, requirement = get_required_approvals(claim)
        if user_role not in requirement.roles:
            return False
        return not self.ledger.has_user_acted(claim.claim_id, user_id)

    def escalate_if_needed(self, claim: Claim) -> EscalationResult:
        """Escalate once the claim has waited longer than its tier allows."""
        _, requirement = get_required_approvals(claim)
        age_hours = math.floor((self._clock() - claim.created_at).total_seconds() / 3600)

        if age_hours <= requirement.escalation_hours:
            return EscalationResult(should_escalate=False)

        next_level = ESCALATION_PATH[get_approval_level(claim.benefit_amount)]
        self.ledger.record_escalation(claim.claim_id, next_level)
        logger.warning(
            "Claim escalated",
            claim_id=claim.claim_id, age_hours=age_hours, level=next_level.value
        )
        return EscalationResult(
            should_escalate=True,
            escalation_level=next_level,
            notify_roles=list(APPROVAL_MATRIX[next_level].roles)
        )

    def generate_approval_matrix(self, claim: Claim) -> ApprovalMatrix:
        """Per-role progress against the claim's requirement."""
        tier, requirement = get_required_approvals(claim)
        approved = [
            a for a in self.ledger.actions_for(claim.claim_id)
            if a.action == ApprovalDecision.APPROVE
        ]

        progress: List[ApprovalProgress] = []
        for role in requirement.roles:
            approval = next((a for a in approved if a.user_role == role), None)
            progress.append(ApprovalProgress(
                role=role,
                required=role in requirement.mandatory_roles,
                approved=approval is not None,
                approver=approval.user_id if approval else None,
                timestamp=approval.timestamp if approval else None
            ))

        return ApprovalMatrix(
            level=get_approval_level(claim.benefit_amount),
            tier=tier,
            requirement=requirement,
            progress=progress
        )


# ===================
# Decision Letter
# ===================

def generate_decision_letter(claim: Claim, decision: Decision) -> str:
    """Customer-facing decision letter."""
    paid = decision.status in (DecisionStatus.APPROVED, DecisionStatus.PARTIAL_APPROVED)

    lines = [
        f"Dear {claim.beneficiary.name or 'Valued Customer'},",
        "",
        f"RE: Claim Decision - {claim.claim_id}",
        f"Policy Number: {claim.policy_id}",
        "",
        f"We have completed our review of your {claim.claim_type.value} insurance claim.",
        "",
        f"DECISION: {decision.status.value.upper()}",
        "",
    ]

    if paid:
        lines += [
            f"APPROVED AMOUNT: IDR {decision.amount or 0:,.0f}",
            "",
            "The approved benefit will be processed for payment within 24 hours "
            "to your registered bank account.",
        ]
    else:
        lines += [
            f"REASON: {decision.reason or 'Not specified'}",
            "",
            "Please contact our customer service for more information.",
        ]

    lines += [
        "",
        "If you have any questions about this decision, please contact our Claims Department.",
        "",
        "Sincerely,",
        "Claims Department",
        "ClaimCare Insurance",
    ]
    return "\n".join(lines) + "\n"
