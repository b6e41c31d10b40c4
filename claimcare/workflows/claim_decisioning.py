# claimcare/workflows/claim_decisioning.py
"""Applies approval outcomes to stored claims."""

from typing import Optional

from claimcare.core.constants import (
    ApprovalDecision, ClaimStage, DecisionStatus
)
from claimcare.core.exceptions import (
    ApproverNotAllowedError, AutoApprovalNotAllowedError, ClaimAlreadyDecidedError
)
from claimcare.core.logging import get_logger
from claimcare.models.approval import ApprovalAction, ApprovalOutcome
from claimcare.models.base import utcnow
from claimcare.models.claim import Approver, Claim, ClaimUpdate, Decision
from claimcare.services.approval import ApprovalManager, get_required_approvals
from claimcare.storage.base import KeyedLocks
from claimcare.storage.claim_store import ClaimStore

logger = get_logger(__name__)

# Forward path a decided claim walks to reach Payment
_FORWARD_STAGES = [
    ClaimStage.INTAKE,
    ClaimStage.VALIDATION,
    ClaimStage.ANALYSIS,
    ClaimStage.DECISION,
    ClaimStage.PAYMENT,
]


class ClaimDecisionService:
    """Records approval actions and turns completed workflows into decisions."""

    def __init__(self, claim_store: ClaimStore, approval_manager: Optional[ApprovalManager] = None):
        self.claim_store = claim_store
        self.approval_manager = approval_manager or ApprovalManager()
        self._locks = KeyedLocks()

    def _advance_to_payment(self, claim: Claim, actor: str) -> Claim:
        if claim.stage not in _FORWARD_STAGES:
            return claim
        for stage in _FORWARD_STAGES[_FORWARD_STAGES.index(claim.stage) + 1:]:
            claim = self.claim_store.update_claim(claim.claim_id, ClaimUpdate(stage=stage), actor)
        return claim

    def _approved_decision(self, claim: Claim, required: int) -> Decision:
        approvals = [
            a for a in self.approval_manager.get_approval_chain(claim.claim_id)
            if a.action == ApprovalDecision.APPROVE
        ]
        return Decision(
            status=DecisionStatus.APPROVED,
            amount=claim.benefit_amount,
            required_approvals=required,
            current_approvals=len(approvals),
            approvers=[
                Approver(user_id=a.user_id, approved_at=a.timestamp, comments=a.comments)
                for a in approvals
            ]
        )

    def _ensure_undecided(self, claim: Claim):
        """A final decision or a recorded rejection closes the approval workflow."""
        if claim.decision is not None and claim.decision.status != DecisionStatus.PENDING:
            raise ClaimAlreadyDecidedError(claim.claim_id, claim.decision.status.value)
        if any(a.action == ApprovalDecision.REJECT for a in self.approval_manager.get_approval_chain(claim.claim_id)):
            raise ClaimAlreadyDecidedError(claim.claim_id, DecisionStatus.DENIED.value)

    def record_approval(self, claim_id: str, action: ApprovalAction) -> Optional[ApprovalOutcome]:
        """
        Record an approver's action and apply the resulting decision.

        Args:
            claim_id: Claim being acted on
            action: The approver's action

        Returns:
            ApprovalOutcome, or None when the claim does not exist

        Raises:
            ApproverNotAllowedError: Role is not part of the claim's approval tier
            ClaimAlreadyDecidedError: Claim was already approved, denied or rejected
        """
        with self._locks.hold(claim_id):
            claim = self.claim_store.get_claim_by_id(claim_id)
            if claim is None:
                return None

            tier, requirement = get_required_approvals(claim)
            if action.user_role not in requirement.roles:
                logger.warning("Approver role not allowed", claim_id=claim_id, role=action.user_role.value, tier=tier.value)
                raise ApproverNotAllowedError(claim_id, action.user_role.value, tier.value)

            if self.approval_manager.ledger.has_user_acted(claim_id, action.user_id):
                return ApprovalOutcome(accepted=False, status=self.approval_manager.check_approval_status(claim))

            self._ensure_undecided(claim)

            accepted = self.approval_manager.add_approval(claim_id, action)
            status = self.approval_manager.check_approval_status(claim)
            if not accepted:
                return ApprovalOutcome(accepted=False, status=status)

            decision_status = None
            if action.action == ApprovalDecision.REJECT:
                decision = Decision(
                    status=DecisionStatus.DENIED,
                    reason=action.comments or "Rejected by approver",
                    required_approvals=status.required_approvals,
                    current_approvals=status.current_approvals
                )
                self.claim_store.update_claim(claim_id, ClaimUpdate(decision=decision), actor=action.user_id)
                decision_status = DecisionStatus.DENIED.value
                logger.info("Claim denied by approver", claim_id=claim_id, user_id=action.user_id)
            elif status.is_complete:
                decision = self._approved_decision(claim, status.required_approvals)
                updated = self.claim_store.update_claim(claim_id, ClaimUpdate(decision=decision), actor=action.user_id)
                self._advance_to_payment(updated, action.user_id)
                decision_status = DecisionStatus.APPROVED.value
                logger.info("Claim approved", claim_id=claim_id, approvals=status.current_approvals)

        return ApprovalOutcome(accepted=True, status=status, decision_status=decision_status)

    def auto_approve(self, claim_id: str, actor: str = "system") -> Optional[Claim]:
        """
        Approve without manual sign-off when the claim qualifies.

        Raises:
            ClaimAlreadyDecidedError: Claim was already approved, denied or rejected
            AutoApprovalNotAllowedError: Auto-approval conditions do not hold
        """
        with self._locks.hold(claim_id):
            claim = self.claim_store.get_claim_by_id(claim_id)
            if claim is None:
                return None

            self._ensure_undecided(claim)
            status = self.approval_manager.check_approval_status(claim)
            if not status.can_auto_approve:
                raise AutoApprovalNotAllowedError(claim_id)

            decision = Decision(
                status=DecisionStatus.APPROVED,
                amount=claim.benefit_amount,
                reason="Auto-approved: low risk and complete documentation",
                required_approvals=0,
                current_approvals=0,
                approvers=[Approver(user_id=actor, approved_at=utcnow())]
            )
            updated = self.claim_store.update_claim(claim_id, ClaimUpdate(decision=decision), actor=actor)
            logger.info("Claim auto-approved", claim_id=claim_id)
            return self._advance_to_payment(updated, actor)
