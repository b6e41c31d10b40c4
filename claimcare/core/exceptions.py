# claimcare/core/exceptions.py
"""Custom exceptions for the ClaimCare decisioning engine."""

from typing import Optional, Dict, Any


class ClaimCareException(Exception):
    """Base exception for all ClaimCare errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


# ===================
# Claim Exceptions
# ===================

class ClaimException(ClaimCareException):
    """Base exception for claim-related errors."""
    pass


class ClaimNotFoundError(ClaimException):
    """Claim not found in storage."""

    status_code = 404

    def __init__(self, claim_id: str):
        super().__init__(
            message=f"Claim not found: {claim_id}",
            error_code="CLAIM_NOT_FOUND",
            details={"claim_id": claim_id}
        )


class ClaimValidationError(ClaimException):
    """Claim payload failed validation."""

    status_code = 422

    def __init__(self, message: str, claim_id: Optional[str] = None):
        super().__init__(
            message=f"Claim validation failed: {message}",
            error_code="CLAIM_VALIDATION_ERROR",
            details={"claim_id": claim_id} if claim_id else {}
        )


class InvalidStageTransition(ClaimException):
    """Invalid claim stage transition."""

    status_code = 409

    def __init__(self, current_stage: str, new_stage: str):
        super().__init__(
            message=f"Cannot transition from {current_stage} to {new_stage}",
            error_code="INVALID_STAGE_TRANSITION",
            details={"current_stage": current_stage, "new_stage": new_stage}
        )


# ===================
# Policy Exceptions
# ===================

class PolicyException(ClaimCareException):
    """Base exception for policy-related errors."""
    pass


class PolicyNotFoundError(PolicyException):
    """Policy not found in storage."""

    status_code = 404

    def __init__(self, policy_id: str):
        super().__init__(
            message=f"Policy not found: {policy_id}",
            error_code="POLICY_NOT_FOUND",
            details={"policy_id": policy_id}
        )


# ===================
# Approval Exceptions
# ===================

class ApprovalException(ClaimCareException):
    """Base exception for approval workflow errors."""
    pass


class DuplicateApprovalError(ApprovalException):
    """User already recorded an action on this claim."""

    status_code = 409

    def __init__(self, claim_id: str, user_id: str):
        super().__init__(
            message=f"User {user_id} already acted on claim {claim_id}",
            error_code="DUPLICATE_APPROVAL_ACTION",
            details={"claim_id": claim_id, "user_id": user_id}
        )


class ApproverNotAllowedError(ApprovalException):
    """Role is not allowed to act at the claim's approval tier."""

    status_code = 403

    def __init__(self, claim_id: str, role: str, tier: str):
        super().__init__(
            message=f"Role {role} cannot approve claim {claim_id} at tier {tier}",
            error_code="APPROVER_NOT_ALLOWED",
            details={"claim_id": claim_id, "role": role, "tier": tier}
        )


class AutoApprovalNotAllowedError(ApprovalException):
    """Claim does not meet auto-approval conditions."""

    status_code = 409

    def __init__(self, claim_id: str):
        super().__init__(
            message=f"Claim {claim_id} is not eligible for auto-approval",
            error_code="AUTO_APPROVAL_NOT_ALLOWED",
            details={"claim_id": claim_id}
        )


class ClaimAlreadyDecidedError(ApprovalException):
    """Claim already carries a final decision or a rejection."""

    status_code = 409

    def __init__(self, claim_id: str, decision: str):
        super().__init__(
            message=f"Claim {claim_id} is already decided: {decision}",
            error_code="CLAIM_ALREADY_DECIDED",
            details={"claim_id": claim_id, "decision": decision}
        )
