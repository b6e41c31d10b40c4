# claimcare/core/constants.py
"""Application constants and enums."""

from enum import Enum
from typing import Dict


# ===================
# Claim Constants
# ===================

class ClaimType(str, Enum):
    LIFE = "Life"
    CRITICAL_ILLNESS = "CI"
    ACCIDENT = "Accident"
    HEALTH = "Health"


class ClaimStage(str, Enum):
    INTAKE = "Intake"
    VALIDATION = "Validation"
    ANALYSIS = "Analysis"
    DECISION = "Decision"
    PAYMENT = "Payment"
    CLOSED = "Closed"

    @classmethod
    def valid_transitions(cls) -> dict:
        """Forward moves, one-step "request more info" moves, and close."""
        return {
            cls.INTAKE: [cls.VALIDATION, cls.CLOSED],
            cls.VALIDATION: [cls.ANALYSIS, cls.INTAKE, cls.CLOSED],
            cls.ANALYSIS: [cls.DECISION, cls.VALIDATION, cls.CLOSED],
            cls.DECISION: [cls.PAYMENT, cls.ANALYSIS, cls.CLOSED],
            cls.PAYMENT: [cls.CLOSED],
            cls.CLOSED: [],
        }


class Channel(str, Enum):
    WHATSAPP = "WhatsApp"
    WEB = "Web"
    APP = "App"
    EMAIL = "Email"


class DecisionStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    PARTIAL_APPROVED = "PartialApproved"
    DENIED = "Denied"


class SLAColor(str, Enum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"


# ===================
# Document Constants
# ===================

class DocumentType(str, Enum):
    POLIS = "polis"
    DEATH_CERT = "death_cert"
    ID_TERTANGGUNG = "id_tertanggung"
    ID_BENEFICIARY = "id_beneficiary"
    MEDICAL_REPORT = "medical_report"
    ACCIDENT_REPORT = "accident_report"
    CI_DIAGNOSIS = "ci_diagnosis"
    CLAIM_FORM = "claim_form"
    DOCTOR_LETTER = "doctor_letter"
    BANK_ACCOUNT = "bank_account"
    POLICE_REPORT = "police_report"
    FAMILY_RELATION = "family_relation"
    MEDICAL_RESUME = "medical_resume"
    LAB_RESULT = "lab_result"
    MEDICAL_BILL = "medical_bill"
    MEDICAL_RECEIPT = "medical_receipt"


class OCRStatus(str, Enum):
    MATCHED = "Matched"
    MISMATCH = "Mismatch"
    PENDING = "Pending"
    PROCESSING = "Processing"


# ===================
# Policy Constants
# ===================

class PolicyStatus(str, Enum):
    ACTIVE = "Active"
    LAPSED = "Lapsed"
    TERMINATED = "Terminated"


# ===================
# Fraud & Risk Constants
# ===================

class FraudSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FraudIndicatorType(str, Enum):
    EARLY_CLAIM = "early_claim"
    HIGH_AMOUNT = "high_amount"
    MULTIPLE_CLAIMS = "multiple_claims"
    DOCUMENT_MISMATCH = "document_mismatch"
    SUSPICIOUS_PATTERN = "suspicious_pattern"
    VELOCITY = "velocity"
    NETWORK_CONNECTION = "network_connection"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class AIRecommendation(str, Enum):
    AUTO_APPROVE = "auto_approve"
    MANUAL_REVIEW = "manual_review"
    INVESTIGATE = "investigate"
    DENY = "deny"


class AMLStatus(str, Enum):
    CLEAR = "clear"
    FLAGGED = "flagged"
    PENDING = "pending"


# ===================
# Rule Constants
# ===================

class RuleAction(str, Enum):
    APPROVE = "approve"
    DENY = "deny"
    REVIEW = "review"
    FLAG = "flag"


RULE_CATEGORY_ALL = "All"
RULE_NOT_TRIGGERED = "none"


# ===================
# Approval Constants
# ===================

class UserRole(str, Enum):
    L1_ADJUSTER = "L1_Adjuster"
    L2_SUPERVISOR = "L2_Supervisor"
    MANAGER = "Manager"
    MEDICAL_OFFICER = "Medical_Officer"
    SIU_INVESTIGATOR = "SIU_Investigator"
    FINANCE = "Finance"
    COMPLIANCE = "Compliance"
    HEAD = "Head"
    REINSURANCE_COORDINATOR = "Reinsurance_Coordinator"


class ApprovalTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    FRAUD_FLAGGED = "fraud_flagged"
    MEDICAL_REQUIRED = "medical_required"
    REINSURANCE = "reinsurance"


class ApprovalDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_INFO = "request_info"


class ApprovalState(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"
    REJECTED = "rejected"
    ESCALATED = "escalated"


# ===================
# Thresholds
# ===================

# Four-tier risk banding shared by fraud and composite scoring
RISK_LEVEL_MEDIUM = 0.25
RISK_LEVEL_HIGH = 0.5
RISK_LEVEL_CRITICAL = 0.75

MANUAL_REVIEW_THRESHOLD = 0.6
SIU_THRESHOLD = 0.7
BLACKLIST_MULTIPLIER = 1.5

AUTO_APPROVE_RISK_CEILING = 0.3
INVESTIGATE_RISK_FLOOR = 0.7
DENY_RISK_FLOOR = 0.9
AUTO_APPROVE_MIN_COMPLETENESS = 95
AUTO_APPROVE_MIN_AML_MATCH = 0.9

BENEFICIARY_MATCH_THRESHOLD = 0.85
DEFAULT_MAX_BENEFIT = 1_000_000_000

# Days assumed since policy start when the policy start date is unknown
DEFAULT_POLICY_AGE_DAYS = 180

RISK_WEIGHTS: Dict[str, float] = {
    "fraud": 0.35,
    "document": 0.25,
    "policy": 0.15,
    "amount": 0.15,
    "velocity": 0.10,
}

# Typical benefit per claim type (IDR), used for amount ratios
TYPICAL_CLAIM_AMOUNTS: Dict[str, float] = {
    ClaimType.LIFE.value: 500_000_000,
    ClaimType.CRITICAL_ILLNESS.value: 200_000_000,
    ClaimType.ACCIDENT.value: 50_000_000,
    ClaimType.HEALTH.value: 10_000_000,
}
DEFAULT_TYPICAL_CLAIM_AMOUNT = 100_000_000

# Average paid claim per type (IDR), used by the high-amount fraud check
AVERAGE_CLAIM_AMOUNTS: Dict[str, float] = {
    ClaimType.LIFE.value: 150_000_000,
    ClaimType.CRITICAL_ILLNESS.value: 100_000_000,
    ClaimType.ACCIDENT.value: 25_000_000,
    ClaimType.HEALTH.value: 10_000_000,
}
DEFAULT_AVERAGE_CLAIM_AMOUNT = 50_000_000

VELOCITY_WINDOW_DAYS = 30
