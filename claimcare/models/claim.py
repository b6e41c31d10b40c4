from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, date

from claimcare.core.constants import (
    ClaimType, ClaimStage, Channel, DocumentType, OCRStatus, FraudSeverity,
    DecisionStatus, AIRecommendation, AMLStatus, SLAColor, PolicyStatus
)
from claimcare.models.base import TimestampMixin, AuditLog, utcnow

# ===================
# Supporting Models
# ===================

class OCRResult(BaseModel):
    """Already-computed OCR output attached to a document."""
    confidence: float = Field(ge=0, le=1, default=0.0)
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    validation_status: str = "Needs Review"  # Valid, Invalid, Needs Review
    classification: Optional[str] = None
    quality: Optional[float] = None


class Document(BaseModel):
    """Document attached to a claim."""
    document_type: DocumentType
    url: str = ""
    valid: Optional[bool] = None
    ocr_status: OCRStatus = OCRStatus.PENDING
    ocr_result: Optional[OCRResult] = None
    uploaded_at: datetime = Field(default_factory=utcnow)
    processed_at: Optional[datetime] = None


class FraudIndicator(BaseModel):
    """Individual fraud signal. Immutable once produced."""
    indicator_type: str
    severity: FraudSeverity
    description: str
    confidence: float = Field(ge=0, le=1, default=0.0)

    class Config:
        frozen = True


class BeneficiaryInfo(BaseModel):
    """Identity of the person receiving the benefit."""
    name: Optional[str] = None
    nik: str
    match_score: Optional[float] = None  # Identity match against policy records


class IncidentDetails(BaseModel):
    """Facts the coverage and exclusion rules read."""
    incident_date: Optional[date] = None
    cause_of_death: Optional[str] = None
    cause_of_injury: Optional[str] = None
    diagnosis: Optional[str] = None
    diagnosis_date: Optional[date] = None
    police_report: Optional[str] = None
    description: Optional[str] = None
    # Flags that activate conditional document requirements
    conditions: Dict[str, bool] = Field(default_factory=dict)


class PolicyTerms(BaseModel):
    """Snapshot of the policy terms relevant to decisioning."""
    start_date: Optional[date] = None
    max_benefit: Optional[float] = None
    status: Optional[PolicyStatus] = None


class Approver(BaseModel):
    user_id: str
    name: Optional[str] = None
    approved_at: Optional[datetime] = None
    comments: Optional[str] = None


class Decision(BaseModel):
    """Final claim decision."""
    status: DecisionStatus = DecisionStatus.PENDING
    amount: Optional[float] = None
    reason: Optional[str] = None
    required_approvals: int = 0
    current_approvals: int = 0
    approvers: List[Approver] = Field(default_factory=list)


class EligibilityCheck(BaseModel):
    eligible: bool
    reasons: List[str] = Field(default_factory=list)


class AIAnalysis(BaseModel):
    """Snapshot of the last automated analysis."""
    eligibility_check: EligibilityCheck
    document_completeness: float = 0
    risk_score: float = Field(ge=0, le=1, default=0.0)
    recommended_action: AIRecommendation
    insights: List[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utcnow)


class AMLCheck(BaseModel):
    status: AMLStatus = AMLStatus.PENDING
    pep_match: bool = False
    sanctions_match: bool = False
    name_match_score: float = Field(ge=0, le=1, default=0.0)
    checked_at: datetime = Field(default_factory=utcnow)

# ===================
# Main Claim Models
# ===================

class ClaimBase(BaseModel):
    """Base claim information."""
    policy_id: str
    claim_type: ClaimType
    channel: Channel = Channel.WEB
    beneficiary: BeneficiaryInfo
    policy_holder_nik: Optional[str] = None
    claimed_amount: Optional[float] = Field(default=None, ge=0)
    incident: IncidentDetails = Field(default_factory=IncidentDetails)


class ClaimCreate(ClaimBase):
    """For submitting a new claim."""
    documents: List[Document] = Field(default_factory=list)
    policy_terms: Optional[PolicyTerms] = None

    class Config:
        json_schema_extra = {
            "example": {
                "policy_id": "POL-2024-123456",
                "claim_type": "Life",
                "channel": "WhatsApp",
                "beneficiary": {"name": "Siti Rahma", "nik": "3217050801900002"},
                "claimed_amount": 30000000,
                "incident": {"cause_of_death": "Natural causes"},
                "documents": [{"document_type": "death_cert", "url": "/docs/death_cert.pdf"}]
            }
        }


class Claim(TimestampMixin, ClaimBase):
    """Complete claim with all decisioning state."""
    claim_id: str
    stage: ClaimStage = ClaimStage.INTAKE

    documents: List[Document] = Field(default_factory=list)
    policy_terms: Optional[PolicyTerms] = None

    # Decisioning outputs
    fraud_indicators: List[FraudIndicator] = Field(default_factory=list)
    risk_score: Optional[float] = None
    red_flags: List[str] = Field(default_factory=list)
    decision: Optional[Decision] = None
    ai_analysis: Optional[AIAnalysis] = None
    aml_check: Optional[AMLCheck] = None

    # Processing
    assignee: Optional[str] = None
    sla_deadline: Optional[datetime] = None
    sla_status: SLAColor = SLAColor.GREEN
    audit_log: List[AuditLog] = Field(default_factory=list)

    @property
    def benefit_amount(self) -> float:
        """Decision amount once computed, else the claimed amount."""
        if self.decision and self.decision.amount is not None:
            return self.decision.amount
        return self.claimed_amount or 0.0

    @property
    def is_closed(self) -> bool:
        return self.stage == ClaimStage.CLOSED

    @property
    def uploaded_document_types(self) -> List[DocumentType]:
        return [d.document_type for d in self.documents]


class ClaimUpdate(BaseModel):
    """Partial update applied by the store. Unset fields are left untouched."""
    stage: Optional[ClaimStage] = None
    claimed_amount: Optional[float] = Field(default=None, ge=0)
    assignee: Optional[str] = None
    incident: Optional[IncidentDetails] = None
    policy_terms: Optional[PolicyTerms] = None
    beneficiary: Optional[BeneficiaryInfo] = None
    documents: Optional[List[Document]] = None
    fraud_indicators: Optional[List[FraudIndicator]] = None
    risk_score: Optional[float] = None
    red_flags: Optional[List[str]] = None
    decision: Optional[Decision] = None
    ai_analysis: Optional[AIAnalysis] = None
    aml_check: Optional[AMLCheck] = None
    sla_deadline: Optional[datetime] = None
    sla_status: Optional[SLAColor] = None


class ClaimSummary(BaseModel):
    """Brief claim summary for listings."""
    claim_id: str
    policy_id: str
    claim_type: ClaimType
    stage: ClaimStage
    channel: Channel
    claimed_amount: Optional[float] = None
    risk_score: Optional[float] = None
    sla_status: SLAColor
    created_at: datetime

    @classmethod
    def from_claim(cls, claim: Claim) -> "ClaimSummary":
        return cls(
            claim_id=claim.claim_id,
            policy_id=claim.policy_id,
            claim_type=claim.claim_type,
            stage=claim.stage,
            channel=claim.channel,
            claimed_amount=claim.claimed_amount,
            risk_score=claim.risk_score,
            sla_status=claim.sla_status,
            created_at=claim.created_at
        )


class ClaimHistory(BaseModel):
    """Historical claim counts used by fraud and velocity scoring."""
    beneficiary_claims: int = 1     # All claims by the beneficiary, this one included
    recent_claims: int = 1          # Within the rolling velocity window
    same_day_claims: int = 1
    prior_policy_claims: int = 0    # Earlier claims on the same policy
