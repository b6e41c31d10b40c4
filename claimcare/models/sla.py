from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

from claimcare.core.constants import SLAColor


class SLAConfig(BaseModel):
    stage: str
    target_hours: float
    warning_threshold: float   # Fraction of target, e.g. 0.8
    critical_threshold: float  # Fraction of target, e.g. 0.95


class SLAStatus(BaseModel):
    claim_id: str
    current_stage: str
    time_elapsed: float
    time_remaining: float
    target_time: float
    status: SLAColor
    breach_risk: float = Field(ge=0, le=1)
    predicted_completion_time: Optional[datetime] = None
    recommendations: List[str] = Field(default_factory=list)


class OJKSummary(BaseModel):
    total_claims: int = 0
    on_time_claims: int = 0
    delayed_claims: int = 0
    average_processing_time: float = 0.0
    sla_compliance_rate: float = 0.0


class TypeCompliance(BaseModel):
    count: int
    average_time: float
    compliance: float


class SLABreach(BaseModel):
    claim_id: str
    claim_type: str
    delay_hours: float
    reason: str


class OJKReport(BaseModel):
    """Regulator (OJK) SLA compliance rollup."""
    summary: OJKSummary
    by_type: Dict[str, TypeCompliance] = Field(default_factory=dict)
    breaches: List[SLABreach] = Field(default_factory=list)


class StageMetrics(BaseModel):
    average: float = 0.0
    p95: float = 0.0
    compliance: float = 100.0


class SLAMetrics(BaseModel):
    intake: StageMetrics
    validation: StageMetrics
    decision: StageMetrics
    payment: StageMetrics
    overall: StageMetrics
