from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date

from claimcare.core.constants import ClaimType, PolicyStatus
from claimcare.models.base import TimestampMixin

# ===================
# Sub-Models
# ===================

class Beneficiary(BaseModel):
    """Beneficiary registered on the policy."""
    name: str
    nik: str
    relationship: str = ""
    percentage: float = Field(default=100.0, ge=0, le=100)
    match_score: Optional[float] = None

# ===================
# Main Policy Model
# ===================

class Policy(TimestampMixin):
    """Policy record consumed by decisioning."""
    policy_id: str
    status: PolicyStatus = PolicyStatus.ACTIVE
    product: ClaimType
    holder_name: str
    holder_nik: str
    start_date: Optional[date] = None
    max_benefit: Optional[float] = None
    beneficiaries: List[Beneficiary] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "policy_id": "POL-2024-123456",
                "status": "Active",
                "product": "Life",
                "holder_name": "Budi Santoso",
                "holder_nik": "3217050801900001",
                "start_date": "2021-03-01",
                "max_benefit": 500000000,
                "beneficiaries": [
                    {"name": "Siti Rahma", "nik": "3217050801900002",
                     "relationship": "spouse", "percentage": 100, "match_score": 0.96}
                ]
            }
        }

    @property
    def is_active(self) -> bool:
        return self.status == PolicyStatus.ACTIVE

    def find_beneficiary(self, nik: str) -> Optional[Beneficiary]:
        for beneficiary in self.beneficiaries:
            if beneficiary.nik == nik:
                return beneficiary
        return None
