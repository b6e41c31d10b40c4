# claimcare/services/document_requirements.py
"""Per claim type document checklists and completeness checking."""

from typing import Dict, List, Iterable, Optional
from pydantic import BaseModel

from claimcare.core.constants import ClaimType, DocumentType
from claimcare.models.decisioning import CompletenessResult


class DocumentRequirement(BaseModel):
    document_type: DocumentType
    required: bool
    conditional: Optional[str] = None  # Condition flag that makes it required
    description: str


def _req(document_type: DocumentType, description: str, conditional: Optional[str] = None) -> DocumentRequirement:
    return DocumentRequirement(
        document_type=document_type,
        required=conditional is None,
        conditional=conditional,
        description=description
    )


DOCUMENT_REQUIREMENTS: Dict[str, List[DocumentRequirement]] = {
    ClaimType.LIFE.value: [
        _req(DocumentType.POLIS, "Policy document showing coverage details"),
        _req(DocumentType.DEATH_CERT, "Official death certificate (Akta/Surat Kematian)"),
        _req(DocumentType.ID_BENEFICIARY, "Beneficiary identification (KTP/Passport)"),
        _req(DocumentType.CLAIM_FORM, "Completed claim form with signatures"),
        _req(DocumentType.DOCTOR_LETTER, "Doctor statement on cause of death"),
        _req(DocumentType.BANK_ACCOUNT, "Bank account details for payment"),
        _req(DocumentType.POLICE_REPORT, "Police report if death due to accident", "accident"),
        _req(DocumentType.FAMILY_RELATION, "Family relation proof (KK/Birth Certificate)", "beneficiary_verification"),
    ],
    ClaimType.CRITICAL_ILLNESS.value: [
        _req(DocumentType.POLIS, "Policy document"),
        _req(DocumentType.ID_TERTANGGUNG, "Insured person ID"),
        _req(DocumentType.ID_BENEFICIARY, "Policy holder ID"),
        _req(DocumentType.CLAIM_FORM, "CI claim form"),
        _req(DocumentType.CI_DIAGNOSIS, "Diagnosis results and lab reports"),
        _req(DocumentType.MEDICAL_REPORT, "Medical authorization letter"),
        _req(DocumentType.BANK_ACCOUNT, "Bank account for payment"),
        _req(DocumentType.ACCIDENT_REPORT, "Accident report if CI caused by accident", "ci_from_accident"),
    ],
    ClaimType.ACCIDENT.value: [
        _req(DocumentType.CLAIM_FORM, "Health/accident claim form"),
        _req(DocumentType.POLIS, "Policy document"),
        _req(DocumentType.ID_TERTANGGUNG, "ID of insured"),
        _req(DocumentType.MEDICAL_RECEIPT, "Original receipts with cost breakdown"),
        _req(DocumentType.MEDICAL_RESUME, "Medical resume from hospital"),
        _req(DocumentType.DOCTOR_LETTER, "Doctor statement"),
        _req(DocumentType.POLICE_REPORT, "Police report for traffic accidents", "traffic_accident"),
        _req(DocumentType.LAB_RESULT, "Lab/X-ray results if performed", "if_performed"),
    ],
    ClaimType.HEALTH.value: [
        _req(DocumentType.CLAIM_FORM, "Health claim form"),
        _req(DocumentType.POLIS, "Policy document"),
        _req(DocumentType.ID_TERTANGGUNG, "ID of insured"),
        _req(DocumentType.MEDICAL_RECEIPT, "Original receipts and bills"),
        _req(DocumentType.MEDICAL_RESUME, "Medical resume"),
        _req(DocumentType.DOCTOR_LETTER, "Doctor certificate"),
    ],
}


def _type_key(claim_type) -> str:
    return claim_type.value if isinstance(claim_type, ClaimType) else str(claim_type)


def get_checklist(claim_type) -> List[DocumentRequirement]:
    """Checklist for a claim type; unknown types have an empty checklist."""
    return DOCUMENT_REQUIREMENTS.get(_type_key(claim_type), [])


def check_completeness(
    claim_type,
    uploaded_documents: Iterable[DocumentType],
    conditions: Optional[Dict[str, bool]] = None
) -> CompletenessResult:
    """
    Compare uploaded document types with the checklist.

    A conditional requirement counts only when its condition flag is true.
    With nothing required the percentage is 0.
    """
    conditions = conditions or {}
    uploaded = {DocumentType(d) for d in uploaded_documents}
    missing: List[DocumentType] = []
    required_count = 0
    present_count = 0

    for requirement in get_checklist(claim_type):
        is_required = requirement.required or (
            requirement.conditional is not None and conditions.get(requirement.conditional, False)
        )
        if not is_required:
            continue
        required_count += 1
        if requirement.document_type in uploaded:
            present_count += 1
        else:
            missing.append(requirement.document_type)

    # Half-up rounding
    percentage = int(present_count * 100 / required_count + 0.5) if required_count else 0

    return CompletenessResult(
        complete=not missing,
        missing=missing,
        percentage=percentage
    )
