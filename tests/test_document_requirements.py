from claimcare.core.constants import ClaimType, DocumentType
from claimcare.services.document_requirements import check_completeness, get_checklist

from conftest import LIFE_DOCUMENTS


def test_complete_life_claim():
    result = check_completeness(ClaimType.LIFE, LIFE_DOCUMENTS)

    assert result.complete
    assert result.missing == []
    assert result.percentage == 100


def test_conditional_requirement_counts_only_when_flag_set():
    without_flag = check_completeness(ClaimType.LIFE, LIFE_DOCUMENTS)
    with_flag = check_completeness(ClaimType.LIFE, LIFE_DOCUMENTS, {"accident": True})

    assert without_flag.complete
    assert not with_flag.complete
    assert with_flag.missing == [DocumentType.POLICE_REPORT]
    # 6 of 7, rounded half up
    assert with_flag.percentage == 86


def test_missing_documents_listed_in_checklist_order():
    result = check_completeness(ClaimType.HEALTH, [DocumentType.POLIS, DocumentType.DOCTOR_LETTER])

    assert result.missing == [
        DocumentType.CLAIM_FORM,
        DocumentType.ID_TERTANGGUNG,
        DocumentType.MEDICAL_RECEIPT,
        DocumentType.MEDICAL_RESUME,
    ]
    assert result.percentage == 33


def test_accepts_raw_document_type_values():
    result = check_completeness(ClaimType.HEALTH, ["claim_form", "polis", "id_tertanggung"])
    assert result.percentage == 50


def test_unknown_claim_type_has_empty_checklist():
    assert get_checklist("Marine") == []

    result = check_completeness("Marine", [])
    assert result.complete
    assert result.percentage == 0


def test_ci_checklist_has_one_conditional_entry():
    checklist = get_checklist(ClaimType.CRITICAL_ILLNESS)

    conditional = [r for r in checklist if r.conditional]
    assert len(checklist) == 8
    assert [r.document_type for r in conditional] == [DocumentType.ACCIDENT_REPORT]
    assert not conditional[0].required
