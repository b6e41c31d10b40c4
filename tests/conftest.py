# tests/conftest.py
from datetime import date, datetime, timedelta
from typing import Iterable, List

import pytest

from claimcare.ai.fraud_detection import FraudDetector
from claimcare.ai.risk_scoring import RiskScorer
from claimcare.ai.signals import SetBlacklist, StaticSignalProvider
from claimcare.core.constants import (
    ClaimStage, ClaimType, DocumentType, OCRStatus, PolicyStatus, RiskLevel
)
from claimcare.models.claim import (
    BeneficiaryInfo, Claim, ClaimCreate, Document, PolicyTerms
)
from claimcare.models.decisioning import FraudRiskAssessment
from claimcare.models.policy import Beneficiary, Policy
from claimcare.services.approval import ApprovalManager
from claimcare.services.rule_engine import RuleEngine
from claimcare.services.sla_monitor import SLAMonitor
from claimcare.storage.approval_store import ApprovalLedger
from claimcare.storage.claim_store import ClaimStore
from claimcare.storage.policy_store import PolicyStore
from claimcare.workflows.claim_decisioning import ClaimDecisionService
from claimcare.workflows.claim_pipeline import ClaimPipeline

NOW = datetime(2025, 6, 1, 12, 0, 0)
BENEFICIARY_NIK = "3217050801900002"
BLACKLISTED_NIK = "3171000000000666"
POLICY_ID = "POL-2024-000001"

LIFE_DOCUMENTS = [
    DocumentType.POLIS,
    DocumentType.DEATH_CERT,
    DocumentType.ID_BENEFICIARY,
    DocumentType.CLAIM_FORM,
    DocumentType.DOCTOR_LETTER,
    DocumentType.BANK_ACCOUNT,
]


def fixed_clock(moment: datetime = NOW):
    return lambda: moment


def make_documents(types: Iterable[DocumentType], ocr_status: OCRStatus = OCRStatus.MATCHED) -> List[Document]:
    return [
        Document(document_type=t, url=f"/docs/{t.value}.pdf", ocr_status=ocr_status, uploaded_at=NOW)
        for t in types
    ]


def make_claim(**overrides) -> Claim:
    """A clean, fully documented Life claim on a mature policy."""
    data = dict(
        claim_id="CLM-2025-000001",
        policy_id=POLICY_ID,
        claim_type=ClaimType.LIFE,
        stage=ClaimStage.INTAKE,
        beneficiary=BeneficiaryInfo(name="Siti Rahma", nik=BENEFICIARY_NIK, match_score=0.96),
        claimed_amount=30_000_000,
        documents=make_documents(LIFE_DOCUMENTS),
        policy_terms=PolicyTerms(start_date=date(2020, 1, 1), max_benefit=500_000_000),
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return Claim(**data)


def make_claim_create(**overrides) -> ClaimCreate:
    data = dict(
        policy_id=POLICY_ID,
        claim_type=ClaimType.LIFE,
        beneficiary=BeneficiaryInfo(name="Siti Rahma", nik=BENEFICIARY_NIK),
        claimed_amount=30_000_000,
        documents=make_documents(LIFE_DOCUMENTS),
    )
    data.update(overrides)
    return ClaimCreate(**data)


def make_policy(**overrides) -> Policy:
    data = dict(
        policy_id=POLICY_ID,
        status=PolicyStatus.ACTIVE,
        product=ClaimType.LIFE,
        holder_name="Budi Santoso",
        holder_nik="3217050801900001",
        start_date=date(2020, 1, 1),
        max_benefit=500_000_000,
        beneficiaries=[
            Beneficiary(name="Siti Rahma", nik=BENEFICIARY_NIK, relationship="spouse", match_score=0.96),
            Beneficiary(name="Andi Wijaya", nik=BLACKLISTED_NIK, relationship="child", match_score=0.97),
        ],
    )
    data.update(overrides)
    return Policy(**data)


def make_fraud(risk: float = 0.0, blacklist: bool = False, siu: bool = False) -> FraudRiskAssessment:
    return FraudRiskAssessment(
        risk_score=risk,
        combined_score=risk,
        risk_level=RiskLevel.LOW,
        requires_siu=siu or blacklist,
        blacklist_match=blacklist,
    )


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


# ===================
# Fixtures
# ===================

@pytest.fixture
def claim_store() -> ClaimStore:
    return ClaimStore()


@pytest.fixture
def policy_store() -> PolicyStore:
    store = PolicyStore()
    store.save(make_policy())
    return store


@pytest.fixture
def fraud_detector(claim_store) -> FraudDetector:
    return FraudDetector(
        signals=StaticSignalProvider(),
        blacklist=SetBlacklist([BLACKLISTED_NIK]),
        history=claim_store,
    )


@pytest.fixture
def approval_manager() -> ApprovalManager:
    return ApprovalManager(ledger=ApprovalLedger(), clock=fixed_clock())


@pytest.fixture
def pipeline(claim_store, policy_store, fraud_detector) -> ClaimPipeline:
    return ClaimPipeline(
        claim_store=claim_store,
        policy_store=policy_store,
        rule_engine=RuleEngine(clock=fixed_clock()),
        fraud_detector=fraud_detector,
        risk_scorer=RiskScorer(fraud_detector),
        sla_monitor=SLAMonitor(clock=fixed_clock()),
    )


@pytest.fixture
def decision_service(claim_store, approval_manager) -> ClaimDecisionService:
    return ClaimDecisionService(claim_store=claim_store, approval_manager=approval_manager)
