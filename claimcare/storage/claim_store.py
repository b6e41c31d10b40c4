# claimcare/storage/claim_store.py
"""Claim storage implementation."""

import itertools
import threading
from typing import Dict, Any, Optional, List, Union
from datetime import datetime, timedelta

from claimcare.storage.base import BaseStore
from claimcare.models.base import AuditLog, utcnow
from claimcare.models.claim import (
    Claim, ClaimCreate, ClaimUpdate, ClaimHistory, Document
)
from claimcare.core.constants import (
    ClaimType, ClaimStage, Channel, VELOCITY_WINDOW_DAYS
)
from claimcare.core.exceptions import InvalidStageTransition
from claimcare.core.logging import get_logger

logger = get_logger(__name__)


class ClaimStore(BaseStore[Claim]):
    """Storage for claim entities. Claims are closed, never removed."""

    def __init__(self, data_dir: Optional[str] = None):
        super().__init__(data_dir=data_dir, filename="claims.json")
        self._sequence = itertools.count(self.count() + 1)
        self._sequence_lock = threading.Lock()

    def _get_id(self, entity: Claim) -> str:
        return entity.claim_id

    def _serialize(self, entity: Claim) -> Dict[str, Any]:
        return entity.model_dump(mode='json')

    def _deserialize(self, data: Dict[str, Any]) -> Claim:
        return Claim.model_validate(data)

    def _next_claim_id(self, created_at: datetime) -> str:
        with self._sequence_lock:
            number = next(self._sequence)
        return f"CLM-{created_at.year}-{number:06d}"

    # ===================
    # Claim lifecycle
    # ===================

    def create_claim(
        self,
        data: ClaimCreate,
        actor: str = "system",
        created_at: Optional[datetime] = None
    ) -> Claim:
        """Create a claim at the Intake stage."""
        created_at = created_at or utcnow()
        claim = Claim(
            **{name: getattr(data, name) for name in ClaimCreate.model_fields},
            claim_id=self._next_claim_id(created_at),
            stage=ClaimStage.INTAKE,
            created_at=created_at,
            updated_at=created_at,
        )
        claim.audit_log.append(AuditLog(
            timestamp=created_at,
            action="CLAIM_SUBMITTED",
            actor=actor,
            details={"channel": claim.channel.value}
        ))
        self.save(claim)
        logger.info("Claim created", claim_id=claim.claim_id, type=claim.claim_type.value)
        return claim

    def get_claim_by_id(self, claim_id: str) -> Optional[Claim]:
        return self.get(claim_id)

    def _apply(self, claim: Claim, changes: Dict[str, Any], actor: str) -> Claim:
        """Validate and persist changes. Caller holds the claim's lock."""
        new_stage = changes.get("stage")
        if new_stage is not None and new_stage != claim.stage:
            allowed = ClaimStage.valid_transitions()[claim.stage]
            if new_stage not in allowed:
                raise InvalidStageTransition(claim.stage.value, new_stage.value)

        updated = claim.model_copy(update=changes)
        updated.audit_log = list(claim.audit_log)
        updated.touch()
        if new_stage is not None and new_stage != claim.stage:
            updated.audit_log.append(AuditLog(
                action="STAGE_CHANGED",
                actor=actor,
                details={"from": claim.stage.value, "to": new_stage.value}
            ))
        else:
            updated.audit_log.append(AuditLog(
                action="CLAIM_UPDATED",
                actor=actor,
                details={"fields": sorted(changes)}
            ))
        return self.save(updated)

    def update_claim(
        self,
        claim_id: str,
        patch: Union[ClaimUpdate, Dict[str, Any]],
        actor: str = "system"
    ) -> Optional[Claim]:
        """Apply a partial update. Returns None when the claim does not exist."""
        if isinstance(patch, dict):
            patch = ClaimUpdate.model_validate(patch)
        changes = {name: getattr(patch, name) for name in patch.model_fields_set}

        with self.locks.hold(claim_id):
            claim = self.get(claim_id)
            if claim is None:
                return None
            updated = self._apply(claim, changes, actor)

        logger.info("Claim updated", claim_id=claim_id, actor=actor, fields=",".join(sorted(changes)))
        return updated

    def add_document(self, claim_id: str, document: Document, actor: str = "system") -> Optional[Claim]:
        """Append a document to the claim's ordered document list."""
        with self.locks.hold(claim_id):
            claim = self.get(claim_id)
            if claim is None:
                return None
            updated = self._apply(claim, {"documents": claim.documents + [document]}, actor)

        logger.info("Document added", claim_id=claim_id, document_type=document.document_type.value)
        return updated

    def close_claim(self, claim_id: str, actor: str = "system") -> Optional[Claim]:
        """Soft-delete: move the claim to Closed."""
        return self.update_claim(claim_id, ClaimUpdate(stage=ClaimStage.CLOSED), actor)

    # ===================
    # Queries
    # ===================

    def list_claims(
        self,
        claim_type: Optional[ClaimType] = None,
        stage: Optional[ClaimStage] = None,
        channel: Optional[Channel] = None,
        policy_id: Optional[str] = None,
        beneficiary_nik: Optional[str] = None,
        assignee: Optional[str] = None,
        include_closed: bool = True
    ) -> List[Claim]:
        """List claims matching all given filters, newest first."""
        results = self.get_all()

        if claim_type:
            results = [c for c in results if c.claim_type == claim_type]

        if stage:
            results = [c for c in results if c.stage == stage]

        if channel:
            results = [c for c in results if c.channel == channel]

        if policy_id:
            results = [c for c in results if c.policy_id == policy_id]

        if beneficiary_nik:
            results = [c for c in results if c.beneficiary.nik == beneficiary_nik]

        if assignee:
            results = [c for c in results if c.assignee == assignee]

        if not include_closed:
            results = [c for c in results if not c.is_closed]

        results.sort(key=lambda c: c.created_at, reverse=True)
        return results

    def history_for(self, claim: Claim) -> ClaimHistory:
        """Claim counts for the claim's beneficiary and policy, relative to its creation time."""
        others = [c for c in self.get_all() if c.claim_id != claim.claim_id]
        same_beneficiary = [c for c in others if c.beneficiary.nik == claim.beneficiary.nik]
        window_start = claim.created_at - timedelta(days=VELOCITY_WINDOW_DAYS)

        recent = [c for c in same_beneficiary if window_start <= c.created_at <= claim.created_at]
        same_day = [c for c in same_beneficiary if c.created_at.date() == claim.created_at.date()]
        prior_policy = [
            c for c in others
            if c.policy_id == claim.policy_id and c.created_at < claim.created_at
        ]

        return ClaimHistory(
            beneficiary_claims=len(same_beneficiary) + 1,
            recent_claims=len(recent) + 1,
            same_day_claims=len(same_day) + 1,
            prior_policy_claims=len(prior_policy)
        )
