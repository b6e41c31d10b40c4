# claimcare/storage/approval_store.py
"""Append-only approval ledger keyed by claim id."""

from typing import Dict, List, Optional

from claimcare.models.approval import ApprovalAction
from claimcare.storage.base import KeyedLocks
from claimcare.core.constants import ApprovalTier
from claimcare.core.logging import get_logger

logger = get_logger(__name__)


class ApprovalLedger:
    """
    Holds the ordered approval actions of every claim.

    The duplicate check and the append happen under the claim's own lock;
    claims never contend with one another.
    """

    def __init__(self):
        self._actions: Dict[str, List[ApprovalAction]] = {}
        self._escalations: Dict[str, ApprovalTier] = {}
        self._locks = KeyedLocks()

    def append_if_new_user(self, claim_id: str, action: ApprovalAction) -> bool:
        """Append unless the user already has an action on this claim."""
        with self._locks.hold(claim_id):
            existing = self._actions.get(claim_id, [])
            if any(a.user_id == action.user_id for a in existing):
                return False
            self._actions[claim_id] = existing + [action]
            return True

    def actions_for(self, claim_id: str) -> List[ApprovalAction]:
        return list(self._actions.get(claim_id, []))

    def has_user_acted(self, claim_id: str, user_id: str) -> bool:
        return any(a.user_id == user_id for a in self._actions.get(claim_id, []))

    def record_escalation(self, claim_id: str, level: ApprovalTier):
        with self._locks.hold(claim_id):
            self._escalations[claim_id] = level

    def escalation_for(self, claim_id: str) -> Optional[ApprovalTier]:
        return self._escalations.get(claim_id)
