# claimcare/storage/policy_store.py
"""Policy storage implementation."""

from typing import Dict, Any, Optional

from claimcare.storage.base import BaseStore
from claimcare.models.policy import Policy
from claimcare.core.logging import get_logger

logger = get_logger(__name__)


class PolicyStore(BaseStore[Policy]):
    """Storage for policy entities."""

    def __init__(self, data_dir: Optional[str] = None):
        super().__init__(data_dir=data_dir, filename="policies.json")

    def _get_id(self, entity: Policy) -> str:
        return entity.policy_id

    def _serialize(self, entity: Policy) -> Dict[str, Any]:
        return entity.model_dump(mode='json')

    def _deserialize(self, data: Dict[str, Any]) -> Policy:
        return Policy.model_validate(data)

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        """Look up a policy. Absence is returned as None."""
        policy = self.get(policy_id)
        if policy is None:
            logger.debug("Policy lookup missed", policy_id=policy_id)
        return policy

