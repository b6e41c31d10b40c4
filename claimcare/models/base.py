# claimcare/models/base.py
"""Base models for all entities."""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every stored datetime uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def touch(self):
        """Update the updated_at timestamp."""
        self.updated_at = utcnow()


class AuditLog(BaseModel):
    """Audit log entry."""
    timestamp: datetime = Field(default_factory=utcnow)
    action: str
    actor: Optional[str] = None  # User or system
    details: Dict[str, Any] = Field(default_factory=dict)
