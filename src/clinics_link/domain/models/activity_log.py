from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.clinics_link.domain.models.common import new_id, utcnow


class ActivityLog(BaseModel):
    """Audit trail entry for one action performed inside a clinic.

    Keep ``details`` small and free of clinical content: ids, counts and
    flags only.
    """

    id: str = Field(default_factory=new_id)
    clinic_id: str
    user_id: str
    action: str
    resource: str
    resource_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
