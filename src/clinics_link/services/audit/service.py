from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from src.clinics_link.config import settings
from src.clinics_link.domain.models.activity_log import ActivityLog
from src.clinics_link.domain.models.common import Page
from src.clinics_link.infra.db.registry import repositories

logger = logging.getLogger("audit")


class AuditService:
    def log_event(
        self,
        *,
        clinic_id: str,
        user_id: str,
        action: str,
        resource: str,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[ActivityLog]:
        """Record an activity in the clinic's log and emit it on the audit logger.

        - `action`: verb in upper snake case, e.g. "CREATE_APPOINTMENT".
        - `resource`: coarse type, e.g. "appointment", "patient".
        - `details`: small dict of ids, counts and flags. No clinical text.

        Failures are logged and swallowed so that auditing never breaks the
        request that triggered it.
        """

        entry = ActivityLog(
            clinic_id=clinic_id,
            user_id=user_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )

        try:
            payload = entry.model_dump(mode="json")
            logger.info(json.dumps(payload))
        except (TypeError, ValueError):
            # Fallback: drop details that are not JSON serializable.
            entry = entry.model_copy(update={"details": {}})
            logger.info(json.dumps(entry.model_dump(mode="json")))

        try:
            return repositories.activity_logs.create(entry, clinic_id)
        except Exception:
            logger.exception("Failed to persist activity log action=%s clinic=%s", action, clinic_id)
            return None

    def list_logs(
        self,
        clinic_id: str,
        *,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[ActivityLog]:
        logs = repositories.activity_logs.list_by_filters(clinic_id, user_id=user_id, action=action)
        return Page[ActivityLog].from_items(logs, page=page, limit=limit or settings.default_page_size)


audit_service = AuditService()
