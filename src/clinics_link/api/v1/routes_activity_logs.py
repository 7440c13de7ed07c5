from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from src.clinics_link.api.v1.common import Pagination, pagination_params
from src.clinics_link.authorization import MANAGER_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.activity_log import ActivityLog
from src.clinics_link.domain.models.common import Page
from src.clinics_link.services.audit.service import audit_service

router = APIRouter(prefix="/activity-logs", tags=["activity-logs"])


@router.get("", response_model=Page[ActivityLog])
async def list_activity_logs(
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    pagination: Pagination = Depends(pagination_params),
    ctx: RequestContext = Depends(require_roles(*MANAGER_ROLES)),
) -> Page[ActivityLog]:
    return audit_service.list_logs(
        ctx.require_clinic(),
        user_id=user_id,
        action=action,
        page=pagination.page,
        limit=pagination.limit,
    )
