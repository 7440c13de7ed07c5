from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from src.clinics_link.authorization import ALL_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.clinic import Department
from src.clinics_link.services.departments.service import department_service

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=List[Department])
async def list_departments(ctx: RequestContext = Depends(require_roles(*ALL_ROLES))) -> List[Department]:
    return department_service.list_departments(ctx.require_clinic())
