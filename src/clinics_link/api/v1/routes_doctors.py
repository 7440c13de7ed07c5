from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from src.clinics_link.authorization import ALL_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.clinic import Doctor
from src.clinics_link.services.doctors.service import doctor_service

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.get("", response_model=List[Doctor])
async def list_doctors(
    department_id: Optional[str] = None,
    ctx: RequestContext = Depends(require_roles(*ALL_ROLES)),
) -> List[Doctor]:
    return doctor_service.list_doctors(ctx.require_clinic(), department_id=department_id)
