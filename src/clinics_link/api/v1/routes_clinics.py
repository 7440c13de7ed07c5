from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from src.clinics_link.authorization import ALL_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.clinic import Clinic
from src.clinics_link.domain.models.user import Role
from src.clinics_link.services.clinics.service import clinic_service

router = APIRouter(prefix="/clinics", tags=["clinics"])


class CurrentClinicResponse(Clinic):
    role: Optional[Role] = None


@router.get("/current", response_model=CurrentClinicResponse)
async def current_clinic(ctx: RequestContext = Depends(require_roles(*ALL_ROLES))) -> CurrentClinicResponse:
    """The clinic the request acts in, with the caller's role there."""

    clinic = clinic_service.get_clinic(ctx.require_clinic())
    return CurrentClinicResponse(**clinic.model_dump(), role=ctx.role)
