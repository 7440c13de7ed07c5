from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from src.clinics_link.api.v1.common import parse_roles, record_activity
from src.clinics_link.authorization import RequestContext, require_roles
from src.clinics_link.domain.models.user import AuthenticatedUser, Role
from src.clinics_link.security import get_current_user
from src.clinics_link.services.users.service import UserClinic, UserProfile, user_service

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles(Role.ADMIN)


class UserClinicsResponse(BaseModel):
    user_id: str
    clinics: List[UserClinic]


@router.get("/me/clinics", response_model=UserClinicsResponse)
async def my_clinics(
    roles: Optional[str] = Query(None, description="Comma separated roles"),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> UserClinicsResponse:
    clinics = user_service.list_user_clinics(current_user.id, roles=parse_roles(roles))
    return UserClinicsResponse(user_id=current_user.id, clinics=clinics)


@router.get("/{user_id}/clinics", response_model=UserClinicsResponse)
async def user_clinics(
    user_id: str,
    roles: Optional[str] = Query(None, description="Comma separated roles"),
    ctx: RequestContext = Depends(admin_only),
) -> UserClinicsResponse:
    clinics = user_service.list_user_clinics(user_id, roles=parse_roles(roles))
    return UserClinicsResponse(user_id=user_id, clinics=clinics)


@router.post("/{user_id}/deactivate", response_model=UserProfile)
async def deactivate_user(
    user_id: str,
    request: Request,
    ctx: RequestContext = Depends(admin_only),
) -> UserProfile:
    user = user_service.deactivate_user(user_id, actor_id=ctx.user.id)
    record_activity(request, ctx, action="DEACTIVATE_USER", resource="user", resource_id=user_id)
    return UserProfile.from_user(user)


@router.post("/{user_id}/activate", response_model=UserProfile)
async def activate_user(
    user_id: str,
    request: Request,
    ctx: RequestContext = Depends(admin_only),
) -> UserProfile:
    user = user_service.activate_user(user_id, actor_id=ctx.user.id)
    record_activity(request, ctx, action="ACTIVATE_USER", resource="user", resource_id=user_id)
    return UserProfile.from_user(user)
