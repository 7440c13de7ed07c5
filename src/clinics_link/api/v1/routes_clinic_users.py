from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel

from src.clinics_link.api.v1.common import Pagination, pagination_params, parse_roles, record_activity
from src.clinics_link.authorization import MANAGER_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.common import Page
from src.clinics_link.domain.models.user import ClinicMembership, Role
from src.clinics_link.services.clinic_users.service import ClinicUser, RoleChange, clinic_user_service

router = APIRouter(prefix="/clinics/{clinic_id}/users", tags=["clinic-users"])

managers = require_roles(*MANAGER_ROLES)


class AddMemberRequest(BaseModel):
    user_id: str
    role: Role = Role.STAFF


class UpdateRoleRequest(BaseModel):
    role: Role


class RemoveMemberResponse(BaseModel):
    user_id: str
    clinic_id: str
    removed: bool


def _scoped(clinic_id: str, ctx: RequestContext) -> str:
    clinic_user_service.ensure_same_clinic(ctx.user, ctx.require_clinic(), clinic_id)
    return clinic_id


@router.get("", response_model=Page[ClinicUser])
async def list_clinic_users(
    clinic_id: str,
    roles: Optional[str] = Query(None, description="Comma separated roles"),
    search: Optional[str] = None,
    pagination: Pagination = Depends(pagination_params),
    ctx: RequestContext = Depends(managers),
) -> Page[ClinicUser]:
    return clinic_user_service.list_members(
        _scoped(clinic_id, ctx),
        roles=parse_roles(roles),
        search=search,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post("", response_model=ClinicMembership, status_code=status.HTTP_201_CREATED)
async def add_clinic_user(
    clinic_id: str,
    payload: AddMemberRequest,
    request: Request,
    ctx: RequestContext = Depends(managers),
) -> ClinicMembership:
    membership = clinic_user_service.add_member(
        _scoped(clinic_id, ctx),
        user_id=payload.user_id,
        role=payload.role,
        actor=ctx.user,
    )
    record_activity(
        request,
        ctx,
        clinic_id=clinic_id,
        action="ADD_CLINIC_USER",
        resource="clinic_user",
        resource_id=payload.user_id,
        details={"role": payload.role.value},
    )
    return membership


@router.put("/{user_id}/role", response_model=RoleChange)
async def update_clinic_user_role(
    clinic_id: str,
    user_id: str,
    payload: UpdateRoleRequest,
    request: Request,
    ctx: RequestContext = Depends(managers),
) -> RoleChange:
    change = clinic_user_service.change_role(_scoped(clinic_id, ctx), user_id, new_role=payload.role, actor=ctx.user)
    record_activity(
        request,
        ctx,
        clinic_id=clinic_id,
        action="UPDATE_USER_ROLE",
        resource="clinic_user",
        resource_id=user_id,
        details={"previous_role": change.previous_role.value, "new_role": change.new_role.value},
    )
    return change


@router.delete("/{user_id}", response_model=RemoveMemberResponse)
async def remove_clinic_user(
    clinic_id: str,
    user_id: str,
    request: Request,
    ctx: RequestContext = Depends(managers),
) -> RemoveMemberResponse:
    clinic_user_service.remove_member(_scoped(clinic_id, ctx), user_id, actor=ctx.user)
    record_activity(
        request,
        ctx,
        clinic_id=clinic_id,
        action="REMOVE_CLINIC_USER",
        resource="clinic_user",
        resource_id=user_id,
    )
    return RemoveMemberResponse(user_id=user_id, clinic_id=clinic_id, removed=True)
