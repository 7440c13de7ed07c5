from __future__ import annotations

from typing import List, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.clinics_link.authorization import MANAGER_ROLES, require_roles
from src.clinics_link.domain.models.user import Role
from src.clinics_link.services.roles.service import RoleDescription, role_service

router = APIRouter(prefix="/roles", tags=["roles"], dependencies=[Depends(require_roles(*MANAGER_ROLES))])


class SimpleRole(BaseModel):
    value: Role
    label: str


class RolesResponse(BaseModel):
    roles: List[RoleDescription]


class SimpleRolesResponse(BaseModel):
    roles: List[SimpleRole]


@router.get("", response_model=Union[RolesResponse, SimpleRolesResponse])
async def list_roles(detailed: bool = False) -> Union[RolesResponse, SimpleRolesResponse]:
    roles = role_service.list_roles()
    if detailed:
        return RolesResponse(roles=roles)
    return SimpleRolesResponse(roles=[SimpleRole(value=r.value, label=r.label) for r in roles])
