from __future__ import annotations

from typing import List

from pydantic import BaseModel

from src.clinics_link.domain.models.user import Role


class RoleDescription(BaseModel):
    value: Role
    label: str
    description: str


_ROLE_DESCRIPTIONS = [
    RoleDescription(
        value=Role.ADMIN,
        label="System administrator",
        description="Highest privilege; manages every clinic and user",
    ),
    RoleDescription(
        value=Role.CLINIC_ADMIN,
        label="Clinic administrator",
        description="Manages the users, settings and daily operation of one clinic",
    ),
    RoleDescription(
        value=Role.DOCTOR,
        label="Doctor",
        description="Views and manages patient visits, appointments and basic clinical information",
    ),
    RoleDescription(
        value=Role.NURSE,
        label="Nurse",
        description="Supports doctors with patient registration and the consultation flow",
    ),
    RoleDescription(
        value=Role.STAFF,
        label="Staff",
        description="General clinic support with limited permissions",
    ),
    RoleDescription(
        value=Role.RECEPTIONIST,
        label="Receptionist",
        description="Handles patient registration, appointments and front-desk service",
    ),
]


class RoleService:
    def list_roles(self) -> List[RoleDescription]:
        return [r.model_copy() for r in _ROLE_DESCRIPTIONS]


role_service = RoleService()
