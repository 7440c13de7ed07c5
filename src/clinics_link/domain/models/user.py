from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, EmailStr, Field

from src.clinics_link.domain.exceptions import InvalidOperationError
from src.clinics_link.domain.models.common import new_id, utcnow


class Role(str, Enum):
    ADMIN = "ADMIN"
    CLINIC_ADMIN = "CLINIC_ADMIN"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    STAFF = "STAFF"
    RECEPTIONIST = "RECEPTIONIST"


# Roles that count as administrators of a clinic when protecting the last
# admin from demotion or removal.
CLINIC_ADMIN_ROLES = frozenset({Role.ADMIN, Role.CLINIC_ADMIN})


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    email: EmailStr
    password_hash: str
    name: str
    phone: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    last_login_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def deactivate(self) -> None:
        if self.status == UserStatus.INACTIVE:
            raise InvalidOperationError(f"User {self.id} is already inactive")
        self.status = UserStatus.INACTIVE
        self.updated_at = utcnow()

    def activate(self) -> None:
        if self.status == UserStatus.ACTIVE:
            raise InvalidOperationError(f"User {self.id} is already active")
        self.status = UserStatus.ACTIVE
        self.updated_at = utcnow()


class ClinicMembership(BaseModel):
    """The (user, clinic) edge. Role lives here, never on User."""

    user_id: str
    clinic_id: str
    role: Role = Role.STAFF
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


def find_membership(memberships: Iterable[ClinicMembership], clinic_id: str) -> Optional[ClinicMembership]:
    """Return the membership held in ``clinic_id``, or None.

    Absence is not an error here; turning it into a decision is the
    authorization guard's job.
    """

    for membership in memberships:
        if membership.clinic_id == clinic_id:
            return membership
    return None


def has_global_admin(memberships: Iterable[ClinicMembership]) -> bool:
    """True when any membership, in any clinic, carries the ADMIN role.

    Such a user is treated as a global super-user. This mirrors how the
    system has always behaved and is kept for compatibility (see DESIGN.md).
    """

    return any(m.role == Role.ADMIN for m in memberships)


class AuthenticatedUser(BaseModel):
    """The caller of a request, with the full membership set already loaded.

    Built once per request by the authentication dependency so that the
    authorization guard never performs I/O.
    """

    id: str
    email: str
    name: str
    memberships: List[ClinicMembership] = Field(default_factory=list)

    @property
    def is_global_admin(self) -> bool:
        return has_global_admin(self.memberships)

    def role_in(self, clinic_id: str) -> Optional[Role]:
        membership = find_membership(self.memberships, clinic_id)
        return membership.role if membership is not None else None
