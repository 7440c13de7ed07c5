from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.clinics_link.config import settings
from src.clinics_link.domain.exceptions import (
    EntityNotFoundError,
    InvalidOperationError,
    PermissionDeniedError,
)
from src.clinics_link.domain.models.common import Page
from src.clinics_link.domain.models.user import (
    CLINIC_ADMIN_ROLES,
    AuthenticatedUser,
    ClinicMembership,
    Role,
    UserStatus,
)
from src.clinics_link.infra.db.registry import repositories

logger = logging.getLogger(__name__)


class ClinicUser(BaseModel):
    user_id: str
    clinic_id: str
    email: str
    name: str
    phone: Optional[str] = None
    status: UserStatus
    role: Role
    joined_at: datetime


class RoleChange(BaseModel):
    user_id: str
    clinic_id: str
    previous_role: Role
    new_role: Role


class ClinicUserService:
    """Membership management inside one clinic."""

    def ensure_same_clinic(self, actor: AuthenticatedUser, context_clinic_id: str, clinic_id: str) -> None:
        """Managers act on the clinic they are working in; global admins on any."""

        if clinic_id != context_clinic_id and not actor.is_global_admin:
            raise PermissionDeniedError("You can only manage users in your own clinic")

    def _require_clinic(self, clinic_id: str) -> None:
        if repositories.clinics.get(clinic_id) is None:
            raise EntityNotFoundError("Clinic", clinic_id)

    def _require_membership(self, clinic_id: str, user_id: str) -> ClinicMembership:
        membership = repositories.memberships.get(user_id, clinic_id)
        if membership is None:
            raise EntityNotFoundError("ClinicMembership", user_id)
        return membership

    def _ensure_not_last_admin(self, membership: ClinicMembership, new_role: Optional[Role]) -> None:
        if membership.role not in CLINIC_ADMIN_ROLES:
            return
        if new_role in CLINIC_ADMIN_ROLES:
            return
        admins = [m for m in repositories.memberships.list(membership.clinic_id) if m.role in CLINIC_ADMIN_ROLES]
        if len(admins) <= 1:
            raise InvalidOperationError("Cannot remove the last admin from the clinic")

    def _ensure_can_grant(self, actor: AuthenticatedUser, role: Role) -> None:
        if role == Role.ADMIN and not actor.is_global_admin:
            raise PermissionDeniedError("Only a system administrator can grant the ADMIN role")

    def _ensure_can_revoke(self, actor: AuthenticatedUser, membership: ClinicMembership) -> None:
        if membership.role == Role.ADMIN and not actor.is_global_admin:
            raise PermissionDeniedError("Only a system administrator can change or remove an ADMIN membership")

    def list_members(
        self,
        clinic_id: str,
        *,
        roles: Optional[List[Role]] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[ClinicUser]:
        self._require_clinic(clinic_id)

        term = search.strip().lower() if search else None
        members: List[ClinicUser] = []
        for membership in repositories.memberships.list(clinic_id):
            if roles and membership.role not in roles:
                continue
            user = repositories.users.get(membership.user_id)
            if user is None:
                continue
            if term and not (
                term in user.name.lower() or term in user.email.lower() or term in (user.phone or "").lower()
            ):
                continue
            members.append(
                ClinicUser(
                    user_id=user.id,
                    clinic_id=clinic_id,
                    email=user.email,
                    name=user.name,
                    phone=user.phone,
                    status=user.status,
                    role=membership.role,
                    joined_at=membership.created_at,
                )
            )

        members.sort(key=lambda m: (m.name.lower(), m.user_id))
        return Page[ClinicUser].from_items(members, page=page, limit=limit or settings.default_page_size)

    def add_member(
        self,
        clinic_id: str,
        *,
        user_id: str,
        role: Role = Role.STAFF,
        actor: AuthenticatedUser,
    ) -> ClinicMembership:
        self._require_clinic(clinic_id)
        if repositories.users.get(user_id) is None:
            raise EntityNotFoundError("User", user_id)
        self._ensure_can_grant(actor, role)
        if repositories.memberships.get(user_id, clinic_id) is not None:
            raise InvalidOperationError("User is already a member of this clinic")

        membership = repositories.memberships.create(
            ClinicMembership(user_id=user_id, clinic_id=clinic_id, role=role),
            clinic_id,
        )
        logger.info("User %s added to clinic %s as %s by %s", user_id, clinic_id, role.value, actor.id)
        return membership

    def change_role(
        self,
        clinic_id: str,
        user_id: str,
        *,
        new_role: Role,
        actor: AuthenticatedUser,
    ) -> RoleChange:
        self._require_clinic(clinic_id)
        membership = self._require_membership(clinic_id, user_id)
        self._ensure_can_revoke(actor, membership)
        self._ensure_can_grant(actor, new_role)
        self._ensure_not_last_admin(membership, new_role)

        if membership.role != new_role:
            repositories.memberships.update(user_id, {"role": new_role}, clinic_id)
            logger.info(
                "Role of user %s in clinic %s changed %s -> %s by %s",
                user_id,
                clinic_id,
                membership.role.value,
                new_role.value,
                actor.id,
            )

        return RoleChange(user_id=user_id, clinic_id=clinic_id, previous_role=membership.role, new_role=new_role)

    def remove_member(self, clinic_id: str, user_id: str, *, actor: AuthenticatedUser) -> ClinicMembership:
        self._require_clinic(clinic_id)
        membership = self._require_membership(clinic_id, user_id)
        self._ensure_can_revoke(actor, membership)
        self._ensure_not_last_admin(membership, None)

        repositories.memberships.delete(user_id, clinic_id)
        logger.info("User %s removed from clinic %s by %s", user_id, clinic_id, actor.id)
        return membership


clinic_user_service = ClinicUserService()
