from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.clinics_link.domain.exceptions import BusinessRuleViolationError, EntityNotFoundError
from src.clinics_link.domain.models.user import Role, User, UserStatus
from src.clinics_link.infra.db.registry import repositories

logger = logging.getLogger(__name__)


class UserProfile(BaseModel):
    """Public view of a user; never carries the password hash."""

    id: str
    email: str
    name: str
    phone: Optional[str] = None
    status: UserStatus
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(**user.model_dump(exclude={"password_hash"}))


class UserClinic(BaseModel):
    id: str
    name: str
    address: str
    phone: str
    email: Optional[str] = None
    logo: Optional[str] = None
    role: Role


class UserService:
    def get_user(self, user_id: str) -> User:
        user = repositories.users.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

    def list_user_clinics(self, user_id: str, *, roles: Optional[List[Role]] = None) -> List[UserClinic]:
        """Clinics the user belongs to with the role held in each.

        Memberships pointing at a clinic that no longer exists are skipped.
        """

        self.get_user(user_id)
        results: List[UserClinic] = []
        for membership in repositories.memberships.list_for_user(user_id):
            if roles and membership.role not in roles:
                continue
            clinic = repositories.clinics.get(membership.clinic_id)
            if clinic is None:
                logger.warning("Membership of user %s points at missing clinic %s", user_id, membership.clinic_id)
                continue
            results.append(
                UserClinic(
                    id=clinic.id,
                    name=clinic.name,
                    address=clinic.address,
                    phone=clinic.phone,
                    email=clinic.email,
                    logo=clinic.logo,
                    role=membership.role,
                )
            )
        results.sort(key=lambda c: c.name)
        return results

    def deactivate_user(self, user_id: str, *, actor_id: str) -> User:
        if user_id == actor_id:
            raise BusinessRuleViolationError("You cannot deactivate your own account")
        user = self.get_user(user_id)
        user.deactivate()
        repositories.users.save(user)
        logger.info("User %s deactivated by %s", user_id, actor_id)
        return user

    def activate_user(self, user_id: str, *, actor_id: str) -> User:
        user = self.get_user(user_id)
        user.activate()
        repositories.users.save(user)
        logger.info("User %s activated by %s", user_id, actor_id)
        return user


user_service = UserService()
