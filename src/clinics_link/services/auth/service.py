from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from src.clinics_link.domain.exceptions import (
    AuthenticationError,
    EntityNotFoundError,
    PermissionDeniedError,
    UniqueConstraintViolationError,
)
from src.clinics_link.domain.models.common import utcnow
from src.clinics_link.domain.models.user import AuthenticatedUser, User
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.security import create_access_token, hash_password, verify_password
from src.clinics_link.services.users.service import UserClinic, user_service

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    access_token: str
    user: User
    clinics: List[UserClinic]


class AuthService:
    def register(self, *, email: str, password: str, name: str, phone: Optional[str] = None) -> User:
        if repositories.users.get_by_email(email) is not None:
            raise UniqueConstraintViolationError("User", "email", email)

        user = User(email=email, password_hash=hash_password(password), name=name, phone=phone)
        repositories.users.save(user)
        logger.info("Registered user %s", user.id)
        return user

    def login(self, *, email: str, password: str) -> LoginResult:
        """Check credentials and issue an access token.

        Unknown email and wrong password give the same error so that the
        response does not reveal which accounts exist.
        """

        user = repositories.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("User account is inactive")

        user.last_login_at = utcnow()
        repositories.users.save(user)

        return LoginResult(
            access_token=create_access_token(user.id),
            user=user,
            clinics=user_service.list_user_clinics(user.id),
        )

    def select_clinic(self, user: AuthenticatedUser, clinic_id: str) -> UserClinic:
        """Confirm the caller may work in ``clinic_id`` and return it with their role."""

        clinic = repositories.clinics.get(clinic_id)
        if clinic is None:
            raise EntityNotFoundError("Clinic", clinic_id)

        role = user.role_in(clinic_id)
        if role is None:
            raise PermissionDeniedError("You do not have access to this clinic")

        return UserClinic(
            id=clinic.id,
            name=clinic.name,
            address=clinic.address,
            phone=clinic.phone,
            email=clinic.email,
            logo=clinic.logo,
            role=role,
        )


auth_service = AuthService()
