from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from src.clinics_link.config import settings
from src.clinics_link.domain.exceptions import AuthenticationError
from src.clinics_link.domain.models.user import AuthenticatedUser
from src.clinics_link.infra.db.registry import repositories

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# auto_error is off so that a missing header goes through the same 401
# handler as an invalid token.
_bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Validate ``token`` and return the user id it was issued for."""

    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid or expired token")
    return user_id


def load_authenticated_user(user_id: str) -> AuthenticatedUser:
    """Load a user together with every clinic membership they hold.

    Memberships are read fresh on each request; roles are never cached
    across requests.
    """

    user = repositories.users.get(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    return AuthenticatedUser(
        id=user.id,
        email=user.email,
        name=user.name,
        memberships=repositories.memberships.list_for_user(user.id),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency resolving the bearer token to the calling user."""

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")

    user_id = decode_access_token(credentials.credentials)
    return load_authenticated_user(user_id)
