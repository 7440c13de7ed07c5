"""Clinic-scoped role authorization.

``authorize`` is the whole decision: a pure function of the caller's
memberships, the clinic the request acts in and the route's policy. The
FastAPI side (``require_roles``) only gathers those inputs and turns a
denial into ``AccessDeniedError``, which the app maps to HTTP 403.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional

from fastapi import Depends, Request

from src.clinics_link.domain.exceptions import PermissionDeniedError
from src.clinics_link.domain.models.user import (
    AuthenticatedUser,
    ClinicMembership,
    Role,
    find_membership,
    has_global_admin,
)
from src.clinics_link.security import get_current_user
from src.clinics_link.tenancy import resolve_clinic_id

logger = logging.getLogger(__name__)


class DenialReason(str, Enum):
    MISSING_CLINIC_CONTEXT = "MissingClinicContext"
    NOT_A_MEMBER = "NotAMember"
    INSUFFICIENT_ROLE = "InsufficientRole"


DENIAL_MESSAGES = {
    DenialReason.MISSING_CLINIC_CONTEXT: "Clinic ID is required for role-based access",
    DenialReason.NOT_A_MEMBER: "You do not have access to this clinic",
    DenialReason.INSUFFICIENT_ROLE: "You do not have the required role for this operation",
}


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: Optional[DenialReason] = None

    @classmethod
    def allow(cls) -> "AuthorizationDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "AuthorizationDecision":
        return cls(allowed=False, reason=reason)

    @property
    def message(self) -> Optional[str]:
        return DENIAL_MESSAGES[self.reason] if self.reason is not None else None


@dataclass(frozen=True)
class RoutePolicy:
    """Roles allowed on a route. An empty set means authentication only."""

    allowed_roles: FrozenSet[Role] = frozenset()

    @property
    def requires_roles(self) -> bool:
        return bool(self.allowed_roles)


def authorize(
    memberships: Iterable[ClinicMembership],
    clinic_id: Optional[str],
    policy: RoutePolicy,
) -> AuthorizationDecision:
    memberships = list(memberships)

    if not policy.requires_roles:
        return AuthorizationDecision.allow()

    if not clinic_id:
        return AuthorizationDecision.deny(DenialReason.MISSING_CLINIC_CONTEXT)

    # An ADMIN membership in any clinic grants access to every clinic.
    if has_global_admin(memberships):
        return AuthorizationDecision.allow()

    membership = find_membership(memberships, clinic_id)
    if membership is None:
        return AuthorizationDecision.deny(DenialReason.NOT_A_MEMBER)

    if membership.role not in policy.allowed_roles:
        return AuthorizationDecision.deny(DenialReason.INSUFFICIENT_ROLE)

    return AuthorizationDecision.allow()


class AccessDeniedError(PermissionDeniedError):
    def __init__(self, reason: DenialReason) -> None:
        super().__init__(DENIAL_MESSAGES[reason])
        self.reason = reason


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and which clinic the request acts in."""

    user: AuthenticatedUser
    clinic_id: Optional[str]

    @property
    def role(self) -> Optional[Role]:
        return self.user.role_in(self.clinic_id) if self.clinic_id else None

    def require_clinic(self) -> str:
        if not self.clinic_id:
            raise AccessDeniedError(DenialReason.MISSING_CLINIC_CONTEXT)
        return self.clinic_id


def require_roles(*roles: Role) -> Callable[..., object]:
    """Build a dependency enforcing ``roles`` on a route.

    The policy is fixed when the route is declared::

        @router.get("/")
        async def handler(ctx: RequestContext = Depends(require_roles(Role.DOCTOR))): ...
    """

    policy = RoutePolicy(allowed_roles=frozenset(roles))

    async def _dependency(
        request: Request,
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> RequestContext:
        clinic_id = resolve_clinic_id(request.headers, request.query_params) if policy.requires_roles else None
        decision = authorize(user.memberships, clinic_id, policy)
        if not decision.allowed:
            logger.info(
                "Access denied user=%s clinic=%s reason=%s path=%s",
                user.id,
                clinic_id,
                decision.reason.value,
                request.url.path,
            )
            raise AccessDeniedError(decision.reason)
        return RequestContext(user=user, clinic_id=clinic_id)

    _dependency.policy = policy  # type: ignore[attr-defined]
    return _dependency


# Role sets shared by the routers.
ALL_ROLES = tuple(Role)
MANAGER_ROLES = (Role.ADMIN, Role.CLINIC_ADMIN)
CLINICAL_ROLES = (Role.ADMIN, Role.CLINIC_ADMIN, Role.DOCTOR, Role.NURSE, Role.RECEPTIONIST)
