from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import Query, Request

from src.clinics_link.authorization import RequestContext
from src.clinics_link.config import settings
from src.clinics_link.domain.exceptions import BusinessRuleViolationError
from src.clinics_link.domain.models.user import Role
from src.clinics_link.services.audit.service import audit_service


@dataclass
class Pagination:
    page: int
    limit: int


def pagination_params(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_page_size),
) -> Pagination:
    return Pagination(page=page, limit=limit or settings.default_page_size)


def record_activity(
    request: Request,
    ctx: RequestContext,
    *,
    action: str,
    resource: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    clinic_id: Optional[str] = None,
) -> None:
    """Write an activity log entry for the clinic the request acts in."""

    target_clinic = clinic_id or ctx.clinic_id
    if not target_clinic:
        return

    audit_service.log_event(
        clinic_id=target_clinic,
        user_id=ctx.user.id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        details=details,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def parse_roles(roles: Optional[str]) -> Optional[List[Role]]:
    """Parse a comma separated ``roles`` query value."""

    if not roles:
        return None
    parsed: List[Role] = []
    for value in roles.split(","):
        value = value.strip().upper()
        if not value:
            continue
        try:
            parsed.append(Role(value))
        except ValueError as exc:
            raise BusinessRuleViolationError(f"Unknown role: {value}") from exc
    return parsed or None
