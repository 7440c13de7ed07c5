from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.clinics_link.authorization import ALL_ROLES, RequestContext, require_roles
from src.clinics_link.services.stats.service import DashboardStats, stats_service

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    day: Optional[date] = Query(None, alias="date"),
    ctx: RequestContext = Depends(require_roles(*ALL_ROLES)),
) -> DashboardStats:
    return stats_service.dashboard(ctx.require_clinic(), day=day)
