from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from src.clinics_link.api.v1.common import record_activity
from src.clinics_link.authorization import CLINICAL_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.appointment import AppointmentStatus
from src.clinics_link.domain.models.common import utcnow
from src.clinics_link.domain.models.room import RoomStatus
from src.clinics_link.domain.models.user import Role
from src.clinics_link.services.rooms.service import RoomStatusChange, RoomWithQueue, room_service

router = APIRouter(prefix="/rooms", tags=["rooms"])


class RoomsResponse(BaseModel):
    clinic_id: str
    day: date
    rooms: List[RoomWithQueue]


class RoomStatusUpdateRequest(BaseModel):
    status: RoomStatus


@router.get("", response_model=RoomsResponse)
async def list_rooms(
    status_filter: Optional[RoomStatus] = Query(None, alias="status"),
    doctor_id: Optional[str] = None,
    appointment_status: Optional[AppointmentStatus] = None,
    day: Optional[date] = Query(None, alias="date"),
    ctx: RequestContext = Depends(require_roles(*CLINICAL_ROLES, Role.STAFF)),
) -> RoomsResponse:
    clinic_id = ctx.require_clinic()
    day = day or utcnow().date()
    rooms = room_service.list_rooms_with_queue(
        clinic_id,
        status=status_filter,
        doctor_id=doctor_id,
        appointment_status=appointment_status,
        day=day,
    )
    return RoomsResponse(clinic_id=clinic_id, day=day, rooms=rooms)


@router.put("/{room_id}", response_model=RoomStatusChange)
async def update_room_status(
    room_id: str,
    payload: RoomStatusUpdateRequest,
    request: Request,
    ctx: RequestContext = Depends(require_roles(*CLINICAL_ROLES)),
) -> RoomStatusChange:
    change = room_service.update_room_status(ctx.require_clinic(), room_id, payload.status)
    if change.updated:
        record_activity(
            request,
            ctx,
            action="UPDATE_ROOM_STATUS",
            resource="room",
            resource_id=room_id,
            details={"previous_status": change.previous_status.value, "new_status": change.new_status.value},
        )
    return change
