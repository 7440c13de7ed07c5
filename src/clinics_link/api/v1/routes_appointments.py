from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from src.clinics_link.api.v1.common import Pagination, pagination_params, record_activity
from src.clinics_link.authorization import ALL_ROLES, CLINICAL_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.appointment import Appointment, AppointmentStatus
from src.clinics_link.domain.models.common import Page
from src.clinics_link.services.appointments.service import (
    AppointmentCreate,
    AppointmentUpdate,
    CheckInRequest,
    appointment_service,
)

router = APIRouter(prefix="/appointments", tags=["appointments"])

clinical_staff = require_roles(*CLINICAL_ROLES)


@router.get("", response_model=Page[Appointment])
async def list_appointments(
    day: Optional[date] = Query(None, alias="date"),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    doctor_id: Optional[str] = None,
    room_id: Optional[str] = None,
    patient_id: Optional[str] = None,
    pagination: Pagination = Depends(pagination_params),
    ctx: RequestContext = Depends(require_roles(*ALL_ROLES)),
) -> Page[Appointment]:
    return appointment_service.list_appointments(
        ctx.require_clinic(),
        day=day,
        status=status_filter,
        doctor_id=doctor_id,
        room_id=room_id,
        patient_id=patient_id,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post("", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    request: Request,
    ctx: RequestContext = Depends(clinical_staff),
) -> Appointment:
    appointment = appointment_service.create_appointment(ctx.require_clinic(), payload)
    record_activity(
        request,
        ctx,
        action="CREATE_APPOINTMENT",
        resource="appointment",
        resource_id=appointment.id,
        details={"patient_id": appointment.patient_id, "number": appointment.appointment_number},
    )
    return appointment


@router.post("/check-in", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def check_in(
    payload: CheckInRequest,
    request: Request,
    ctx: RequestContext = Depends(clinical_staff),
) -> Appointment:
    appointment = appointment_service.check_in(ctx.require_clinic(), payload)
    record_activity(
        request,
        ctx,
        action="CHECK_IN",
        resource="appointment",
        resource_id=appointment.id,
        details={"patient_id": appointment.patient_id, "walk_in": payload.appointment_id is None},
    )
    return appointment


@router.put("/{appointment_id}", response_model=Appointment)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    request: Request,
    ctx: RequestContext = Depends(clinical_staff),
) -> Appointment:
    appointment = appointment_service.update_appointment(ctx.require_clinic(), appointment_id, payload)
    record_activity(
        request,
        ctx,
        action="UPDATE_APPOINTMENT",
        resource="appointment",
        resource_id=appointment_id,
        details={"status": appointment.status.value},
    )
    return appointment
