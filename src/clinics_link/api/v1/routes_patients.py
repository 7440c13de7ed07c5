from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from src.clinics_link.api.v1.common import Pagination, pagination_params, record_activity
from src.clinics_link.authorization import CLINICAL_ROLES, RequestContext, require_roles
from src.clinics_link.domain.models.common import Page
from src.clinics_link.domain.models.patient import PatientClinicStatus
from src.clinics_link.services.patients.service import (
    ClinicPatient,
    ClinicPatientCreate,
    ClinicPatientUpdate,
    patient_service,
)

router = APIRouter(prefix="/patients", tags=["patients"])

clinical_staff = require_roles(*CLINICAL_ROLES)


@router.get("", response_model=Page[ClinicPatient])
async def list_patients(
    search: Optional[str] = None,
    status_filter: Optional[PatientClinicStatus] = Query(None, alias="status"),
    pagination: Pagination = Depends(pagination_params),
    ctx: RequestContext = Depends(clinical_staff),
) -> Page[ClinicPatient]:
    return patient_service.list_clinic_patients(
        ctx.require_clinic(),
        search=search,
        status=status_filter,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post("", response_model=ClinicPatient, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: ClinicPatientCreate,
    request: Request,
    ctx: RequestContext = Depends(clinical_staff),
) -> ClinicPatient:
    patient = patient_service.create_clinic_patient(ctx.require_clinic(), payload)
    record_activity(request, ctx, action="CREATE_PATIENT", resource="patient", resource_id=patient.patient_id)
    return patient


@router.get("/{patient_id}", response_model=ClinicPatient)
async def get_patient(patient_id: str, ctx: RequestContext = Depends(clinical_staff)) -> ClinicPatient:
    return patient_service.get_clinic_patient(ctx.require_clinic(), patient_id)


@router.put("/{patient_id}", response_model=ClinicPatient)
async def update_patient(
    patient_id: str,
    payload: ClinicPatientUpdate,
    request: Request,
    ctx: RequestContext = Depends(clinical_staff),
) -> ClinicPatient:
    patient = patient_service.update_clinic_patient(ctx.require_clinic(), patient_id, payload)
    record_activity(
        request,
        ctx,
        action="UPDATE_PATIENT",
        resource="patient",
        resource_id=patient_id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    return patient


@router.post("/{patient_id}/toggle-status", response_model=ClinicPatient)
async def toggle_patient_status(
    patient_id: str,
    request: Request,
    ctx: RequestContext = Depends(clinical_staff),
) -> ClinicPatient:
    patient = patient_service.toggle_status(ctx.require_clinic(), patient_id)
    record_activity(
        request,
        ctx,
        action="TOGGLE_PATIENT_STATUS",
        resource="patient",
        resource_id=patient_id,
        details={"status": patient.status.value},
    )
    return patient
