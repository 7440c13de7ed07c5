from __future__ import annotations

import logging
from datetime import date, datetime
from threading import Lock
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from src.clinics_link.config import settings
from src.clinics_link.domain.exceptions import EntityNotFoundError
from src.clinics_link.domain.models.appointment import Appointment, AppointmentSource, AppointmentStatus
from src.clinics_link.domain.models.common import Page, ensure_utc, utcnow
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.services.doctors.service import doctor_service
from src.clinics_link.services.patients.service import patient_service
from src.clinics_link.services.rooms.service import room_service

logger = logging.getLogger(__name__)


class _AppointmentFields(BaseModel):
    @field_validator("appointment_time", mode="after", check_fields=False)
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class AppointmentCreate(_AppointmentFields):
    patient_id: str
    doctor_id: Optional[str] = None
    room_id: Optional[str] = None
    appointment_time: Optional[datetime] = None
    source: AppointmentSource = AppointmentSource.PHONE
    note: Optional[str] = None


class CheckInRequest(BaseModel):
    """Check a patient in.

    With ``appointment_id`` an existing booking is checked in; without it a
    walk-in appointment is created directly in CHECKED_IN.
    """

    patient_id: str
    appointment_id: Optional[str] = None
    doctor_id: Optional[str] = None
    room_id: Optional[str] = None
    source: AppointmentSource = AppointmentSource.WALK_IN
    note: Optional[str] = None


class AppointmentUpdate(_AppointmentFields):
    status: Optional[AppointmentStatus] = None
    doctor_id: Optional[str] = None
    room_id: Optional[str] = None
    appointment_time: Optional[datetime] = None
    note: Optional[str] = None


class AppointmentService:
    def __init__(self) -> None:
        # Serializes number allocation within this process.
        self._numbering_lock = Lock()

    def _check_refs(self, clinic_id: str, *, doctor_id: Optional[str], room_id: Optional[str]) -> None:
        if doctor_id is not None:
            doctor_service.get_doctor(clinic_id, doctor_id)
        if room_id is not None:
            room_service.get_room(clinic_id, room_id)

    def _next_number(self, clinic_id: str, day: date) -> int:
        numbers = [
            a.appointment_number
            for a in repositories.appointments.list_by_filters(clinic_id, day=day)
            if a.appointment_number is not None
        ]
        return max(numbers, default=0) + 1

    def _create(self, appointment: Appointment) -> Appointment:
        with self._numbering_lock:
            appointment.appointment_number = self._next_number(appointment.clinic_id, appointment.service_day)
            created = repositories.appointments.create(appointment, appointment.clinic_id)
        logger.info(
            "Appointment %s (#%s) created in clinic %s status=%s",
            created.id,
            created.appointment_number,
            created.clinic_id,
            created.status.value,
        )
        return created

    def _save_changes(self, appointment: Appointment, changes: Dict[str, Any]) -> Appointment:
        """Persist ``changes``, renumbering the appointment when it moves to another day."""

        new_day = appointment.model_copy(update=changes).service_day
        if new_day == appointment.service_day:
            return repositories.appointments.update(appointment.id, changes, appointment.clinic_id)

        with self._numbering_lock:
            changes["appointment_number"] = self._next_number(appointment.clinic_id, new_day)
            return repositories.appointments.update(appointment.id, changes, appointment.clinic_id)

    def get_appointment(self, clinic_id: str, appointment_id: str) -> Appointment:
        appointment = repositories.appointments.get(appointment_id, clinic_id)
        if appointment is None:
            raise EntityNotFoundError("Appointment", appointment_id)
        return appointment

    def list_appointments(
        self,
        clinic_id: str,
        *,
        day: Optional[date] = None,
        status: Optional[AppointmentStatus] = None,
        doctor_id: Optional[str] = None,
        room_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[Appointment]:
        appointments = repositories.appointments.list_by_filters(
            clinic_id,
            day=day,
            status=status,
            doctor_id=doctor_id,
            room_id=room_id,
            patient_id=patient_id,
        )
        return Page[Appointment].from_items(appointments, page=page, limit=limit or settings.default_page_size)

    def create_appointment(self, clinic_id: str, payload: AppointmentCreate) -> Appointment:
        """Book an appointment for a patient registered in the clinic."""

        patient_service.ensure_linked(clinic_id, payload.patient_id)
        self._check_refs(clinic_id, doctor_id=payload.doctor_id, room_id=payload.room_id)

        appointment = Appointment(
            clinic_id=clinic_id,
            patient_id=payload.patient_id,
            doctor_id=payload.doctor_id,
            room_id=payload.room_id,
            appointment_time=payload.appointment_time,
            source=payload.source,
            note=payload.note,
        )
        return self._create(appointment)

    def check_in(self, clinic_id: str, payload: CheckInRequest) -> Appointment:
        patient_service.ensure_linked(clinic_id, payload.patient_id)
        self._check_refs(clinic_id, doctor_id=payload.doctor_id, room_id=payload.room_id)
        now = utcnow()

        if payload.appointment_id is not None:
            appointment = self.get_appointment(clinic_id, payload.appointment_id)
            if appointment.patient_id != payload.patient_id:
                raise EntityNotFoundError("Appointment", payload.appointment_id)
            changes: Dict[str, Any] = appointment.transition_changes(AppointmentStatus.CHECKED_IN, at=now)
            if payload.doctor_id is not None:
                changes["doctor_id"] = payload.doctor_id
            if payload.room_id is not None:
                changes["room_id"] = payload.room_id
            checked_in = self._save_changes(appointment, changes) if changes else appointment
        else:
            checked_in = self._create(
                Appointment(
                    clinic_id=clinic_id,
                    patient_id=payload.patient_id,
                    doctor_id=payload.doctor_id,
                    room_id=payload.room_id,
                    checkin_time=now,
                    status=AppointmentStatus.CHECKED_IN,
                    source=payload.source,
                    note=payload.note,
                )
            )

        patient_service.record_visit(clinic_id, payload.patient_id, now)
        return checked_in

    def update_appointment(self, clinic_id: str, appointment_id: str, payload: AppointmentUpdate) -> Appointment:
        """Apply field changes and, when ``status`` is given, advance the workflow.

        Illegal status transitions raise InvalidOperationError; setting the
        current status again changes nothing.
        """

        appointment = self.get_appointment(clinic_id, appointment_id)
        fields = payload.model_dump(exclude_unset=True)
        new_status = fields.pop("status", None)
        self._check_refs(clinic_id, doctor_id=fields.get("doctor_id"), room_id=fields.get("room_id"))

        changes: Dict[str, Any] = dict(fields)
        if new_status is not None:
            changes.update(appointment.transition_changes(new_status, at=utcnow()))

        if not changes:
            return appointment

        updated = self._save_changes(appointment, changes)
        if "checkin_time" in changes:
            patient_service.record_visit(clinic_id, appointment.patient_id, changes["checkin_time"])
        if updated.status != appointment.status:
            logger.info(
                "Appointment %s in clinic %s: %s -> %s",
                appointment_id,
                clinic_id,
                appointment.status.value,
                updated.status.value,
            )
        return updated


appointment_service = AppointmentService()
