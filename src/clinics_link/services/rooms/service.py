from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel

from src.clinics_link.domain.exceptions import EntityNotFoundError
from src.clinics_link.domain.models.appointment import QUEUED_STATUSES, Appointment, AppointmentStatus
from src.clinics_link.domain.models.common import utcnow
from src.clinics_link.domain.models.room import Room, RoomStatus
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.services.doctors.service import doctor_service

logger = logging.getLogger(__name__)

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def queue_sort_key(appointment: Appointment) -> tuple:
    """First come, first served: check-in time, then booked time, then creation."""

    return (
        appointment.checkin_time or _FAR_FUTURE,
        appointment.appointment_time or _FAR_FUTURE,
        appointment.created_at,
    )


class QueueEntry(BaseModel):
    appointment_id: str
    appointment_number: Optional[int] = None
    patient_id: str
    patient_name: Optional[str] = None
    doctor_id: Optional[str] = None
    status: AppointmentStatus
    appointment_time: Optional[datetime] = None
    checkin_time: Optional[datetime] = None
    start_time: Optional[datetime] = None


class RoomWithQueue(BaseModel):
    room: Room
    queue: List[QueueEntry]
    queue_length: int


class RoomStatusChange(BaseModel):
    room_id: str
    clinic_id: str
    previous_status: RoomStatus
    new_status: RoomStatus
    updated: bool


class RoomService:
    def get_room(self, clinic_id: str, room_id: str) -> Room:
        room = repositories.rooms.get(room_id, clinic_id)
        if room is None:
            raise EntityNotFoundError("Room", room_id)
        return room

    def create_room(
        self,
        clinic_id: str,
        *,
        name: str,
        description: Optional[str] = None,
        status: RoomStatus = RoomStatus.CLOSED,
    ) -> Room:
        room = Room(clinic_id=clinic_id, name=name, description=description, status=status)
        return repositories.rooms.create(room, clinic_id)

    def _queue_for(
        self,
        clinic_id: str,
        room_id: str,
        *,
        day: date,
        appointment_status: Optional[AppointmentStatus],
    ) -> List[QueueEntry]:
        appointments = repositories.appointments.list_by_filters(
            clinic_id,
            room_id=room_id,
            day=day,
            status=appointment_status,
        )
        if appointment_status is None:
            appointments = [a for a in appointments if a.status in QUEUED_STATUSES]
        appointments.sort(key=queue_sort_key)

        entries: List[QueueEntry] = []
        for appointment in appointments:
            patient = repositories.patients.get(appointment.patient_id)
            entries.append(
                QueueEntry(
                    appointment_id=appointment.id,
                    appointment_number=appointment.appointment_number,
                    patient_id=appointment.patient_id,
                    patient_name=patient.name if patient is not None else None,
                    doctor_id=appointment.doctor_id,
                    status=appointment.status,
                    appointment_time=appointment.appointment_time,
                    checkin_time=appointment.checkin_time,
                    start_time=appointment.start_time,
                )
            )
        return entries

    def list_rooms_with_queue(
        self,
        clinic_id: str,
        *,
        status: Optional[RoomStatus] = None,
        doctor_id: Optional[str] = None,
        appointment_status: Optional[AppointmentStatus] = None,
        day: Optional[date] = None,
    ) -> List[RoomWithQueue]:
        """Rooms of a clinic, each with its queue for ``day`` (default today, UTC).

        Without ``appointment_status`` a queue holds the patients who are
        checked in or being seen.
        """

        day = day or utcnow().date()
        rooms = repositories.rooms.list_by_filters(clinic_id, status=status)
        if doctor_id is not None:
            doctor = doctor_service.get_doctor(clinic_id, doctor_id)
            rooms = [r for r in rooms if r.id in doctor.room_ids]

        results = []
        for room in rooms:
            queue = self._queue_for(clinic_id, room.id, day=day, appointment_status=appointment_status)
            results.append(RoomWithQueue(room=room, queue=queue, queue_length=len(queue)))
        return results

    def update_room_status(self, clinic_id: str, room_id: str, new_status: RoomStatus) -> RoomStatusChange:
        room = self.get_room(clinic_id, room_id)
        updated = room.status != new_status
        if updated:
            repositories.rooms.update(room_id, {"status": new_status}, clinic_id)
            logger.info("Room %s in clinic %s: %s -> %s", room_id, clinic_id, room.status.value, new_status.value)

        return RoomStatusChange(
            room_id=room_id,
            clinic_id=clinic_id,
            previous_status=room.status,
            new_status=new_status,
            updated=updated,
        )


room_service = RoomService()
