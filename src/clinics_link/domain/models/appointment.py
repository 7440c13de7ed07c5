from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field

from src.clinics_link.domain.exceptions import InvalidOperationError
from src.clinics_link.domain.models.common import new_id, utcnow


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CHECKED_IN = "CHECKED_IN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class AppointmentSource(str, Enum):
    WALK_IN = "WALK_IN"
    PHONE = "PHONE"
    ONLINE = "ONLINE"
    LINE = "LINE"
    APP = "APP"


ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CHECKED_IN, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CHECKED_IN: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# Statuses that keep a patient in a room's queue.
QUEUED_STATUSES = frozenset({AppointmentStatus.CHECKED_IN, AppointmentStatus.IN_PROGRESS})


class Appointment(BaseModel):
    id: str = Field(default_factory=new_id)
    clinic_id: str
    patient_id: str
    doctor_id: Optional[str] = None
    room_id: Optional[str] = None
    # Daily sequence number within the clinic, starting at 1.
    appointment_number: Optional[int] = None
    appointment_time: Optional[datetime] = None
    checkin_time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    source: AppointmentSource = AppointmentSource.WALK_IN
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def service_day(self) -> date:
        """Calendar day the appointment counts towards."""

        moment = self.appointment_time or self.checkin_time or self.created_at
        return moment.date()

    def transition_changes(self, new_status: AppointmentStatus, *, at: datetime) -> Dict[str, object]:
        """Return the field changes for moving to ``new_status``.

        Re-applying the current status yields no changes. Lifecycle
        timestamps are stamped once and never overwritten.
        """

        if new_status == self.status:
            return {}
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidOperationError(
                f"Cannot change appointment status from {self.status.value} to {new_status.value}"
            )

        changes: Dict[str, object] = {"status": new_status}
        if new_status == AppointmentStatus.CHECKED_IN and self.checkin_time is None:
            changes["checkin_time"] = at
        elif new_status == AppointmentStatus.IN_PROGRESS and self.start_time is None:
            changes["start_time"] = at
        elif new_status == AppointmentStatus.COMPLETED and self.end_time is None:
            changes["end_time"] = at
        return changes
