from __future__ import annotations

from datetime import date, datetime
from math import floor
from typing import Iterable, List, Optional

from pydantic import BaseModel

from src.clinics_link.domain.models.appointment import AppointmentStatus
from src.clinics_link.domain.models.common import utcnow
from src.clinics_link.infra.db.registry import repositories


class DashboardStats(BaseModel):
    clinic_id: str
    day: date
    today_appointments: int
    waiting_patients: int
    in_progress: int
    completed_appointments: int
    cancelled_appointments: int
    no_show_appointments: int
    new_patients: int
    # Minutes, rounded to one decimal; 0 when nothing to average.
    average_wait_time: float
    average_consultation_time: float
    completed_rate: int
    cancelled_rate: int
    no_show_rate: int


def _average_minutes(pairs: Iterable[tuple[Optional[datetime], Optional[datetime]]]) -> float:
    durations: List[float] = [
        (end - start).total_seconds() / 60 for start, end in pairs if start is not None and end is not None
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 1)


def _percent(part: int, total: int) -> int:
    # Half-up rounding.
    return floor(part * 100 / total + 0.5) if total else 0


class StatsService:
    def dashboard(self, clinic_id: str, *, day: Optional[date] = None) -> DashboardStats:
        day = day or utcnow().date()
        appointments = repositories.appointments.list_by_filters(clinic_id, day=day)

        def count(status: AppointmentStatus) -> int:
            return sum(1 for a in appointments if a.status == status)

        new_patients = sum(
            1 for r in repositories.patient_clinics.list(clinic_id) if r.first_visit_date.date() == day
        )

        total = len(appointments)
        completed = count(AppointmentStatus.COMPLETED)
        cancelled = count(AppointmentStatus.CANCELLED)
        no_show = count(AppointmentStatus.NO_SHOW)

        return DashboardStats(
            clinic_id=clinic_id,
            day=day,
            today_appointments=total,
            waiting_patients=count(AppointmentStatus.CHECKED_IN),
            in_progress=count(AppointmentStatus.IN_PROGRESS),
            completed_appointments=completed,
            cancelled_appointments=cancelled,
            no_show_appointments=no_show,
            new_patients=new_patients,
            average_wait_time=_average_minutes((a.checkin_time, a.start_time) for a in appointments),
            average_consultation_time=_average_minutes((a.start_time, a.end_time) for a in appointments),
            completed_rate=_percent(completed, total),
            cancelled_rate=_percent(cancelled, total),
            no_show_rate=_percent(no_show, total),
        )


stats_service = StatsService()
