from datetime import date, datetime, timedelta, timezone

from src.clinics_link.domain.models.appointment import Appointment, AppointmentStatus
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.services.stats.service import stats_service

DAY = date(2026, 3, 2)
NINE = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def add_appointment(clinic_id, status, **times):
    appointment = Appointment(clinic_id=clinic_id, patient_id="p1", status=status, appointment_time=NINE, **times)
    repositories.appointments.create(appointment, clinic_id)


def test_empty_day_has_zero_rates(clinic_a):
    stats = stats_service.dashboard(clinic_a.id, day=DAY)

    assert stats.today_appointments == 0
    assert stats.average_wait_time == 0.0
    assert (stats.completed_rate, stats.cancelled_rate, stats.no_show_rate) == (0, 0, 0)


def test_dashboard_counts_and_averages(clinic_a, clinic_b):
    add_appointment(
        clinic_a.id,
        AppointmentStatus.COMPLETED,
        checkin_time=NINE,
        start_time=NINE + timedelta(minutes=10),
        end_time=NINE + timedelta(minutes=25),
    )
    add_appointment(
        clinic_a.id,
        AppointmentStatus.IN_PROGRESS,
        checkin_time=NINE,
        start_time=NINE + timedelta(minutes=20),
    )
    add_appointment(clinic_a.id, AppointmentStatus.CHECKED_IN, checkin_time=NINE)
    add_appointment(clinic_a.id, AppointmentStatus.CANCELLED)
    add_appointment(clinic_a.id, AppointmentStatus.NO_SHOW)
    add_appointment(clinic_a.id, AppointmentStatus.NO_SHOW)
    add_appointment(clinic_b.id, AppointmentStatus.COMPLETED)

    stats = stats_service.dashboard(clinic_a.id, day=DAY)

    assert stats.today_appointments == 6
    assert stats.waiting_patients == 1
    assert stats.in_progress == 1
    assert stats.completed_appointments == 1
    assert stats.cancelled_appointments == 1
    assert stats.no_show_appointments == 2
    assert stats.average_wait_time == 15.0
    assert stats.average_consultation_time == 15.0
    # 1/6 = 16.67%, 2/6 = 33.33%
    assert (stats.completed_rate, stats.cancelled_rate, stats.no_show_rate) == (17, 17, 33)


def test_other_days_are_ignored(clinic_a):
    add_appointment(clinic_a.id, AppointmentStatus.COMPLETED)

    assert stats_service.dashboard(clinic_a.id, day=DAY + timedelta(days=1)).today_appointments == 0
