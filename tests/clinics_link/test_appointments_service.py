from datetime import datetime, timedelta, timezone

import pytest

from src.clinics_link.domain.exceptions import (
    EntityNotFoundError,
    InvalidOperationError,
    PatientClinicRelationNotFoundError,
)
from src.clinics_link.domain.models.appointment import AppointmentSource, AppointmentStatus
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.services.appointments.service import (
    AppointmentCreate,
    AppointmentUpdate,
    CheckInRequest,
    appointment_service,
)
from src.clinics_link.services.patients.service import ClinicPatientCreate, patient_service
from src.clinics_link.services.rooms.service import room_service


@pytest.fixture
def patient_id(clinic_a):
    created = patient_service.create_clinic_patient(clinic_a.id, ClinicPatientCreate(name="Lin Hao", phone="0955111222"))
    return created.patient_id


def advance(clinic_id, appointment_id, status):
    return appointment_service.update_appointment(clinic_id, appointment_id, AppointmentUpdate(status=status))


def test_booking_requires_patient_registered_in_clinic(clinic_a, clinic_b, patient_id):
    with pytest.raises(PatientClinicRelationNotFoundError):
        appointment_service.create_appointment(clinic_b.id, AppointmentCreate(patient_id=patient_id))


def test_booking_rejects_room_of_other_clinic(clinic_a, clinic_b, patient_id):
    foreign_room = room_service.create_room(clinic_b.id, name="B-1")

    with pytest.raises(EntityNotFoundError):
        appointment_service.create_appointment(
            clinic_a.id, AppointmentCreate(patient_id=patient_id, room_id=foreign_room.id)
        )


def test_appointment_numbers_run_per_day(clinic_a, patient_id):
    day_one = datetime(2026, 5, 4, 9, 0, tzinfo=timezone.utc)
    day_two = datetime(2026, 5, 5, 9, 0, tzinfo=timezone.utc)

    first = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id, appointment_time=day_one))
    second = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id, appointment_time=day_one))
    next_day = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id, appointment_time=day_two))

    assert (first.appointment_number, second.appointment_number, next_day.appointment_number) == (1, 2, 1)
    assert first.status == AppointmentStatus.SCHEDULED


def test_naive_appointment_time_is_treated_as_utc(clinic_a, patient_id):
    appointment = appointment_service.create_appointment(
        clinic_a.id, AppointmentCreate(patient_id=patient_id, appointment_time=datetime(2026, 5, 4, 9, 0))
    )

    assert appointment.appointment_time.tzinfo is not None


def test_full_workflow_stamps_each_time_once(clinic_a, patient_id):
    booked = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id))

    checked_in = advance(clinic_a.id, booked.id, AppointmentStatus.CHECKED_IN)
    assert checked_in.checkin_time is not None

    started = advance(clinic_a.id, booked.id, AppointmentStatus.IN_PROGRESS)
    assert started.start_time is not None
    assert started.checkin_time == checked_in.checkin_time

    completed = advance(clinic_a.id, booked.id, AppointmentStatus.COMPLETED)
    assert completed.end_time is not None
    assert completed.start_time == started.start_time


def test_same_status_is_a_no_op(clinic_a, patient_id):
    booked = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id))
    checked_in = advance(clinic_a.id, booked.id, AppointmentStatus.CHECKED_IN)

    again = advance(clinic_a.id, booked.id, AppointmentStatus.CHECKED_IN)

    assert again.checkin_time == checked_in.checkin_time
    assert again.updated_at == checked_in.updated_at


@pytest.mark.parametrize(
    "path",
    [
        [AppointmentStatus.IN_PROGRESS],
        [AppointmentStatus.COMPLETED],
        [AppointmentStatus.CANCELLED, AppointmentStatus.CHECKED_IN],
        [AppointmentStatus.NO_SHOW, AppointmentStatus.SCHEDULED],
        [AppointmentStatus.CHECKED_IN, AppointmentStatus.IN_PROGRESS, AppointmentStatus.NO_SHOW],
    ],
)
def test_illegal_transitions_are_rejected(clinic_a, patient_id, path):
    booked = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id))
    *allowed, illegal = path
    for status in allowed:
        advance(clinic_a.id, booked.id, status)

    with pytest.raises(InvalidOperationError):
        advance(clinic_a.id, booked.id, illegal)


def test_walk_in_check_in_creates_checked_in_appointment(clinic_a, patient_id):
    appointment = appointment_service.check_in(clinic_a.id, CheckInRequest(patient_id=patient_id))

    assert appointment.status == AppointmentStatus.CHECKED_IN
    assert appointment.source == AppointmentSource.WALK_IN
    assert appointment.checkin_time is not None
    assert appointment.appointment_number == 1


def test_check_in_of_booking_and_visit_is_recorded(clinic_a, patient_id):
    before = repositories.patient_clinics.get(patient_id, clinic_a.id).last_visit_date
    booked = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id))

    checked_in = appointment_service.check_in(
        clinic_a.id, CheckInRequest(patient_id=patient_id, appointment_id=booked.id)
    )

    assert checked_in.id == booked.id
    assert checked_in.status == AppointmentStatus.CHECKED_IN
    assert repositories.patient_clinics.get(patient_id, clinic_a.id).last_visit_date >= before


def test_appointment_of_other_clinic_is_not_found(clinic_a, clinic_b, patient_id):
    booked = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id))

    with pytest.raises(EntityNotFoundError):
        advance(clinic_b.id, booked.id, AppointmentStatus.CANCELLED)
    assert appointment_service.list_appointments(clinic_b.id).total == 0


def test_rescheduling_to_another_day_takes_that_days_next_number(clinic_a, patient_id):
    day_one = datetime(2026, 5, 4, 9, 0, tzinfo=timezone.utc)
    day_two = datetime(2026, 5, 5, 9, 0, tzinfo=timezone.utc)
    moved = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id, appointment_time=day_one))
    appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id, appointment_time=day_two))

    rescheduled = appointment_service.update_appointment(
        clinic_a.id, moved.id, AppointmentUpdate(appointment_time=day_two + timedelta(hours=1))
    )

    assert rescheduled.appointment_number == 2
    numbers = [a.appointment_number for a in appointment_service.list_appointments(clinic_a.id, day=day_two.date()).items]
    assert sorted(numbers) == [1, 2]


def test_same_day_reschedule_keeps_number(clinic_a, patient_id):
    nine = datetime(2026, 5, 4, 9, 0, tzinfo=timezone.utc)
    booked = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id, appointment_time=nine))

    moved = appointment_service.update_appointment(
        clinic_a.id, booked.id, AppointmentUpdate(appointment_time=nine + timedelta(hours=3))
    )

    assert moved.appointment_number == booked.appointment_number


def test_status_change_to_checked_in_records_visit(clinic_a, patient_id):
    booked = appointment_service.create_appointment(clinic_a.id, AppointmentCreate(patient_id=patient_id))

    checked_in = advance(clinic_a.id, booked.id, AppointmentStatus.CHECKED_IN)

    relation = repositories.patient_clinics.get(patient_id, clinic_a.id)
    assert relation.last_visit_date == checked_in.checkin_time
