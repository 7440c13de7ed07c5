from __future__ import annotations

from src.clinics_link.infra.db import inmemory
from src.clinics_link.infra.db.repositories import (
    ActivityLogRepository,
    AppointmentRepository,
    ClinicRepository,
    DepartmentRepository,
    DoctorRepository,
    MembershipRepository,
    PatientClinicRepository,
    PatientRepository,
    RoomRepository,
    UserRepository,
)


class RepositoryRegistry:
    """Holds the active repository implementations.

    Services look repositories up here on every call, so swapping the
    backend (see ``bootstrap.init_repositories``) or resetting between tests
    takes effect without re-importing anything.
    """

    users: UserRepository
    clinics: ClinicRepository
    memberships: MembershipRepository
    patients: PatientRepository
    patient_clinics: PatientClinicRepository
    departments: DepartmentRepository
    doctors: DoctorRepository
    rooms: RoomRepository
    appointments: AppointmentRepository
    activity_logs: ActivityLogRepository

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Install fresh, empty in-memory repositories."""

        self.users = inmemory.InMemoryUserRepository()
        self.clinics = inmemory.InMemoryClinicRepository()
        self.memberships = inmemory.InMemoryMembershipRepository()
        self.patients = inmemory.InMemoryPatientRepository()
        self.patient_clinics = inmemory.InMemoryPatientClinicRepository()
        self.departments = inmemory.InMemoryDepartmentRepository()
        self.doctors = inmemory.InMemoryDoctorRepository()
        self.rooms = inmemory.InMemoryRoomRepository()
        self.appointments = inmemory.InMemoryAppointmentRepository()
        self.activity_logs = inmemory.InMemoryActivityLogRepository()


repositories = RepositoryRegistry()
