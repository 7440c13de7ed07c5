from __future__ import annotations

from datetime import date, datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Mapping, Optional

from src.clinics_link.domain.exceptions import (
    BusinessRuleViolationError,
    EntityNotFoundError,
    UniqueConstraintViolationError,
)
from src.clinics_link.domain.models.activity_log import ActivityLog
from src.clinics_link.domain.models.appointment import Appointment, AppointmentStatus
from src.clinics_link.domain.models.clinic import Clinic, Department, Doctor
from src.clinics_link.domain.models.patient import Patient, PatientClinic, PatientClinicStatus
from src.clinics_link.domain.models.room import Room, RoomStatus
from src.clinics_link.domain.models.user import ClinicMembership, User
from src.clinics_link.infra.db.repositories import (
    ActivityLogRepository,
    AppointmentRepository,
    ClinicRepository,
    ClinicScopedRepository,
    DepartmentRepository,
    DoctorRepository,
    MembershipRepository,
    PatientClinicRepository,
    PatientRepository,
    RoomRepository,
    T,
    UserRepository,
    apply_changes,
)

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def appointment_sort_key(appointment: Appointment) -> tuple:
    return (
        appointment.appointment_time is None,
        appointment.appointment_time or _FAR_FUTURE,
        appointment.created_at,
    )


class InMemoryClinicScopedRepository(ClinicScopedRepository[T]):
    """Dict-backed store partitioned by clinic id.

    Rows live in one bucket per clinic, so a lookup can only ever see the
    bucket of the clinic it was given. Returned entities are copies; changes
    must go through ``update``.
    """

    entity_name = "Entity"
    key_field = "id"

    def __init__(self) -> None:
        self._buckets: Dict[str, Dict[str, T]] = {}
        self._lock = Lock()

    def _key(self, entity: T) -> str:
        return getattr(entity, self.key_field)

    def _bucket(self, clinic_id: str) -> Dict[str, T]:
        return self._buckets.get(clinic_id, {})

    def get(self, entity_id: str, clinic_id: str) -> Optional[T]:
        with self._lock:
            entity = self._bucket(clinic_id).get(entity_id)
            return entity.model_copy(deep=True) if entity is not None else None

    def list(self, clinic_id: str) -> List[T]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._bucket(clinic_id).values()]

    def create(self, entity: T, clinic_id: str) -> T:
        if getattr(entity, "clinic_id") != clinic_id:
            raise BusinessRuleViolationError(f"{self.entity_name} does not belong to clinic {clinic_id}")
        key = self._key(entity)
        with self._lock:
            bucket = self._buckets.setdefault(clinic_id, {})
            if key in bucket:
                raise UniqueConstraintViolationError(self.entity_name, self.key_field, key)
            bucket[key] = entity.model_copy(deep=True)
        return entity.model_copy(deep=True)

    def update(self, entity_id: str, changes: Mapping[str, Any], clinic_id: str) -> T:
        with self._lock:
            bucket = self._bucket(clinic_id)
            current = bucket.get(entity_id)
            if current is None:
                raise EntityNotFoundError(self.entity_name, entity_id)
            updated = apply_changes(current, changes, key_field=self.key_field)
            bucket[entity_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, entity_id: str, clinic_id: str) -> bool:
        with self._lock:
            return self._bucket(clinic_id).pop(entity_id, None) is not None


class InMemoryMembershipRepository(InMemoryClinicScopedRepository[ClinicMembership], MembershipRepository):
    entity_name = "ClinicMembership"
    key_field = "user_id"

    def list_for_user(self, user_id: str) -> List[ClinicMembership]:
        with self._lock:
            return [
                bucket[user_id].model_copy(deep=True)
                for bucket in self._buckets.values()
                if user_id in bucket
            ]


class InMemoryPatientClinicRepository(InMemoryClinicScopedRepository[PatientClinic], PatientClinicRepository):
    entity_name = "PatientClinic"
    key_field = "patient_id"

    def find_by_patient_number(self, clinic_id: str, patient_number: str) -> Optional[PatientClinic]:
        for relation in self.list(clinic_id):
            if relation.patient_number == patient_number:
                return relation
        return None

    def list_by_filters(
        self,
        clinic_id: str,
        *,
        status: Optional[PatientClinicStatus] = None,
    ) -> List[PatientClinic]:
        return [r for r in self.list(clinic_id) if status is None or r.status == status]


class InMemoryDepartmentRepository(InMemoryClinicScopedRepository[Department], DepartmentRepository):
    entity_name = "Department"


class InMemoryDoctorRepository(InMemoryClinicScopedRepository[Doctor], DoctorRepository):
    entity_name = "Doctor"

    def list_by_filters(self, clinic_id: str, *, department_id: Optional[str] = None) -> List[Doctor]:
        return [d for d in self.list(clinic_id) if department_id is None or d.department_id == department_id]


class InMemoryRoomRepository(InMemoryClinicScopedRepository[Room], RoomRepository):
    entity_name = "Room"

    def list_by_filters(self, clinic_id: str, *, status: Optional[RoomStatus] = None) -> List[Room]:
        rooms = [r for r in self.list(clinic_id) if status is None or r.status == status]
        rooms.sort(key=lambda r: (r.name, r.created_at))
        return rooms


class InMemoryAppointmentRepository(InMemoryClinicScopedRepository[Appointment], AppointmentRepository):
    entity_name = "Appointment"

    def list_by_filters(
        self,
        clinic_id: str,
        *,
        status: Optional[AppointmentStatus] = None,
        day: Optional[date] = None,
        room_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        patient_id: Optional[str] = None,
    ) -> List[Appointment]:
        results: List[Appointment] = []
        for appt in self.list(clinic_id):
            if status is not None and appt.status != status:
                continue
            if day is not None and appt.service_day != day:
                continue
            if room_id is not None and appt.room_id != room_id:
                continue
            if doctor_id is not None and appt.doctor_id != doctor_id:
                continue
            if patient_id is not None and appt.patient_id != patient_id:
                continue
            results.append(appt)
        results.sort(key=appointment_sort_key)
        return results


class InMemoryActivityLogRepository(InMemoryClinicScopedRepository[ActivityLog], ActivityLogRepository):
    entity_name = "ActivityLog"

    def list_by_filters(
        self,
        clinic_id: str,
        *,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> List[ActivityLog]:
        logs = [
            log
            for log in self.list(clinic_id)
            if (user_id is None or log.user_id == user_id) and (action is None or log.action == action)
        ]
        logs.sort(key=lambda log: log.created_at, reverse=True)
        return logs


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = Lock()

    def get(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user is not None else None

    def get_by_email(self, email: str) -> Optional[User]:
        wanted = email.lower()
        with self._lock:
            for user in self._users.values():
                if user.email.lower() == wanted:
                    return user.model_copy(deep=True)
        return None

    def save(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user.model_copy(deep=True)
        return user


class InMemoryClinicRepository(ClinicRepository):
    def __init__(self) -> None:
        self._clinics: Dict[str, Clinic] = {}

    def get(self, clinic_id: str) -> Optional[Clinic]:
        clinic = self._clinics.get(clinic_id)
        return clinic.model_copy(deep=True) if clinic is not None else None

    def save(self, clinic: Clinic) -> Clinic:
        self._clinics[clinic.id] = clinic.model_copy(deep=True)
        return clinic


class InMemoryPatientRepository(PatientRepository):
    def __init__(self) -> None:
        self._patients: Dict[str, Patient] = {}

    def get(self, patient_id: str) -> Optional[Patient]:
        patient = self._patients.get(patient_id)
        return patient.model_copy(deep=True) if patient is not None else None

    def find_by_national_id(self, national_id: str) -> Optional[Patient]:
        for patient in self._patients.values():
            if patient.national_id == national_id:
                return patient.model_copy(deep=True)
        return None

    def find_by_phone(self, phone: str) -> List[Patient]:
        return [p.model_copy(deep=True) for p in self._patients.values() if p.phone == phone]

    def save(self, patient: Patient) -> Patient:
        self._patients[patient.id] = patient.model_copy(deep=True)
        return patient
