from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel

from src.clinics_link.domain.exceptions import BusinessRuleViolationError
from src.clinics_link.domain.models.activity_log import ActivityLog
from src.clinics_link.domain.models.appointment import Appointment, AppointmentStatus
from src.clinics_link.domain.models.clinic import Clinic, Department, Doctor
from src.clinics_link.domain.models.common import utcnow
from src.clinics_link.domain.models.patient import Patient, PatientClinic, PatientClinicStatus
from src.clinics_link.domain.models.room import Room, RoomStatus
from src.clinics_link.domain.models.user import ClinicMembership, User

T = TypeVar("T", bound=BaseModel)


class ClinicScopedRepository(ABC, Generic[T]):
    """Data access for entities owned by a clinic.

    Every operation takes the clinic id next to the entity key; there is no
    "current clinic" held anywhere else. An id that exists under another
    clinic must behave exactly like a missing id: ``get`` returns None,
    ``update`` raises EntityNotFoundError and ``delete`` returns False.
    """

    @abstractmethod
    def get(self, entity_id: str, clinic_id: str) -> Optional[T]:
        raise NotImplementedError

    @abstractmethod
    def list(self, clinic_id: str) -> List[T]:
        raise NotImplementedError

    @abstractmethod
    def create(self, entity: T, clinic_id: str) -> T:
        """Store ``entity``; it must already carry ``clinic_id``."""
        raise NotImplementedError

    @abstractmethod
    def update(self, entity_id: str, changes: Mapping[str, Any], clinic_id: str) -> T:
        raise NotImplementedError

    @abstractmethod
    def delete(self, entity_id: str, clinic_id: str) -> bool:
        raise NotImplementedError


class MembershipRepository(ClinicScopedRepository[ClinicMembership]):
    """Memberships keyed by user id within a clinic."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[ClinicMembership]:
        """All memberships of one user, across clinics (authentication only)."""
        raise NotImplementedError


class PatientClinicRepository(ClinicScopedRepository[PatientClinic]):
    """Patient-clinic relations keyed by patient id within a clinic."""

    @abstractmethod
    def find_by_patient_number(self, clinic_id: str, patient_number: str) -> Optional[PatientClinic]:
        raise NotImplementedError

    @abstractmethod
    def list_by_filters(
        self,
        clinic_id: str,
        *,
        status: Optional[PatientClinicStatus] = None,
    ) -> List[PatientClinic]:
        raise NotImplementedError


class DepartmentRepository(ClinicScopedRepository[Department]):
    pass


class DoctorRepository(ClinicScopedRepository[Doctor]):
    @abstractmethod
    def list_by_filters(self, clinic_id: str, *, department_id: Optional[str] = None) -> List[Doctor]:
        raise NotImplementedError


class RoomRepository(ClinicScopedRepository[Room]):
    @abstractmethod
    def list_by_filters(self, clinic_id: str, *, status: Optional[RoomStatus] = None) -> List[Room]:
        raise NotImplementedError


class AppointmentRepository(ClinicScopedRepository[Appointment]):
    @abstractmethod
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
        """Appointments ordered by appointment time (unset last), then creation."""
        raise NotImplementedError


class ActivityLogRepository(ClinicScopedRepository[ActivityLog]):
    @abstractmethod
    def list_by_filters(
        self,
        clinic_id: str,
        *,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> List[ActivityLog]:
        """Newest first."""
        raise NotImplementedError


# Global (not clinic-owned) entities.


class UserRepository(ABC):
    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def save(self, user: User) -> User:
        raise NotImplementedError


class ClinicRepository(ABC):
    @abstractmethod
    def get(self, clinic_id: str) -> Optional[Clinic]:
        raise NotImplementedError

    @abstractmethod
    def save(self, clinic: Clinic) -> Clinic:
        raise NotImplementedError


class PatientRepository(ABC):
    @abstractmethod
    def get(self, patient_id: str) -> Optional[Patient]:
        raise NotImplementedError

    @abstractmethod
    def find_by_national_id(self, national_id: str) -> Optional[Patient]:
        raise NotImplementedError

    @abstractmethod
    def find_by_phone(self, phone: str) -> List[Patient]:
        raise NotImplementedError

    @abstractmethod
    def save(self, patient: Patient) -> Patient:
        raise NotImplementedError


_IMMUTABLE_FIELDS = frozenset({"id", "clinic_id", "created_at"})


def apply_changes(entity: T, changes: Mapping[str, Any], *, key_field: str = "id") -> T:
    """Return a validated copy of ``entity`` with ``changes`` applied.

    Identity fields (id, owning clinic, the repository key) cannot be changed
    through ``update``; moving an entity between clinics is not a thing.
    """

    model = type(entity)
    forbidden = (_IMMUTABLE_FIELDS | {key_field}) & set(changes)
    if forbidden:
        raise BusinessRuleViolationError(f"Cannot change {', '.join(sorted(forbidden))}")
    unknown = set(changes) - set(model.model_fields)
    if unknown:
        raise BusinessRuleViolationError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    data = entity.model_dump()
    data.update(changes)
    if "updated_at" in model.model_fields:
        data["updated_at"] = utcnow()
    return model.model_validate(data)
