from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, List, Mapping, Optional, Type

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError

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
from src.clinics_link.infra.db.inmemory import appointment_sort_key
from src.clinics_link.infra.db.models import (
    ActivityLogORM,
    AppointmentORM,
    ClinicORM,
    DepartmentORM,
    DoctorORM,
    MembershipORM,
    PatientClinicORM,
    PatientORM,
    RoomORM,
    UserORM,
)
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
from src.clinics_link.infra.db.session import SessionFactory


def _copy_columns(target: Any, source: Any) -> None:
    for column in target.__table__.columns:
        setattr(target, column.key, getattr(source, column.key))


class SqlClinicScopedRepository(ClinicScopedRepository[T]):
    """SQLAlchemy-backed clinic-scoped repository.

    Every query filters on ``clinic_id`` together with the entity key, so a
    row owned by another clinic is indistinguishable from a missing one.
    """

    orm_class: Type[Any]
    entity_name = "Entity"
    key_field = "id"

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def _scoped_query(self, session, clinic_id: str):
        return session.query(self.orm_class).filter(self.orm_class.clinic_id == clinic_id)

    def _find(self, session, entity_id: str, clinic_id: str):
        key_column = getattr(self.orm_class, self.key_field)
        return self._scoped_query(session, clinic_id).filter(key_column == entity_id).one_or_none()

    def get(self, entity_id: str, clinic_id: str) -> Optional[T]:
        session = self._session_factory()
        try:
            orm = self._find(session, entity_id, clinic_id)
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def list(self, clinic_id: str) -> List[T]:
        session = self._session_factory()
        try:
            return [orm.to_domain() for orm in self._scoped_query(session, clinic_id).all()]
        finally:
            session.close()

    def create(self, entity: T, clinic_id: str) -> T:
        if getattr(entity, "clinic_id") != clinic_id:
            raise BusinessRuleViolationError(f"{self.entity_name} does not belong to clinic {clinic_id}")
        key = getattr(entity, self.key_field)
        session = self._session_factory()
        try:
            if self._find(session, key, clinic_id) is not None:
                raise UniqueConstraintViolationError(self.entity_name, self.key_field, key)
            session.add(self.orm_class.from_domain(entity))
            session.commit()
            return entity
        except IntegrityError as exc:
            session.rollback()
            raise UniqueConstraintViolationError(self.entity_name, self.key_field, key) from exc
        finally:
            session.close()

    def update(self, entity_id: str, changes: Mapping[str, Any], clinic_id: str) -> T:
        session = self._session_factory()
        try:
            orm = self._find(session, entity_id, clinic_id)
            if orm is None:
                raise EntityNotFoundError(self.entity_name, entity_id)
            updated = apply_changes(orm.to_domain(), changes, key_field=self.key_field)
            _copy_columns(orm, self.orm_class.from_domain(updated))
            session.commit()
            return updated
        except IntegrityError as exc:
            session.rollback()
            raise UniqueConstraintViolationError(self.entity_name, ", ".join(sorted(changes)), entity_id) from exc
        finally:
            session.close()

    def delete(self, entity_id: str, clinic_id: str) -> bool:
        session = self._session_factory()
        try:
            orm = self._find(session, entity_id, clinic_id)
            if orm is None:
                return False
            session.delete(orm)
            session.commit()
            return True
        finally:
            session.close()


class SqlMembershipRepository(SqlClinicScopedRepository[ClinicMembership], MembershipRepository):
    orm_class = MembershipORM
    entity_name = "ClinicMembership"
    key_field = "user_id"

    def list_for_user(self, user_id: str) -> List[ClinicMembership]:
        session = self._session_factory()
        try:
            rows = session.query(MembershipORM).filter(MembershipORM.user_id == user_id).all()
            return [orm.to_domain() for orm in rows]
        finally:
            session.close()


class SqlPatientClinicRepository(SqlClinicScopedRepository[PatientClinic], PatientClinicRepository):
    orm_class = PatientClinicORM
    entity_name = "PatientClinic"
    key_field = "patient_id"

    def find_by_patient_number(self, clinic_id: str, patient_number: str) -> Optional[PatientClinic]:
        session = self._session_factory()
        try:
            orm = (
                self._scoped_query(session, clinic_id)
                .filter(PatientClinicORM.patient_number == patient_number)
                .one_or_none()
            )
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def list_by_filters(
        self,
        clinic_id: str,
        *,
        status: Optional[PatientClinicStatus] = None,
    ) -> List[PatientClinic]:
        session = self._session_factory()
        try:
            query = self._scoped_query(session, clinic_id)
            if status is not None:
                query = query.filter(PatientClinicORM.status == status.value)
            return [orm.to_domain() for orm in query.all()]
        finally:
            session.close()


class SqlDepartmentRepository(SqlClinicScopedRepository[Department], DepartmentRepository):
    orm_class = DepartmentORM
    entity_name = "Department"


class SqlDoctorRepository(SqlClinicScopedRepository[Doctor], DoctorRepository):
    orm_class = DoctorORM
    entity_name = "Doctor"

    def list_by_filters(self, clinic_id: str, *, department_id: Optional[str] = None) -> List[Doctor]:
        session = self._session_factory()
        try:
            query = self._scoped_query(session, clinic_id)
            if department_id is not None:
                query = query.filter(DoctorORM.department_id == department_id)
            return [orm.to_domain() for orm in query.all()]
        finally:
            session.close()


class SqlRoomRepository(SqlClinicScopedRepository[Room], RoomRepository):
    orm_class = RoomORM
    entity_name = "Room"

    def list_by_filters(self, clinic_id: str, *, status: Optional[RoomStatus] = None) -> List[Room]:
        session = self._session_factory()
        try:
            query = self._scoped_query(session, clinic_id)
            if status is not None:
                query = query.filter(RoomORM.status == status.value)
            query = query.order_by(RoomORM.name, RoomORM.created_at)
            return [orm.to_domain() for orm in query.all()]
        finally:
            session.close()


def _service_day_clause(day: date):
    """Rows whose service day is ``day``: appointment time, else check-in, else creation."""

    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1)

    def within(column):
        return and_(column >= start, column < end)

    return or_(
        within(AppointmentORM.appointment_time),
        and_(AppointmentORM.appointment_time.is_(None), within(AppointmentORM.checkin_time)),
        and_(
            AppointmentORM.appointment_time.is_(None),
            AppointmentORM.checkin_time.is_(None),
            within(AppointmentORM.created_at),
        ),
    )


class SqlAppointmentRepository(SqlClinicScopedRepository[Appointment], AppointmentRepository):
    orm_class = AppointmentORM
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
        session = self._session_factory()
        try:
            query = self._scoped_query(session, clinic_id)
            if status is not None:
                query = query.filter(AppointmentORM.status == status.value)
            if room_id is not None:
                query = query.filter(AppointmentORM.room_id == room_id)
            if doctor_id is not None:
                query = query.filter(AppointmentORM.doctor_id == doctor_id)
            if patient_id is not None:
                query = query.filter(AppointmentORM.patient_id == patient_id)
            if day is not None:
                query = query.filter(_service_day_clause(day))
            appointments = [orm.to_domain() for orm in query.all()]
        finally:
            session.close()

        # Re-checked on the domain object, which owns the service-day rule.
        if day is not None:
            appointments = [a for a in appointments if a.service_day == day]
        appointments.sort(key=appointment_sort_key)
        return appointments


class SqlActivityLogRepository(SqlClinicScopedRepository[ActivityLog], ActivityLogRepository):
    orm_class = ActivityLogORM
    entity_name = "ActivityLog"

    def list_by_filters(
        self,
        clinic_id: str,
        *,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> List[ActivityLog]:
        session = self._session_factory()
        try:
            query = self._scoped_query(session, clinic_id)
            if user_id is not None:
                query = query.filter(ActivityLogORM.user_id == user_id)
            if action is not None:
                query = query.filter(ActivityLogORM.action == action)
            query = query.order_by(ActivityLogORM.created_at.desc())
            return [orm.to_domain() for orm in query.all()]
        finally:
            session.close()


class _SqlGlobalRepository:
    orm_class: Type[Any]

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def _get(self, entity_id: str):
        session = self._session_factory()
        try:
            orm = session.get(self.orm_class, entity_id)
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def _save(self, entity):
        session = self._session_factory()
        try:
            existing = session.get(self.orm_class, entity.id)
            if existing is None:
                session.add(self.orm_class.from_domain(entity))
            else:
                _copy_columns(existing, self.orm_class.from_domain(entity))
            session.commit()
            return entity
        finally:
            session.close()


class SqlUserRepository(_SqlGlobalRepository, UserRepository):
    orm_class = UserORM

    def get(self, user_id: str) -> Optional[User]:
        return self._get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        session = self._session_factory()
        try:
            orm = session.query(UserORM).filter(func.lower(UserORM.email) == email.lower()).one_or_none()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def save(self, user: User) -> User:
        return self._save(user)


class SqlClinicRepository(_SqlGlobalRepository, ClinicRepository):
    orm_class = ClinicORM

    def get(self, clinic_id: str) -> Optional[Clinic]:
        return self._get(clinic_id)

    def save(self, clinic: Clinic) -> Clinic:
        return self._save(clinic)


class SqlPatientRepository(_SqlGlobalRepository, PatientRepository):
    orm_class = PatientORM

    def get(self, patient_id: str) -> Optional[Patient]:
        return self._get(patient_id)

    def find_by_national_id(self, national_id: str) -> Optional[Patient]:
        session = self._session_factory()
        try:
            orm = session.query(PatientORM).filter(PatientORM.national_id == national_id).one_or_none()
            return orm.to_domain() if orm is not None else None
        finally:
            session.close()

    def find_by_phone(self, phone: str) -> List[Patient]:
        session = self._session_factory()
        try:
            return [orm.to_domain() for orm in session.query(PatientORM).filter(PatientORM.phone == phone).all()]
        finally:
            session.close()

    def save(self, patient: Patient) -> Patient:
        return self._save(patient)
