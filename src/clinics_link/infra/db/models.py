from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Date, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.clinics_link.domain.models.activity_log import ActivityLog
from src.clinics_link.domain.models.appointment import Appointment, AppointmentSource, AppointmentStatus
from src.clinics_link.domain.models.clinic import Clinic, Department, Doctor
from src.clinics_link.domain.models.common import ensure_utc
from src.clinics_link.domain.models.patient import Gender, Patient, PatientClinic, PatientClinicStatus
from src.clinics_link.domain.models.room import Room, RoomStatus
from src.clinics_link.domain.models.user import ClinicMembership, Role, User, UserStatus


class Base(DeclarativeBase):
    pass


# Enum values are stored as plain strings so the schema does not need a
# migration when a value is added.


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, user: User) -> "UserORM":
        return cls(
            id=user.id,
            email=user.email,
            password_hash=user.password_hash,
            name=user.name,
            phone=user.phone,
            status=user.status.value,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def to_domain(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            password_hash=self.password_hash,
            name=self.name,
            phone=self.phone,
            status=UserStatus(self.status),
            last_login_at=ensure_utc(self.last_login_at),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class ClinicORM(Base):
    __tablename__ = "clinics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    logo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, clinic: Clinic) -> "ClinicORM":
        return cls(
            id=clinic.id,
            name=clinic.name,
            address=clinic.address,
            phone=clinic.phone,
            email=clinic.email,
            logo=clinic.logo,
            settings=clinic.settings,
            created_at=clinic.created_at,
            updated_at=clinic.updated_at,
        )

    def to_domain(self) -> Clinic:
        return Clinic(
            id=self.id,
            name=self.name,
            address=self.address,
            phone=self.phone,
            email=self.email,
            logo=self.logo,
            settings=self.settings or {},
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class MembershipORM(Base):
    __tablename__ = "user_clinics"
    __table_args__ = (UniqueConstraint("user_id", "clinic_id", name="uq_user_clinic"),)

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, membership: ClinicMembership) -> "MembershipORM":
        return cls(
            user_id=membership.user_id,
            clinic_id=membership.clinic_id,
            role=membership.role.value,
            created_at=membership.created_at,
            updated_at=membership.updated_at,
        )

    def to_domain(self) -> ClinicMembership:
        return ClinicMembership(
            user_id=self.user_id,
            clinic_id=self.clinic_id,
            role=Role(self.role),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class PatientORM(Base):
    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    national_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    emergency_contact: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    emergency_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, patient: Patient) -> "PatientORM":
        return cls(
            id=patient.id,
            name=patient.name,
            phone=patient.phone,
            national_id=patient.national_id,
            birth_date=patient.birth_date,
            gender=patient.gender.value if patient.gender else None,
            email=patient.email,
            address=patient.address,
            emergency_contact=patient.emergency_contact,
            emergency_phone=patient.emergency_phone,
            created_at=patient.created_at,
            updated_at=patient.updated_at,
        )

    def to_domain(self) -> Patient:
        return Patient(
            id=self.id,
            name=self.name,
            phone=self.phone,
            national_id=self.national_id,
            birth_date=self.birth_date,
            gender=Gender(self.gender) if self.gender else None,
            email=self.email,
            address=self.address,
            emergency_contact=self.emergency_contact,
            emergency_phone=self.emergency_phone,
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class PatientClinicORM(Base):
    __tablename__ = "patient_clinics"
    __table_args__ = (UniqueConstraint("clinic_id", "patient_number", name="uq_clinic_patient_number"),)

    patient_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True)
    patient_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    medical_history: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    first_visit_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_visit_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, relation: PatientClinic) -> "PatientClinicORM":
        return cls(
            patient_id=relation.patient_id,
            clinic_id=relation.clinic_id,
            patient_number=relation.patient_number,
            medical_history=relation.medical_history,
            note=relation.note,
            first_visit_date=relation.first_visit_date,
            last_visit_date=relation.last_visit_date,
            status=relation.status.value,
            created_at=relation.created_at,
            updated_at=relation.updated_at,
        )

    def to_domain(self) -> PatientClinic:
        return PatientClinic(
            patient_id=self.patient_id,
            clinic_id=self.clinic_id,
            patient_number=self.patient_number,
            medical_history=self.medical_history or {},
            note=self.note,
            first_visit_date=ensure_utc(self.first_visit_date),
            last_visit_date=ensure_utc(self.last_visit_date),
            status=PatientClinicStatus(self.status),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class DepartmentORM(Base):
    __tablename__ = "departments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, department: Department) -> "DepartmentORM":
        return cls(**department.model_dump())

    def to_domain(self) -> Department:
        return Department(
            id=self.id,
            clinic_id=self.clinic_id,
            name=self.name,
            description=self.description,
            color=self.color,
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class DoctorORM(Base):
    __tablename__ = "doctors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    department_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    specialty: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    license_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Doctor-room links are small, so they are kept as a JSON list rather
    # than a join table.
    room_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, doctor: Doctor) -> "DoctorORM":
        return cls(**doctor.model_dump())

    def to_domain(self) -> Doctor:
        return Doctor(
            id=self.id,
            clinic_id=self.clinic_id,
            department_id=self.department_id,
            user_id=self.user_id,
            name=self.name,
            title=self.title,
            specialty=self.specialty,
            license_number=self.license_number,
            bio=self.bio,
            room_ids=list(self.room_ids or []),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class RoomORM(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, room: Room) -> "RoomORM":
        return cls(
            id=room.id,
            clinic_id=room.clinic_id,
            name=room.name,
            description=room.description,
            status=room.status.value,
            created_at=room.created_at,
            updated_at=room.updated_at,
        )

    def to_domain(self) -> Room:
        return Room(
            id=self.id,
            clinic_id=self.clinic_id,
            name=self.name,
            description=self.description,
            status=RoomStatus(self.status),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class AppointmentORM(Base):
    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    patient_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    doctor_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    room_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    appointment_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    appointment_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    checkin_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    start_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentORM":
        data = appointment.model_dump()
        data["status"] = appointment.status.value
        data["source"] = appointment.source.value
        return cls(**data)

    def to_domain(self) -> Appointment:
        return Appointment(
            id=self.id,
            clinic_id=self.clinic_id,
            patient_id=self.patient_id,
            doctor_id=self.doctor_id,
            room_id=self.room_id,
            appointment_number=self.appointment_number,
            appointment_time=ensure_utc(self.appointment_time),
            checkin_time=ensure_utc(self.checkin_time),
            start_time=ensure_utc(self.start_time),
            end_time=ensure_utc(self.end_time),
            status=AppointmentStatus(self.status),
            source=AppointmentSource(self.source),
            note=self.note,
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class ActivityLogORM(Base):
    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, log: ActivityLog) -> "ActivityLogORM":
        return cls(**log.model_dump())

    def to_domain(self) -> ActivityLog:
        return ActivityLog(
            id=self.id,
            clinic_id=self.clinic_id,
            user_id=self.user_id,
            action=self.action,
            resource=self.resource,
            resource_id=self.resource_id,
            details=self.details or {},
            ip_address=self.ip_address,
            user_agent=self.user_agent,
            created_at=ensure_utc(self.created_at),
        )
