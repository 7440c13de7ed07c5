from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, computed_field

from src.clinics_link.domain.exceptions import BusinessRuleViolationError
from src.clinics_link.domain.models.common import new_id, utcnow

_PATIENT_NUMBER_RE = re.compile(r"^[A-Za-z0-9-]+$")


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class PatientClinicStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


def validate_patient_number(value: str) -> str:
    if not value or not value.strip():
        raise BusinessRuleViolationError("Patient number cannot be empty")
    if not _PATIENT_NUMBER_RE.fullmatch(value):
        raise BusinessRuleViolationError("Invalid patient number format")
    return value


class Patient(BaseModel):
    """Clinic-independent identity of a patient."""

    id: str = Field(default_factory=new_id)
    name: str
    phone: str
    national_id: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PatientClinic(BaseModel):
    """Clinic-specific state of a patient, identified by (patient_id, clinic_id)."""

    patient_id: str
    clinic_id: str
    patient_number: Optional[str] = None
    medical_history: Dict[str, Any] = Field(default_factory=dict)
    note: Optional[str] = None
    first_visit_date: datetime = Field(default_factory=utcnow)
    last_visit_date: datetime = Field(default_factory=utcnow)
    status: PatientClinicStatus = PatientClinicStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field  # type: ignore[misc]
    @property
    def id(self) -> str:
        return f"{self.patient_id}-{self.clinic_id}"

    @property
    def is_active(self) -> bool:
        return self.status == PatientClinicStatus.ACTIVE

    def toggled_status(self) -> PatientClinicStatus:
        if self.status == PatientClinicStatus.ACTIVE:
            return PatientClinicStatus.INACTIVE
        return PatientClinicStatus.ACTIVE
