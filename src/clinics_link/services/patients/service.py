from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.clinics_link.config import settings
from src.clinics_link.domain.exceptions import (
    DuplicatePatientNumberError,
    EntityNotFoundError,
    PatientAlreadyExistsError,
    PatientClinicRelationNotFoundError,
    PatientNotFoundError,
)
from src.clinics_link.domain.models.common import Page, utcnow
from src.clinics_link.domain.models.patient import (
    Gender,
    Patient,
    PatientClinic,
    PatientClinicStatus,
    validate_patient_number,
)
from src.clinics_link.infra.db.registry import repositories

logger = logging.getLogger(__name__)


class ClinicPatientCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    national_id: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    patient_number: Optional[str] = None
    medical_history: Dict[str, Any] = Field(default_factory=dict)
    note: Optional[str] = None


class ClinicPatientUpdate(BaseModel):
    """Clinic-specific fields. Fields left unset are not touched."""

    patient_number: Optional[str] = None
    medical_history: Optional[Dict[str, Any]] = None
    note: Optional[str] = None


class ClinicPatient(BaseModel):
    """A patient as seen from one clinic."""

    patient_id: str
    clinic_id: str
    patient_number: Optional[str] = None
    name: str
    phone: str
    national_id: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    medical_history: Dict[str, Any] = Field(default_factory=dict)
    note: Optional[str] = None
    first_visit_date: datetime
    last_visit_date: datetime
    status: PatientClinicStatus
    created_at: datetime

    @classmethod
    def build(cls, patient: Patient, relation: PatientClinic) -> "ClinicPatient":
        return cls(
            patient_id=patient.id,
            clinic_id=relation.clinic_id,
            patient_number=relation.patient_number,
            name=patient.name,
            phone=patient.phone,
            national_id=patient.national_id,
            birth_date=patient.birth_date,
            gender=patient.gender,
            email=patient.email,
            address=patient.address,
            emergency_contact=patient.emergency_contact,
            emergency_phone=patient.emergency_phone,
            medical_history=relation.medical_history,
            note=relation.note,
            first_visit_date=relation.first_visit_date,
            last_visit_date=relation.last_visit_date,
            status=relation.status,
            created_at=relation.created_at,
        )


class PatientService:
    """Patients registered in a clinic.

    A Patient is global; what a clinic knows about them (number, history,
    status) lives on the PatientClinic relation.
    """

    def _check_patient_number(self, clinic_id: str, patient_number: str, *, patient_id: Optional[str] = None) -> None:
        validate_patient_number(patient_number)
        existing = repositories.patient_clinics.find_by_patient_number(clinic_id, patient_number)
        if existing is not None and existing.patient_id != patient_id:
            raise DuplicatePatientNumberError(clinic_id, patient_number)

    def _find_existing_patient(self, payload: ClinicPatientCreate) -> Optional[tuple[Patient, str, str]]:
        """Return (patient, identifier, kind) of a patient matching ``payload``."""

        if payload.national_id:
            patient = repositories.patients.find_by_national_id(payload.national_id)
            if patient is not None:
                return patient, payload.national_id, "national_id"

        for patient in repositories.patients.find_by_phone(payload.phone):
            if patient.name.lower() != payload.name.lower():
                continue
            if payload.birth_date and patient.birth_date and payload.birth_date != patient.birth_date:
                continue
            return patient, payload.phone, "phone"
        return None

    def create_clinic_patient(self, clinic_id: str, payload: ClinicPatientCreate) -> ClinicPatient:
        """Register a patient in a clinic, reusing the global record when one matches.

        A match is the same national id, or else the same phone and name
        with a compatible birth date. Matching a patient already linked to
        this clinic is a conflict.
        """

        if repositories.clinics.get(clinic_id) is None:
            raise EntityNotFoundError("Clinic", clinic_id)

        match = self._find_existing_patient(payload)
        if match is not None:
            patient, identifier, kind = match
            if repositories.patient_clinics.get(patient.id, clinic_id) is not None:
                raise PatientAlreadyExistsError(identifier, kind)
        else:
            patient = None

        if payload.patient_number is not None:
            self._check_patient_number(clinic_id, payload.patient_number)

        if patient is None:
            patient = Patient(
                name=payload.name,
                phone=payload.phone,
                national_id=payload.national_id,
                birth_date=payload.birth_date,
                gender=payload.gender,
                email=payload.email,
                address=payload.address,
                emergency_contact=payload.emergency_contact,
                emergency_phone=payload.emergency_phone,
            )
            repositories.patients.save(patient)
            logger.info("Created patient %s", patient.id)

        now = utcnow()
        relation = repositories.patient_clinics.create(
            PatientClinic(
                patient_id=patient.id,
                clinic_id=clinic_id,
                patient_number=payload.patient_number,
                medical_history=payload.medical_history,
                note=payload.note,
                first_visit_date=now,
                last_visit_date=now,
            ),
            clinic_id,
        )
        logger.info("Linked patient %s to clinic %s", patient.id, clinic_id)
        return ClinicPatient.build(patient, relation)

    def _load(self, clinic_id: str, patient_id: str) -> tuple[Patient, PatientClinic]:
        relation = repositories.patient_clinics.get(patient_id, clinic_id)
        if relation is None:
            raise PatientClinicRelationNotFoundError(patient_id, clinic_id)
        patient = repositories.patients.get(patient_id)
        if patient is None:
            raise PatientNotFoundError(patient_id)
        return patient, relation

    def get_clinic_patient(self, clinic_id: str, patient_id: str) -> ClinicPatient:
        return ClinicPatient.build(*self._load(clinic_id, patient_id))

    def ensure_linked(self, clinic_id: str, patient_id: str) -> PatientClinic:
        return self._load(clinic_id, patient_id)[1]

    def list_clinic_patients(
        self,
        clinic_id: str,
        *,
        search: Optional[str] = None,
        status: Optional[PatientClinicStatus] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[ClinicPatient]:
        term = search.strip().lower() if search else None
        results: List[ClinicPatient] = []
        for relation in repositories.patient_clinics.list_by_filters(clinic_id, status=status):
            patient = repositories.patients.get(relation.patient_id)
            if patient is None:
                continue
            if term:
                haystack = [patient.name, patient.phone, patient.national_id or "", relation.patient_number or ""]
                if not any(term in value.lower() for value in haystack):
                    continue
            results.append(ClinicPatient.build(patient, relation))

        results.sort(key=lambda p: p.last_visit_date, reverse=True)
        return Page[ClinicPatient].from_items(results, page=page, limit=limit or settings.default_page_size)

    def update_clinic_patient(self, clinic_id: str, patient_id: str, payload: ClinicPatientUpdate) -> ClinicPatient:
        patient, _ = self._load(clinic_id, patient_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("patient_number") is not None:
            self._check_patient_number(clinic_id, changes["patient_number"], patient_id=patient_id)
        if "medical_history" in changes and changes["medical_history"] is None:
            changes["medical_history"] = {}

        relation = repositories.patient_clinics.update(patient_id, changes, clinic_id)
        return ClinicPatient.build(patient, relation)

    def toggle_status(self, clinic_id: str, patient_id: str) -> ClinicPatient:
        patient, relation = self._load(clinic_id, patient_id)
        relation = repositories.patient_clinics.update(patient_id, {"status": relation.toggled_status()}, clinic_id)
        logger.info("Patient %s in clinic %s is now %s", patient_id, clinic_id, relation.status.value)
        return ClinicPatient.build(patient, relation)

    def record_visit(self, clinic_id: str, patient_id: str, at: datetime) -> None:
        repositories.patient_clinics.update(patient_id, {"last_visit_date": at}, clinic_id)


patient_service = PatientService()
