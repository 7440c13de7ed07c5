from datetime import date

import pytest

from src.clinics_link.domain.exceptions import (
    BusinessRuleViolationError,
    DuplicatePatientNumberError,
    PatientAlreadyExistsError,
    PatientClinicRelationNotFoundError,
)
from src.clinics_link.domain.models.patient import PatientClinicStatus
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.services.patients.service import (
    ClinicPatientCreate,
    ClinicPatientUpdate,
    patient_service,
)


def new_patient(**overrides) -> ClinicPatientCreate:
    data = {"name": "Chen Mei", "phone": "0912345678", "national_id": "A123456789"}
    data.update(overrides)
    return ClinicPatientCreate(**data)


def test_create_registers_new_patient(clinic_a):
    created = patient_service.create_clinic_patient(clinic_a.id, new_patient(patient_number="P-001"))

    assert created.clinic_id == clinic_a.id
    assert created.patient_number == "P-001"
    assert created.status == PatientClinicStatus.ACTIVE
    assert repositories.patients.get(created.patient_id).name == "Chen Mei"


def test_same_national_id_links_existing_patient_to_second_clinic(clinic_a, clinic_b):
    first = patient_service.create_clinic_patient(clinic_a.id, new_patient())
    second = patient_service.create_clinic_patient(clinic_b.id, new_patient(name="Mei Chen"))

    assert second.patient_id == first.patient_id
    assert second.clinic_id == clinic_b.id


def test_same_national_id_in_same_clinic_conflicts(clinic_a):
    patient_service.create_clinic_patient(clinic_a.id, new_patient())

    with pytest.raises(PatientAlreadyExistsError):
        patient_service.create_clinic_patient(clinic_a.id, new_patient())


def test_phone_and_name_match_links_existing_patient(clinic_a, clinic_b):
    first = patient_service.create_clinic_patient(clinic_a.id, new_patient(national_id=None))
    second = patient_service.create_clinic_patient(clinic_b.id, new_patient(national_id=None, name="CHEN MEI"))

    assert second.patient_id == first.patient_id


def test_phone_match_with_different_birth_date_creates_new_patient(clinic_a, clinic_b):
    first = patient_service.create_clinic_patient(
        clinic_a.id, new_patient(national_id=None, birth_date=date(1990, 1, 1))
    )
    second = patient_service.create_clinic_patient(
        clinic_b.id, new_patient(national_id=None, birth_date=date(1991, 1, 1))
    )

    assert second.patient_id != first.patient_id


def test_patient_number_unique_within_clinic(clinic_a, clinic_b):
    patient_service.create_clinic_patient(clinic_a.id, new_patient(patient_number="P-001"))

    with pytest.raises(DuplicatePatientNumberError):
        patient_service.create_clinic_patient(
            clinic_a.id, new_patient(name="Other", phone="0900000000", national_id="B1", patient_number="P-001")
        )

    # Numbers are per clinic.
    other = patient_service.create_clinic_patient(
        clinic_b.id, new_patient(name="Other", phone="0900000000", national_id="B1", patient_number="P-001")
    )
    assert other.patient_number == "P-001"


def test_invalid_patient_number_is_rejected(clinic_a):
    with pytest.raises(BusinessRuleViolationError, match="Invalid patient number format"):
        patient_service.create_clinic_patient(clinic_a.id, new_patient(patient_number="P 001"))


def test_patient_is_not_visible_from_other_clinic(clinic_a, clinic_b):
    created = patient_service.create_clinic_patient(clinic_a.id, new_patient())

    with pytest.raises(PatientClinicRelationNotFoundError):
        patient_service.get_clinic_patient(clinic_b.id, created.patient_id)
    assert patient_service.list_clinic_patients(clinic_b.id).total == 0


def test_update_checks_number_against_other_patients(clinic_a):
    first = patient_service.create_clinic_patient(clinic_a.id, new_patient(patient_number="P-001"))
    second = patient_service.create_clinic_patient(
        clinic_a.id, new_patient(name="Lee", phone="0922000000", national_id="C1", patient_number="P-002")
    )

    # Re-saving a patient's own number is fine.
    same = patient_service.update_clinic_patient(clinic_a.id, first.patient_id, ClinicPatientUpdate(patient_number="P-001"))
    assert same.patient_number == "P-001"

    with pytest.raises(DuplicatePatientNumberError):
        patient_service.update_clinic_patient(clinic_a.id, second.patient_id, ClinicPatientUpdate(patient_number="P-001"))


def test_update_only_touches_given_fields(clinic_a):
    created = patient_service.create_clinic_patient(
        clinic_a.id, new_patient(patient_number="P-001", note="allergic to penicillin")
    )

    updated = patient_service.update_clinic_patient(
        clinic_a.id, created.patient_id, ClinicPatientUpdate(medical_history={"asthma": True})
    )

    assert updated.medical_history == {"asthma": True}
    assert updated.note == "allergic to penicillin"
    assert updated.patient_number == "P-001"


def test_toggle_status_flips_between_active_and_inactive(clinic_a):
    created = patient_service.create_clinic_patient(clinic_a.id, new_patient())

    assert patient_service.toggle_status(clinic_a.id, created.patient_id).status == PatientClinicStatus.INACTIVE
    assert patient_service.toggle_status(clinic_a.id, created.patient_id).status == PatientClinicStatus.ACTIVE


def test_list_filters_by_search_and_status(clinic_a):
    chen = patient_service.create_clinic_patient(clinic_a.id, new_patient())
    patient_service.create_clinic_patient(
        clinic_a.id, new_patient(name="Wang Li", phone="0933000000", national_id="D1", patient_number="W-9")
    )
    patient_service.toggle_status(clinic_a.id, chen.patient_id)

    assert [p.name for p in patient_service.list_clinic_patients(clinic_a.id, search="w-9").items] == ["Wang Li"]
    inactive = patient_service.list_clinic_patients(clinic_a.id, status=PatientClinicStatus.INACTIVE)
    assert [p.patient_id for p in inactive.items] == [chen.patient_id]


def test_list_is_paginated(clinic_a):
    for i in range(5):
        patient_service.create_clinic_patient(
            clinic_a.id, new_patient(name=f"Patient {i}", phone=f"09000000{i}", national_id=f"N{i}")
        )

    page = patient_service.list_clinic_patients(clinic_a.id, page=2, limit=2)

    assert page.total == 5
    assert page.total_pages == 3
    assert len(page.items) == 2


@pytest.mark.parametrize("number", ["", "   ", "P-001\n"])
def test_blank_or_malformed_patient_number_is_rejected(clinic_a, number):
    with pytest.raises(BusinessRuleViolationError):
        patient_service.create_clinic_patient(clinic_a.id, new_patient(patient_number=number))

    assert patient_service.list_clinic_patients(clinic_a.id).total == 0
