import pytest
from fastapi import status

from src.clinics_link.domain.models.user import Role
from tests.clinics_link.factories import auth_headers, make_user


@pytest.fixture
def receptionist(clinic_a):
    return make_user("front@clinics.io", memberships={clinic_a.id: Role.RECEPTIONIST})


async def register_patient(client, headers, **fields):
    body = {"name": "Chen Mei", "phone": "0912345678", **fields}
    response = await client.post("/api/v1/patients", json=body, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


async def test_register_and_fetch_patient(client, clinic_a, receptionist):
    headers = auth_headers(receptionist, clinic_a.id)
    created = await register_patient(client, headers, national_id="A123456789", patient_number="P-001")

    fetched = await client.get(f"/api/v1/patients/{created['patient_id']}", headers=headers)

    assert fetched.status_code == status.HTTP_200_OK
    assert fetched.json()["patient_number"] == "P-001"
    assert fetched.json()["clinic_id"] == clinic_a.id


async def test_patient_is_invisible_to_other_clinic(client, clinic_a, clinic_b, receptionist):
    created = await register_patient(client, auth_headers(receptionist, clinic_a.id))
    other = make_user("other@clinics.io", memberships={clinic_b.id: Role.NURSE})
    headers = auth_headers(other, clinic_b.id)

    fetched = await client.get(f"/api/v1/patients/{created['patient_id']}", headers=headers)
    listed = await client.get("/api/v1/patients", headers=headers)

    assert fetched.status_code == status.HTTP_404_NOT_FOUND
    assert listed.json()["total"] == 0


async def test_duplicate_registration_conflicts(client, clinic_a, receptionist):
    headers = auth_headers(receptionist, clinic_a.id)
    await register_patient(client, headers, national_id="A123456789")

    response = await client.post(
        "/api/v1/patients",
        json={"name": "Chen Mei", "phone": "0912345678", "national_id": "A123456789"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_409_CONFLICT


async def test_missing_required_fields_are_rejected(client, clinic_a, receptionist):
    response = await client.post("/api/v1/patients", json={"name": ""}, headers=auth_headers(receptionist, clinic_a.id))

    assert response.status_code == 422


async def test_update_and_toggle_status(client, clinic_a, receptionist):
    headers = auth_headers(receptionist, clinic_a.id)
    created = await register_patient(client, headers)
    patient_url = f"/api/v1/patients/{created['patient_id']}"

    updated = await client.put(patient_url, json={"note": "Prefers mornings"}, headers=headers)
    assert updated.json()["note"] == "Prefers mornings"

    toggled = await client.post(f"{patient_url}/toggle-status", headers=headers)
    assert toggled.json()["status"] == "INACTIVE"

    active = await client.get("/api/v1/patients", params={"status": "ACTIVE"}, headers=headers)
    assert active.json()["total"] == 0
