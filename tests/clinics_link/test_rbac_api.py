import pytest
from fastapi import status

from src.clinics_link.domain.models.user import Role
from tests.clinics_link.factories import auth_headers, make_user


@pytest.fixture
def doctor(clinic_a):
    return make_user("doctor@clinics.io", memberships={clinic_a.id: Role.DOCTOR})


async def test_doctor_reaches_clinical_route_in_own_clinic(client, clinic_a, doctor):
    response = await client.get("/api/v1/patients", headers=auth_headers(doctor, clinic_a.id))

    assert response.status_code == status.HTTP_200_OK


async def test_other_clinic_is_denied_as_not_a_member(client, clinic_b, doctor):
    response = await client.get("/api/v1/patients", headers=auth_headers(doctor, clinic_b.id))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"detail": "You do not have access to this clinic", "reason": "NotAMember"}


async def test_missing_clinic_context_is_denied(client, doctor):
    response = await client.get("/api/v1/patients", headers=auth_headers(doctor))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["reason"] == "MissingClinicContext"


async def test_blank_header_counts_as_missing(client, doctor):
    headers = auth_headers(doctor)
    headers["x-clinic-id"] = "   "

    response = await client.get("/api/v1/patients", headers=headers)

    assert response.json()["reason"] == "MissingClinicContext"


async def test_role_outside_allowed_set_is_denied(client, clinic_a, doctor):
    response = await client.get("/api/v1/roles", headers=auth_headers(doctor, clinic_a.id))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["reason"] == "InsufficientRole"


async def test_query_parameter_supplies_clinic(client, clinic_a, doctor):
    response = await client.get("/api/v1/patients", params={"clinicId": clinic_a.id}, headers=auth_headers(doctor))

    assert response.status_code == status.HTTP_200_OK


async def test_header_wins_over_query_parameter(client, clinic_a, clinic_b, doctor):
    response = await client.get(
        "/api/v1/patients",
        params={"clinicId": clinic_a.id},
        headers=auth_headers(doctor, clinic_b.id),
    )

    assert response.json()["reason"] == "NotAMember"


async def test_admin_anywhere_is_allowed_everywhere(client, clinic_a):
    admin = make_user("admin@clinics.io", memberships={clinic_a.id: Role.ADMIN})

    response = await client.get("/api/v1/patients", headers=auth_headers(admin, "clinic-z"))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total"] == 0


async def test_routes_without_roles_need_only_authentication(client, doctor):
    response = await client.get("/api/v1/users/me/clinics", headers=auth_headers(doctor))

    assert response.status_code == status.HTTP_200_OK
    assert [c["role"] for c in response.json()["clinics"]] == ["DOCTOR"]


async def test_unauthenticated_request_is_rejected_before_authorization(client, clinic_a):
    response = await client.get("/api/v1/patients", headers={"x-clinic-id": clinic_a.id})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_staff_sees_rooms_but_not_patients(client, clinic_a):
    staff = make_user("staff@clinics.io", memberships={clinic_a.id: Role.STAFF})
    headers = auth_headers(staff, clinic_a.id)

    rooms = await client.get("/api/v1/rooms", headers=headers)
    patients = await client.get("/api/v1/patients", headers=headers)

    assert rooms.status_code == status.HTTP_200_OK
    assert patients.status_code == status.HTTP_403_FORBIDDEN


async def test_current_clinic_reports_role(client, clinic_a, doctor):
    response = await client.get("/api/v1/clinics/current", headers=auth_headers(doctor, clinic_a.id))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Alpha Clinic"
    assert response.json()["role"] == "DOCTOR"
