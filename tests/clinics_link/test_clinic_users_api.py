import pytest
from fastapi import status

from src.clinics_link.domain.models.user import Role
from src.clinics_link.infra.db.registry import repositories
from tests.clinics_link.factories import auth_headers, make_user


@pytest.fixture
def manager(clinic_a):
    return make_user("manager@clinics.io", "Manager", memberships={clinic_a.id: Role.CLINIC_ADMIN})


async def test_manager_adds_and_lists_members(client, clinic_a, manager):
    newcomer = make_user("nurse@clinics.io", "Nurse Joy")
    headers = auth_headers(manager, clinic_a.id)

    added = await client.post(
        f"/api/v1/clinics/{clinic_a.id}/users",
        json={"user_id": newcomer.id, "role": "NURSE"},
        headers=headers,
    )
    assert added.status_code == status.HTTP_201_CREATED
    assert added.json()["role"] == "NURSE"

    listed = await client.get(f"/api/v1/clinics/{clinic_a.id}/users", params={"roles": "nurse"}, headers=headers)
    assert listed.status_code == status.HTTP_200_OK
    assert [m["email"] for m in listed.json()["items"]] == ["nurse@clinics.io"]

    logs = repositories.activity_logs.list_by_filters(clinic_a.id, action="ADD_CLINIC_USER")
    assert [log.user_id for log in logs] == [manager.id]


async def test_unknown_role_filter_is_bad_request(client, clinic_a, manager):
    response = await client.get(
        f"/api/v1/clinics/{clinic_a.id}/users",
        params={"roles": "JANITOR"},
        headers=auth_headers(manager, clinic_a.id),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_manager_cannot_manage_another_clinic(client, clinic_a, clinic_b, manager):
    response = await client.get(f"/api/v1/clinics/{clinic_b.id}/users", headers=auth_headers(manager, clinic_a.id))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "You can only manage users in your own clinic"


async def test_last_admin_demotion_conflicts(client, clinic_a, manager):
    response = await client.put(
        f"/api/v1/clinics/{clinic_a.id}/users/{manager.id}/role",
        json={"role": "DOCTOR"},
        headers=auth_headers(manager, clinic_a.id),
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"detail": "Cannot remove the last admin from the clinic"}


async def test_remove_member(client, clinic_a, manager):
    nurse = make_user("nurse@clinics.io", memberships={clinic_a.id: Role.NURSE})

    response = await client.delete(
        f"/api/v1/clinics/{clinic_a.id}/users/{nurse.id}",
        headers=auth_headers(manager, clinic_a.id),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"user_id": nurse.id, "clinic_id": clinic_a.id, "removed": True}


async def test_doctor_cannot_manage_members(client, clinic_a):
    doctor = make_user("doctor@clinics.io", memberships={clinic_a.id: Role.DOCTOR})

    response = await client.get(f"/api/v1/clinics/{clinic_a.id}/users", headers=auth_headers(doctor, clinic_a.id))

    assert response.json()["reason"] == "InsufficientRole"


async def test_clinic_admin_cannot_demote_or_remove_system_admin(client, clinic_a, clinic_b, manager):
    sysadmin = make_user("root@clinics.io", memberships={clinic_a.id: Role.ADMIN})
    headers = auth_headers(manager, clinic_a.id)

    demoted = await client.put(
        f"/api/v1/clinics/{clinic_a.id}/users/{sysadmin.id}/role", json={"role": "STAFF"}, headers=headers
    )
    removed = await client.delete(f"/api/v1/clinics/{clinic_a.id}/users/{sysadmin.id}", headers=headers)

    assert demoted.status_code == status.HTTP_403_FORBIDDEN
    assert removed.status_code == status.HTTP_403_FORBIDDEN
    assert repositories.memberships.get(sysadmin.id, clinic_a.id).role == Role.ADMIN

    elsewhere = await client.get("/api/v1/clinics/current", headers=auth_headers(sysadmin, clinic_b.id))
    assert elsewhere.status_code == status.HTTP_200_OK


async def test_system_admin_can_demote_another_admin(client, clinic_a, manager):
    first = make_user("root@clinics.io", memberships={clinic_a.id: Role.ADMIN})
    second = make_user("root2@clinics.io", memberships={clinic_a.id: Role.ADMIN})

    response = await client.put(
        f"/api/v1/clinics/{clinic_a.id}/users/{second.id}/role",
        json={"role": "DOCTOR"},
        headers=auth_headers(first, clinic_a.id),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["previous_role"] == "ADMIN"
