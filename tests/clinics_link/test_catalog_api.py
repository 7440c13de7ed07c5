from fastapi import status

from src.clinics_link.domain.models.user import Role
from src.clinics_link.services.departments.service import department_service
from src.clinics_link.services.doctors.service import doctor_service
from tests.clinics_link.factories import auth_headers, make_user


async def test_roles_catalogue(client, clinic_a):
    manager = make_user("manager@clinics.io", memberships={clinic_a.id: Role.CLINIC_ADMIN})
    headers = auth_headers(manager, clinic_a.id)

    simple = await client.get("/api/v1/roles", headers=headers)
    detailed = await client.get("/api/v1/roles", params={"detailed": "true"}, headers=headers)

    assert simple.status_code == status.HTTP_200_OK
    assert [r["value"] for r in simple.json()["roles"]] == [role.value for role in Role]
    assert "description" not in simple.json()["roles"][0]
    assert all(r["description"] for r in detailed.json()["roles"])


async def test_departments_and_doctors_are_clinic_scoped(client, clinic_a, clinic_b):
    cardiology = department_service.create_department(clinic_a.id, name="Cardiology")
    department_service.create_department(clinic_b.id, name="Dermatology")
    doctor_service.create_doctor(clinic_a.id, name="Dr. Wu", department_id=cardiology.id)
    doctor_service.create_doctor(clinic_a.id, name="Dr. Lin")
    staff = make_user("staff@clinics.io", memberships={clinic_a.id: Role.STAFF})
    headers = auth_headers(staff, clinic_a.id)

    departments = await client.get("/api/v1/departments", headers=headers)
    doctors = await client.get("/api/v1/doctors", params={"department_id": cardiology.id}, headers=headers)

    assert [d["name"] for d in departments.json()] == ["Cardiology"]
    assert [d["name"] for d in doctors.json()] == ["Dr. Wu"]


async def test_admin_deactivates_and_reactivates_user(client, clinic_a):
    admin = make_user("admin@clinics.io", memberships={clinic_a.id: Role.ADMIN})
    nurse = make_user("nurse@clinics.io", memberships={clinic_a.id: Role.NURSE})
    headers = auth_headers(admin, clinic_a.id)

    deactivated = await client.post(f"/api/v1/users/{nurse.id}/deactivate", headers=headers)
    assert deactivated.json()["status"] == "INACTIVE"

    again = await client.post(f"/api/v1/users/{nurse.id}/deactivate", headers=headers)
    assert again.status_code == status.HTTP_409_CONFLICT

    activated = await client.post(f"/api/v1/users/{nurse.id}/activate", headers=headers)
    assert activated.json()["status"] == "ACTIVE"

    self_deactivate = await client.post(f"/api/v1/users/{admin.id}/deactivate", headers=headers)
    assert self_deactivate.status_code == status.HTTP_400_BAD_REQUEST

    logs = await client.get("/api/v1/activity-logs", params={"action": "DEACTIVATE_USER"}, headers=headers)
    assert logs.json()["total"] == 1


async def test_clinic_admin_cannot_use_admin_routes(client, clinic_a):
    manager = make_user("manager@clinics.io", memberships={clinic_a.id: Role.CLINIC_ADMIN})

    response = await client.get(f"/api/v1/users/{manager.id}/clinics", headers=auth_headers(manager, clinic_a.id))

    assert response.json()["reason"] == "InsufficientRole"
