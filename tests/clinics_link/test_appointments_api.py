import pytest
from fastapi import status

from src.clinics_link.domain.models.user import Role
from src.clinics_link.services.patients.service import ClinicPatientCreate, patient_service
from src.clinics_link.services.rooms.service import room_service
from tests.clinics_link.factories import auth_headers, make_user


@pytest.fixture
def nurse(clinic_a):
    return make_user("nurse@clinics.io", memberships={clinic_a.id: Role.NURSE})


@pytest.fixture
def patient_id(clinic_a):
    return patient_service.create_clinic_patient(
        clinic_a.id, ClinicPatientCreate(name="Lin Hao", phone="0955111222")
    ).patient_id


async def test_walk_in_flow_through_room_queue(client, clinic_a, nurse, patient_id):
    headers = auth_headers(nurse, clinic_a.id)
    room = room_service.create_room(clinic_a.id, name="Room 1")

    checked_in = await client.post(
        "/api/v1/appointments/check-in",
        json={"patient_id": patient_id, "room_id": room.id},
        headers=headers,
    )
    assert checked_in.status_code == status.HTTP_201_CREATED
    appointment = checked_in.json()
    assert appointment["status"] == "CHECKED_IN"
    assert appointment["appointment_number"] == 1

    rooms = await client.get("/api/v1/rooms", headers=headers)
    [entry] = rooms.json()["rooms"]
    assert [q["appointment_id"] for q in entry["queue"]] == [appointment["id"]]
    assert entry["queue"][0]["patient_name"] == "Lin Hao"

    started = await client.put(
        f"/api/v1/appointments/{appointment['id']}", json={"status": "IN_PROGRESS"}, headers=headers
    )
    assert started.json()["start_time"] is not None

    stats = await client.get("/api/v1/stats/dashboard", headers=headers)
    assert stats.json()["in_progress"] == 1


async def test_illegal_transition_conflicts(client, clinic_a, nurse, patient_id):
    headers = auth_headers(nurse, clinic_a.id)
    booked = await client.post("/api/v1/appointments", json={"patient_id": patient_id}, headers=headers)

    response = await client.put(
        f"/api/v1/appointments/{booked.json()['id']}", json={"status": "COMPLETED"}, headers=headers
    )

    assert response.status_code == status.HTTP_409_CONFLICT


async def test_booking_unregistered_patient_is_not_found(client, clinic_a, clinic_b, patient_id):
    other = make_user("other@clinics.io", memberships={clinic_b.id: Role.RECEPTIONIST})

    response = await client.post(
        "/api/v1/appointments", json={"patient_id": patient_id}, headers=auth_headers(other, clinic_b.id)
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_appointment_of_other_clinic_is_not_found(client, clinic_a, clinic_b, nurse, patient_id):
    booked = await client.post(
        "/api/v1/appointments", json={"patient_id": patient_id}, headers=auth_headers(nurse, clinic_a.id)
    )
    other = make_user("other@clinics.io", memberships={clinic_b.id: Role.NURSE})

    response = await client.put(
        f"/api/v1/appointments/{booked.json()['id']}",
        json={"status": "CANCELLED"},
        headers=auth_headers(other, clinic_b.id),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_staff_can_list_but_not_book(client, clinic_a, patient_id):
    staff = make_user("staff@clinics.io", memberships={clinic_a.id: Role.STAFF})
    headers = auth_headers(staff, clinic_a.id)

    listed = await client.get("/api/v1/appointments", headers=headers)
    booked = await client.post("/api/v1/appointments", json={"patient_id": patient_id}, headers=headers)

    assert listed.status_code == status.HTTP_200_OK
    assert booked.status_code == status.HTTP_403_FORBIDDEN
