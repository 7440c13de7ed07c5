from __future__ import annotations

from typing import List, Optional

from src.clinics_link.domain.exceptions import EntityNotFoundError
from src.clinics_link.domain.models.clinic import Doctor
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.services.departments.service import department_service


class DoctorService:
    def list_doctors(self, clinic_id: str, *, department_id: Optional[str] = None) -> List[Doctor]:
        doctors = repositories.doctors.list_by_filters(clinic_id, department_id=department_id)
        return sorted(doctors, key=lambda d: d.name)

    def get_doctor(self, clinic_id: str, doctor_id: str) -> Doctor:
        doctor = repositories.doctors.get(doctor_id, clinic_id)
        if doctor is None:
            raise EntityNotFoundError("Doctor", doctor_id)
        return doctor

    def create_doctor(
        self,
        clinic_id: str,
        *,
        name: str,
        department_id: Optional[str] = None,
        user_id: Optional[str] = None,
        title: Optional[str] = None,
        specialty: Optional[str] = None,
        room_ids: Optional[List[str]] = None,
    ) -> Doctor:
        """Create a doctor; the department and rooms must belong to the same clinic."""

        if department_id is not None:
            department_service.get_department(clinic_id, department_id)
        for room_id in room_ids or []:
            if repositories.rooms.get(room_id, clinic_id) is None:
                raise EntityNotFoundError("Room", room_id)

        doctor = Doctor(
            clinic_id=clinic_id,
            name=name,
            department_id=department_id,
            user_id=user_id,
            title=title,
            specialty=specialty,
            room_ids=list(room_ids or []),
        )
        return repositories.doctors.create(doctor, clinic_id)


doctor_service = DoctorService()
