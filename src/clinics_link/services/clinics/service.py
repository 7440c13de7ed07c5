from __future__ import annotations

from typing import Any, Dict, Optional

from src.clinics_link.domain.exceptions import EntityNotFoundError
from src.clinics_link.domain.models.clinic import Clinic
from src.clinics_link.infra.db.registry import repositories


class ClinicService:
    def get_clinic(self, clinic_id: str) -> Clinic:
        clinic = repositories.clinics.get(clinic_id)
        if clinic is None:
            raise EntityNotFoundError("Clinic", clinic_id)
        return clinic

    def create_clinic(
        self,
        *,
        name: str,
        address: str,
        phone: str,
        email: Optional[str] = None,
        logo: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Clinic:
        clinic = Clinic(
            name=name,
            address=address,
            phone=phone,
            email=email,
            logo=logo,
            settings=settings or {},
        )
        return repositories.clinics.save(clinic)


clinic_service = ClinicService()
