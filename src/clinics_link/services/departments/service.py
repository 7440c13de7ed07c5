from __future__ import annotations

from typing import List, Optional

from src.clinics_link.domain.exceptions import EntityNotFoundError
from src.clinics_link.domain.models.clinic import Department
from src.clinics_link.infra.db.registry import repositories


class DepartmentService:
    def list_departments(self, clinic_id: str) -> List[Department]:
        return sorted(repositories.departments.list(clinic_id), key=lambda d: d.name)

    def get_department(self, clinic_id: str, department_id: str) -> Department:
        department = repositories.departments.get(department_id, clinic_id)
        if department is None:
            raise EntityNotFoundError("Department", department_id)
        return department

    def create_department(
        self,
        clinic_id: str,
        *,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Department:
        department = Department(clinic_id=clinic_id, name=name, description=description, color=color)
        return repositories.departments.create(department, clinic_id)


department_service = DepartmentService()
