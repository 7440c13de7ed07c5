from typing import Dict, Optional

from src.clinics_link.domain.models.clinic import Clinic
from src.clinics_link.domain.models.user import ClinicMembership, Role, User
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.security import create_access_token, hash_password
from src.clinics_link.services.clinics.service import clinic_service

PASSWORD = "correct-horse-battery"


def make_clinic(name: str) -> Clinic:
    return clinic_service.create_clinic(name=name, address=f"{name} street 1", phone="02-1234-5678")


def make_user(email: str, name: Optional[str] = None, *, memberships: Optional[Dict[str, Role]] = None) -> User:
    user = User(email=email, password_hash=hash_password(PASSWORD), name=name or email.split("@")[0])
    repositories.users.save(user)
    for clinic_id, role in (memberships or {}).items():
        repositories.memberships.create(ClinicMembership(user_id=user.id, clinic_id=clinic_id, role=role), clinic_id)
    return user


def auth_headers(user: User, clinic_id: Optional[str] = None) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {create_access_token(user.id)}"}
    if clinic_id is not None:
        headers["x-clinic-id"] = clinic_id
    return headers
