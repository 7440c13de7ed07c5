from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from src.clinics_link.domain.models.user import AuthenticatedUser, Role
from src.clinics_link.security import get_current_user
from src.clinics_link.services.auth.service import auth_service
from src.clinics_link.services.users.service import UserClinic, UserProfile, user_service

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1)
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfile
    clinics: List[UserClinic]


class SelectClinicRequest(BaseModel):
    clinic_id: str


class MembershipSummary(BaseModel):
    clinic_id: str
    role: Role


class MeResponse(BaseModel):
    user: UserProfile
    memberships: List[MembershipSummary]


@router.post("/register", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest) -> UserProfile:
    user = auth_service.register(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        phone=payload.phone,
    )
    return UserProfile.from_user(user)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest) -> LoginResponse:
    result = auth_service.login(email=payload.email, password=payload.password)
    return LoginResponse(
        access_token=result.access_token,
        user=UserProfile.from_user(result.user),
        clinics=result.clinics,
    )


@router.post("/select-clinic", response_model=UserClinic)
async def select_clinic(
    payload: SelectClinicRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> UserClinic:
    return auth_service.select_clinic(current_user, payload.clinic_id)


@router.get("/me", response_model=MeResponse)
async def me(current_user: AuthenticatedUser = Depends(get_current_user)) -> MeResponse:
    user = user_service.get_user(current_user.id)
    return MeResponse(
        user=UserProfile.from_user(user),
        memberships=[MembershipSummary(clinic_id=m.clinic_id, role=m.role) for m in current_user.memberships],
    )
