from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.clinics_link.domain.models.common import new_id, utcnow


class Clinic(BaseModel):
    """A tenant. Every scoped entity carries the id of the clinic that owns it."""

    id: str = Field(default_factory=new_id)
    name: str
    address: str
    phone: str
    email: Optional[str] = None
    logo: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Department(BaseModel):
    id: str = Field(default_factory=new_id)
    clinic_id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Doctor(BaseModel):
    id: str = Field(default_factory=new_id)
    clinic_id: str
    department_id: Optional[str] = None
    # Staff account of the doctor, when they also log in.
    user_id: Optional[str] = None
    name: str
    title: Optional[str] = None
    specialty: Optional[str] = None
    license_number: Optional[str] = None
    bio: Optional[str] = None
    room_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
