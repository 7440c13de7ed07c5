from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from src.clinics_link.domain.models.common import new_id, utcnow


class RoomStatus(str, Enum):
    OPEN = "OPEN"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class Room(BaseModel):
    """A consultation room. Its status is independent of any appointment;
    appointments assigned to it form its queue."""

    id: str = Field(default_factory=new_id)
    clinic_id: str
    name: str
    description: Optional[str] = None
    status: RoomStatus = RoomStatus.CLOSED
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
