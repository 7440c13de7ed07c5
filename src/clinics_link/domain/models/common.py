from __future__ import annotations

from datetime import datetime, timezone
from math import ceil
from typing import Generic, List, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (request payloads, SQLite round-trips)."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_items(cls, items: List[T], *, page: int, limit: int) -> "Page[T]":
        """Slice an already-filtered list into one page (1-based)."""

        start = (page - 1) * limit
        return cls(
            items=items[start : start + limit],
            page=page,
            limit=limit,
            total=len(items),
            total_pages=ceil(len(items) / limit) if limit else 0,
        )
