from __future__ import annotations

from typing import Mapping, Optional

from src.clinics_link.config import settings


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_clinic_id(headers: Mapping[str, str], query_params: Mapping[str, str]) -> Optional[str]:
    """Return the clinic a request acts in, or None.

    The ``x-clinic-id`` header wins over the ``clinicId`` query parameter.
    Blank values count as absent. Whether the caller belongs to that clinic
    is decided later by the authorization guard.
    """

    return _clean(headers.get(settings.clinic_header)) or _clean(query_params.get(settings.clinic_query_param))

