from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.clinics_link.authorization import AccessDeniedError
from src.clinics_link.domain.exceptions import (
    AuthenticationError,
    BusinessRuleViolationError,
    DomainError,
    EntityNotFoundError,
    InvalidOperationError,
    PermissionDeniedError,
    UniqueConstraintViolationError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching class decides the status code.
_STATUS_BY_ERROR = (
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (BusinessRuleViolationError, status.HTTP_400_BAD_REQUEST),
    (InvalidOperationError, status.HTTP_409_CONFLICT),
    (UniqueConstraintViolationError, status.HTTP_409_CONFLICT),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
)


def status_code_for(exc: DomainError) -> int:
    for error_class, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = status_code_for(exc)
    body = {"detail": exc.message}
    headers = None

    if isinstance(exc, AccessDeniedError):
        body["reason"] = exc.reason.value
    elif isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    logger.debug("%s %s -> %s: %s", request.method, request.url.path, code, exc.message)
    return JSONResponse(status_code=code, content=body, headers=headers)


async def log_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        raise


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.middleware("http")(log_unhandled_errors)
