import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.clinics_link.api.exception_handlers import install_exception_handlers
from src.clinics_link.api.v1.routes_activity_logs import router as activity_logs_router_v1
from src.clinics_link.api.v1.routes_appointments import router as appointments_router_v1
from src.clinics_link.api.v1.routes_auth import router as auth_router_v1
from src.clinics_link.api.v1.routes_clinic_users import router as clinic_users_router_v1
from src.clinics_link.api.v1.routes_clinics import router as clinics_router_v1
from src.clinics_link.api.v1.routes_departments import router as departments_router_v1
from src.clinics_link.api.v1.routes_doctors import router as doctors_router_v1
from src.clinics_link.api.v1.routes_patients import router as patients_router_v1
from src.clinics_link.api.v1.routes_roles import router as roles_router_v1
from src.clinics_link.api.v1.routes_rooms import router as rooms_router_v1
from src.clinics_link.api.v1.routes_stats import router as stats_router_v1
from src.clinics_link.api.v1.routes_system import router as system_router_v1
from src.clinics_link.api.v1.routes_users import router as users_router_v1
from src.clinics_link.config import settings
from src.clinics_link.infra.db.bootstrap import init_repositories

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Clinics Link API")


@app.on_event("startup")
async def on_startup() -> None:
    """Application startup hook.

    When USE_SQL_REPOS is enabled and a DATABASE_URL is configured, this
    switches every repository to its SQL-backed implementation. Otherwise
    (tests, local dev without a database) the in-memory repositories stay
    active.
    """

    init_repositories()


# CORS configuration: permissive by default for development. Tighten via
# CORS_ALLOW_ORIGINS in production deployments.
allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_exception_handlers(app)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Basic liveness probe for the API root."""
    return {"status": "ok"}


# Versioned API routers
app.include_router(system_router_v1, prefix="/api/v1")
app.include_router(auth_router_v1, prefix="/api/v1")
app.include_router(users_router_v1, prefix="/api/v1")
app.include_router(clinics_router_v1, prefix="/api/v1")
app.include_router(clinic_users_router_v1, prefix="/api/v1")
app.include_router(roles_router_v1, prefix="/api/v1")
app.include_router(departments_router_v1, prefix="/api/v1")
app.include_router(doctors_router_v1, prefix="/api/v1")
app.include_router(rooms_router_v1, prefix="/api/v1")
app.include_router(patients_router_v1, prefix="/api/v1")
app.include_router(appointments_router_v1, prefix="/api/v1")
app.include_router(stats_router_v1, prefix="/api/v1")
app.include_router(activity_logs_router_v1, prefix="/api/v1")
