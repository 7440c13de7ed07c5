from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from src.clinics_link.config import settings
from src.clinics_link.infra.db import sql_repositories as sql
from src.clinics_link.infra.db.models import Base
from src.clinics_link.infra.db.registry import RepositoryRegistry, repositories
from src.clinics_link.infra.db.session import create_engine_from_url, create_sqlalchemy_session_factory

logger = logging.getLogger(__name__)


def install_sql_repositories(engine: Engine, registry: Optional[RepositoryRegistry] = None) -> None:
    """Create missing tables on ``engine`` and point the registry at SQL repositories."""

    registry = registry or repositories
    Base.metadata.create_all(engine)
    session_factory = create_sqlalchemy_session_factory(engine)

    registry.users = sql.SqlUserRepository(session_factory)
    registry.clinics = sql.SqlClinicRepository(session_factory)
    registry.memberships = sql.SqlMembershipRepository(session_factory)
    registry.patients = sql.SqlPatientRepository(session_factory)
    registry.patient_clinics = sql.SqlPatientClinicRepository(session_factory)
    registry.departments = sql.SqlDepartmentRepository(session_factory)
    registry.doctors = sql.SqlDoctorRepository(session_factory)
    registry.rooms = sql.SqlRoomRepository(session_factory)
    registry.appointments = sql.SqlAppointmentRepository(session_factory)
    registry.activity_logs = sql.SqlActivityLogRepository(session_factory)


def init_repositories(database_url: Optional[str] = None) -> None:
    """Switch to SQL-backed repositories when USE_SQL_REPOS is enabled.

    Without USE_SQL_REPOS, or without a database URL, this is a no-op and
    the in-memory repositories stay active.
    """

    if not settings.use_sql_repos:
        logger.info("Using in-memory repositories")
        return

    db_url = database_url or settings.database_url
    if not db_url:
        logger.warning("USE_SQL_REPOS is set but DATABASE_URL is empty; keeping in-memory repositories")
        return

    # Tables are created on startup; schema migrations are out of scope here.
    install_sql_repositories(create_engine_from_url(db_url))
    logger.info("Using SQL repositories")
