from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    """Centralized application settings.

    Environment variables are read once at import so that other modules can
    depend on typed attributes instead of calling os.getenv directly.
    """

    # Optional database configuration for SQL-backed repositories. When
    # USE_SQL_REPOS is false (tests, local dev) the in-memory repositories are
    # used.
    database_url: Optional[str] = os.getenv("DATABASE_URL")
    use_sql_repos: bool = os.getenv("USE_SQL_REPOS", "false").lower() == "true"

    # Bearer token configuration.
    jwt_secret: str = os.getenv("JWT_SECRET", "change-me-in-production")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

    # Where the clinic context of a request is read from. The header wins over
    # the query parameter.
    clinic_header: str = os.getenv("CLINIC_HEADER", "x-clinic-id")
    clinic_query_param: str = os.getenv("CLINIC_QUERY_PARAM", "clinicId")

    # Pagination defaults for list endpoints.
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
    max_page_size: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS configuration: comma-separated origins. "*" is acceptable for local
    # development only.
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")


settings = Settings()
