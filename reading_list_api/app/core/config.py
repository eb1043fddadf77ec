"""
Simple configuration management.

Like the rest of the service, configuration avoids ``pydantic_settings``
and reads environment variables directly into a ``Settings``
dataclass.  Defaults are provided for every field so the API starts
with a local SQLite database and no further setup.  Override values via
environment variables before importing this module, or build a
``Settings`` instance by hand and pass it to ``create_app``.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Reading List API")
    app_version: str = os.getenv("APP_VERSION", "0.0.1")
    # Reported by ``/api/version``.  Falls back to the process start time
    # when the deployment does not stamp a build time.
    built_at: str = os.getenv("BUILT_AT", datetime.now(timezone.utc).isoformat())
    debug: bool = _env_flag("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Storage backend: ``sqlite`` (default), ``json`` or ``memory``.
    storage_backend: str = os.getenv("STORAGE_BACKEND", "sqlite")

    # Path of the SQLite database file.  Relative paths are resolved
    # against the project root by ``storage.sqlite``.
    database_url: str = os.getenv("DATABASE_URL", "reading_list.db")

    # Directory holding one JSON file per collection for the ``json``
    # backend.
    data_dir: str = os.getenv("DATA_DIR", "data")

    # Frontend assets.  ``index.html`` in this directory is the single
    # page entry document.
    static_dir: str = os.getenv("STATIC_DIR", "static")

    # The one account name that is created with the admin role.
    superuser_name: str = os.getenv("SUPERUSER_NAME", "dreamseak")
    loan_duration_days: int = int(os.getenv("LOAN_DURATION_DAYS", "14"))

    enable_debug_routes: bool = _env_flag("ENABLE_DEBUG_ROUTES", "true")
    cors_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS", "*"))

    # Transient storage failures (SQLite "database is locked") are retried
    # this many times with a fixed delay in seconds.
    storage_retry_attempts: int = int(os.getenv("STORAGE_RETRY_ATTEMPTS", "3"))
    storage_retry_delay: float = float(os.getenv("STORAGE_RETRY_DELAY", "0.1"))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
