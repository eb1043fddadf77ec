"""
Pluggable storage backends.

``build_storage`` picks the backend named by ``settings.storage_backend``.
All backends implement ``Storage`` so the services do not depend on
which one is configured.
"""

from ..core.config import Settings
from .base import COLLECTIONS, Record, Storage
from .jsonfile import JsonFileStorage
from .memory import MemoryStorage
from .sqlite import SqliteStorage

__all__ = [
    "COLLECTIONS",
    "Record",
    "Storage",
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    "build_storage",
]


def build_storage(settings: Settings) -> Storage:
    """Instantiate the configured storage backend."""
    backend = settings.storage_backend.lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "json":
        return JsonFileStorage(settings.data_dir)
    if backend == "sqlite":
        return SqliteStorage(
            settings.database_url,
            retry_attempts=settings.storage_retry_attempts,
            retry_delay=settings.storage_retry_delay,
        )
    raise ValueError(f"Unknown storage backend {settings.storage_backend!r}")
