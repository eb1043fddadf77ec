"""
SQLite storage backend and simple migration system.

Every operation opens its own connection, runs inside one transaction
and closes the connection again, so the backend can be shared by
concurrent requests.  Uniqueness is delegated to the primary keys:
``insert`` uses ``INSERT ... ON CONFLICT DO NOTHING`` and inspects the
row count instead of checking for the key first.

Transient lock errors are retried via ``core.retry``; any other
``sqlite3`` failure surfaces as ``StorageError``.

The migration mechanism stores applied versions in the ``migrations``
table and executes new migrations in order.  Append new migrations with
an incremented version number; never edit an applied one.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, TypeVar

from ..core.retry import retry_transient
from .base import COLLECTIONS, Record, Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Column order per table.  Record dicts use exactly these keys.
COLUMNS: Dict[str, Tuple[str, ...]] = {
    "users": ("username", "password_hash", "role", "created_at"),
    "announcements": ("id", "username", "title", "body", "created_at"),
    "loans": ("id", "username", "title", "author", "borrowed_at", "end_date"),
}

MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            username TEXT PRIMARY KEY,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'student',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS announcements (
            id TEXT PRIMARY KEY,
            username TEXT,
            title TEXT NOT NULL DEFAULT '',
            body TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS loans (
            id TEXT PRIMARY KEY,
            username TEXT NOT NULL,
            title TEXT NOT NULL,
            author TEXT NOT NULL,
            borrowed_at TEXT NOT NULL,
            end_date TEXT NOT NULL
        );
        """,
    ),
    # Migration 2: lookups by borrower and announcement ordering
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_loans_username ON loans(username);
        CREATE INDEX IF NOT EXISTS idx_announcements_created_at ON announcements(created_at);
        """,
    ),
]


def resolve_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths are used as is; relative ones are resolved against
    the project root (the directory containing ``reading_list_api``).
    A ``sqlite:///`` prefix is accepted and stripped.
    """
    if database_url.startswith("sqlite:///"):
        database_url = database_url[len("sqlite:///"):]
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


class SqliteStorage(Storage):
    backend_name = "sqlite"

    def __init__(
        self,
        database_url: str,
        *,
        timeout: float = 5.0,
        retry_attempts: int = 3,
        retry_delay: float = 0.1,
    ) -> None:
        self.path = resolve_database_path(database_url)
        self.timeout = timeout
        self._retry = retry_transient(attempts=retry_attempts, delay=retry_delay)
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._run(self._migrate)
        logger.info("Using SQLite storage at %s", self.path)

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, commit on success, roll back on error, always close."""
        conn = self._connect()
        try:
            yield conn.cursor()
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _run(self, func: Callable[..., T], *args: Any) -> T:
        return self._retry(func)(*args)

    def _migrate(self) -> None:
        with self._cursor() as cursor:
            cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0
            for version, sql in MIGRATIONS:
                if version > current_version:
                    logger.info("Applying SQLite migration %d", version)
                    cursor.executescript(sql)
                    cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                    current_version = version

    @staticmethod
    def _columns(collection: str) -> Tuple[str, ...]:
        Storage.key_field(collection)
        return COLUMNS[collection]

    # ------------------------------------------------------------------
    # Storage interface
    # ------------------------------------------------------------------
    def insert(self, collection: str, key: str, record: Record) -> bool:
        columns = self._columns(collection)
        key_field = self.key_field(collection)
        values = dict(record)
        values[key_field] = key

        def _insert() -> bool:
            with self._cursor() as cursor:
                cursor.execute(
                    f"INSERT INTO {collection} ({', '.join(columns)}) "
                    f"VALUES ({', '.join('?' for _ in columns)}) "
                    f"ON CONFLICT({key_field}) DO NOTHING",
                    tuple(values.get(column) for column in columns),
                )
                return cursor.rowcount == 1

        return self._run(_insert)

    def get(self, collection: str, key: str) -> Optional[Record]:
        columns = self._columns(collection)
        key_field = self.key_field(collection)

        def _get() -> Optional[Record]:
            with self._cursor() as cursor:
                row = cursor.execute(
                    f"SELECT {', '.join(columns)} FROM {collection} WHERE {key_field} = ?",
                    (key,),
                ).fetchone()
                return dict(row) if row else None

        return self._run(_get)

    def list(self, collection: str) -> List[Record]:
        columns = self._columns(collection)

        def _list() -> List[Record]:
            with self._cursor() as cursor:
                rows = cursor.execute(
                    f"SELECT {', '.join(columns)} FROM {collection} ORDER BY rowid"
                ).fetchall()
                return [dict(row) for row in rows]

        return self._run(_list)

    def update(self, collection: str, key: str, changes: Mapping[str, Any]) -> Optional[Record]:
        columns = self._columns(collection)
        key_field = self.key_field(collection)
        fields = [name for name in changes if name in columns and name != key_field]

        def _update() -> Optional[Record]:
            with self._cursor() as cursor:
                if fields:
                    cursor.execute(
                        f"UPDATE {collection} SET {', '.join(f'{name} = ?' for name in fields)} "
                        f"WHERE {key_field} = ?",
                        tuple(changes[name] for name in fields) + (key,),
                    )
                row = cursor.execute(
                    f"SELECT {', '.join(columns)} FROM {collection} WHERE {key_field} = ?",
                    (key,),
                ).fetchone()
                return dict(row) if row else None

        return self._run(_update)

    def delete(self, collection: str, key: str, match: Optional[Mapping[str, Any]] = None) -> bool:
        columns = self._columns(collection)
        key_field = self.key_field(collection)
        conditions = [f"{key_field} = ?"]
        params: List[Any] = [key]
        for name, value in (match or {}).items():
            if name not in columns:
                raise ValueError(f"Unknown field {name!r} for {collection}")
            conditions.append(f"{name} = ?")
            params.append(value)

        def _delete() -> bool:
            with self._cursor() as cursor:
                cursor.execute(
                    f"DELETE FROM {collection} WHERE {' AND '.join(conditions)}",
                    tuple(params),
                )
                return cursor.rowcount > 0

        return self._run(_delete)

    def clear(self, collection: Optional[str] = None) -> None:
        names = [collection] if collection else list(COLLECTIONS)
        for name in names:
            self.key_field(name)

        def _clear() -> None:
            with self._cursor() as cursor:
                for name in names:
                    cursor.execute(f"DELETE FROM {name}")

        self._run(_clear)

    def describe(self) -> str:
        return f"SQLite ({self.path})"
