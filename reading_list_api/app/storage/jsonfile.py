"""
JSON file storage backend.

Each collection lives in ``<data_dir>/<collection>.json`` as a list of
records.  Files are rewritten atomically through a temporary file and
``os.replace``.  A process-wide lock serialises read-modify-write
cycles, which makes ``insert`` atomic for a single server process.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ..core.errors import StorageError
from .base import COLLECTIONS, Record, Storage

logger = logging.getLogger(__name__)


class JsonFileStorage(Storage):
    backend_name = "json"

    def __init__(self, data_dir: str) -> None:
        self.data_dir = Path(data_dir).resolve()
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create data directory {self.data_dir}: {exc}") from exc
        self._lock = threading.Lock()
        logger.info("Using JSON file storage in %s", self.data_dir)

    def _path(self, collection: str) -> Path:
        self.key_field(collection)
        return self.data_dir / f"{collection}.json"

    def _load(self, collection: str) -> List[Record]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read {path.name}: {exc}") from exc
        if not isinstance(data, list):
            raise StorageError(f"Unexpected content in {path.name}")
        return data

    def _save(self, collection: str, records: List[Record]) -> None:
        path = self._path(collection)
        tmp_path = path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageError(f"Cannot write {path.name}: {exc}") from exc

    def _find(self, collection: str, records: List[Record], key: str) -> Optional[int]:
        key_field = self.key_field(collection)
        for index, record in enumerate(records):
            if record.get(key_field) == key:
                return index
        return None

    def insert(self, collection: str, key: str, record: Record) -> bool:
        with self._lock:
            records = self._load(collection)
            if self._find(collection, records, key) is not None:
                return False
            stored = dict(record)
            stored[self.key_field(collection)] = key
            records.append(stored)
            self._save(collection, records)
            return True

    def get(self, collection: str, key: str) -> Optional[Record]:
        with self._lock:
            records = self._load(collection)
            index = self._find(collection, records, key)
            return records[index] if index is not None else None

    def list(self, collection: str) -> List[Record]:
        with self._lock:
            return self._load(collection)

    def update(self, collection: str, key: str, changes: Mapping[str, Any]) -> Optional[Record]:
        key_field = self.key_field(collection)
        with self._lock:
            records = self._load(collection)
            index = self._find(collection, records, key)
            if index is None:
                return None
            records[index].update({k: v for k, v in changes.items() if k != key_field})
            self._save(collection, records)
            return dict(records[index])

    def delete(self, collection: str, key: str, match: Optional[Mapping[str, Any]] = None) -> bool:
        with self._lock:
            records = self._load(collection)
            index = self._find(collection, records, key)
            if index is None or not self._matches(records[index], match):
                return False
            del records[index]
            self._save(collection, records)
            return True

    def clear(self, collection: Optional[str] = None) -> None:
        with self._lock:
            for name in [collection] if collection else COLLECTIONS:
                self._save(name, [])

    def describe(self) -> str:
        return f"JSON files in {self.data_dir}"
