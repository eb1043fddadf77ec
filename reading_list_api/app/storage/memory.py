"""In-memory storage backend.  Data is lost when the process exits."""

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional

from .base import COLLECTIONS, Record, Storage


class MemoryStorage(Storage):
    """Dict-per-collection store guarded by a single lock."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Record]] = {name: {} for name in COLLECTIONS}

    def _collection(self, collection: str) -> Dict[str, Record]:
        self.key_field(collection)
        return self._data[collection]

    def insert(self, collection: str, key: str, record: Record) -> bool:
        with self._lock:
            items = self._collection(collection)
            if key in items:
                return False
            items[key] = copy.deepcopy(record)
            return True

    def get(self, collection: str, key: str) -> Optional[Record]:
        with self._lock:
            record = self._collection(collection).get(key)
            return copy.deepcopy(record) if record is not None else None

    def list(self, collection: str) -> List[Record]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._collection(collection).values()]

    def update(self, collection: str, key: str, changes: Mapping[str, Any]) -> Optional[Record]:
        key_field = self.key_field(collection)
        with self._lock:
            record = self._collection(collection).get(key)
            if record is None:
                return None
            record.update({k: v for k, v in changes.items() if k != key_field})
            return copy.deepcopy(record)

    def delete(self, collection: str, key: str, match: Optional[Mapping[str, Any]] = None) -> bool:
        with self._lock:
            items = self._collection(collection)
            record = items.get(key)
            if record is None or not self._matches(record, match):
                return False
            del items[key]
            return True

    def clear(self, collection: Optional[str] = None) -> None:
        with self._lock:
            names = [collection] if collection else list(COLLECTIONS)
            for name in names:
                self._collection(name).clear()

    def describe(self) -> str:
        return "In-memory (temporary)"
