"""
Storage abstraction shared by every backend.

Services never talk to a database directly.  They receive a
``Storage`` instance and operate on three named collections of plain
dict records:

* ``users`` keyed by the normalised ``username``
* ``announcements`` keyed by ``id``
* ``loans`` keyed by the book ``id``

``insert`` is an atomic insert-if-absent: it either stores the record
or reports that the key is taken, with no window in which two callers
can both succeed.  Uniqueness rules (one account per username, one
active loan per book) are built on that primitive instead of a
read-then-write sequence.
"""

import abc
from typing import Any, Dict, List, Mapping, Optional

Record = Dict[str, Any]

COLLECTIONS: Dict[str, str] = {
    "users": "username",
    "announcements": "id",
    "loans": "id",
}


class Storage(abc.ABC):
    """Interface implemented by the memory, JSON file and SQLite backends."""

    backend_name = "abstract"

    @staticmethod
    def key_field(collection: str) -> str:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection {collection!r}") from None

    @abc.abstractmethod
    def insert(self, collection: str, key: str, record: Record) -> bool:
        """Store ``record`` under ``key`` unless the key exists.

        Returns True if the record was stored, False if the key was
        already taken (the existing record is left untouched).
        """

    @abc.abstractmethod
    def get(self, collection: str, key: str) -> Optional[Record]:
        """Return a copy of the record stored under ``key`` or None."""

    @abc.abstractmethod
    def list(self, collection: str) -> List[Record]:
        """Return copies of all records in insertion order."""

    @abc.abstractmethod
    def update(self, collection: str, key: str, changes: Mapping[str, Any]) -> Optional[Record]:
        """Apply ``changes`` to an existing record.

        Returns the updated record, or None when the key is unknown.
        The key field itself cannot be changed.
        """

    @abc.abstractmethod
    def delete(self, collection: str, key: str, match: Optional[Mapping[str, Any]] = None) -> bool:
        """Remove the record under ``key``.

        When ``match`` is given the record is only removed if every
        listed field equals the given value.  Returns True if a record
        was removed.  Unknown keys are not an error.
        """

    @abc.abstractmethod
    def clear(self, collection: Optional[str] = None) -> None:
        """Remove every record from one collection, or from all of them."""

    def describe(self) -> str:
        """Short human readable description used by the debug status route."""
        return self.backend_name

    def close(self) -> None:
        """Release resources held by the backend."""

    @staticmethod
    def _matches(record: Mapping[str, Any], match: Optional[Mapping[str, Any]]) -> bool:
        if not match:
            return True
        return all(record.get(field) == value for field, value in match.items())
