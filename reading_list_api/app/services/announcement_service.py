"""
Business logic for announcements.

Announcements are immutable once created; the only mutation is
deletion by id, which is idempotent.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from ..core.errors import ConflictError, ValidationError
from ..core.timeutil import utcnow
from ..schemas.announcement import AnnouncementRead
from ..storage import Storage

logger = logging.getLogger(__name__)


def generate_announcement_id() -> str:
    return f"ann_{uuid.uuid4().hex[:12]}"


class AnnouncementService:
    collection = "announcements"

    def __init__(
        self,
        store: Storage,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = generate_announcement_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    @staticmethod
    def _to_read(record: dict) -> AnnouncementRead:
        body = record.get("body") or ""
        return AnnouncementRead(
            id=record["id"],
            username=record.get("username"),
            title=record.get("title") or "",
            body=body,
            content=body,
            created_at=record["created_at"],
        )

    async def list(self) -> List[AnnouncementRead]:
        """Return all announcements, most recent first.

        Records created within the same timestamp keep reverse insertion
        order, so the newest always comes first.
        """
        records = list(reversed(self.store.list(self.collection)))
        records.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return [self._to_read(record) for record in records]

    async def create(
        self,
        title: Optional[str],
        body: Optional[str],
        *,
        announcement_id: Optional[str] = None,
        username: Optional[str] = None,
    ) -> AnnouncementRead:
        """Create an announcement.

        At least one of ``title`` and ``body`` must be non-blank.  When the
        caller supplies an id that is already in use a ``ConflictError``
        is raised; generated ids are retried until one is free.
        """
        title = (title or "").strip()
        body = (body or "").strip()
        if not title and not body:
            raise ValidationError("Title or body required")
        record = {
            "username": (username or "").strip().lower() or None,
            "title": title,
            "body": body,
            "created_at": self.clock().isoformat(),
        }
        supplied_id = (announcement_id or "").strip()
        if supplied_id:
            record["id"] = supplied_id
            if not self.store.insert(self.collection, supplied_id, record):
                raise ConflictError("Announcement already exists")
        else:
            while True:
                record["id"] = self.id_factory()
                if self.store.insert(self.collection, record["id"], record):
                    break
        logger.info("Announcement %s created by %s", record["id"], record["username"] or "system")
        return self._to_read(record)

    async def delete(self, announcement_id: str) -> None:
        """Delete an announcement.  Unknown ids are silently ignored."""
        if self.store.delete(self.collection, announcement_id):
            logger.info("Announcement %s deleted", announcement_id)
