"""
Business logic for book loans.

A loan ties a book id to a borrower and a due date.  The due date is
always the creation time plus the configured loan duration (14 days by
default); clients cannot choose it.  A loan is active until its due
date has passed.

Each book id can have at most one active loan.  The storage key of a
loan is the book id, so the atomic insert-if-absent of the storage
layer enforces this.  An expired loan still occupying the key is
removed before the insert, conditioned on its due date so that a loan
created concurrently by another request is never removed by mistake.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union

from ..core.errors import ConflictError, ValidationError
from ..core.timeutil import parse_timestamp, utcnow
from ..schemas.loan import LoanRead
from ..storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_LOAN_DAYS = 14


def is_active(record: dict, now: datetime) -> bool:
    """Return True while the loan's due date lies in the future.

    Records with a missing or unreadable due date count as active.
    """
    end_date = parse_timestamp(record.get("end_date"))
    return end_date is None or end_date > now


class LoanService:
    collection = "loans"

    def __init__(
        self,
        store: Storage,
        *,
        loan_duration_days: int = DEFAULT_LOAN_DAYS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.loan_duration = timedelta(days=loan_duration_days)
        self.clock = clock

    @staticmethod
    def _to_read(record: dict) -> LoanRead:
        return LoanRead(
            id=record["id"],
            username=record["username"],
            title=record["title"],
            author=record["author"],
            borrowed_at=record["borrowed_at"],
            end_date=record["end_date"],
        )

    async def list(self) -> List[LoanRead]:
        """Return all active loans in borrowing order."""
        now = self.clock()
        return [
            self._to_read(record)
            for record in self.store.list(self.collection)
            if is_active(record, now)
        ]

    async def create(
        self,
        book_id: Optional[Union[str, int]],
        username: Optional[str],
        title: Optional[str],
        author: Optional[str],
    ) -> LoanRead:
        """Borrow a book.

        Raises ``ValidationError`` if any field is missing and
        ``ConflictError`` if the book already has an active loan.
        """
        key = str(book_id).strip() if book_id is not None else ""
        borrower = (username or "").strip().lower()
        title = (title or "").strip()
        author = (author or "").strip()
        if not key or not borrower or not title or not author:
            raise ValidationError("All fields required")

        now = self.clock()
        record = {
            "id": key,
            "username": borrower,
            "title": title,
            "author": author,
            "borrowed_at": now.isoformat(),
            "end_date": (now + self.loan_duration).isoformat(),
        }

        existing = self.store.get(self.collection, key)
        if existing is not None and not is_active(existing, now):
            self.store.delete(self.collection, key, match={"end_date": existing["end_date"]})
            logger.info("Expired loan of %s by %s cleared", key, existing.get("username"))

        if not self.store.insert(self.collection, key, record):
            raise ConflictError("Book is already on loan")
        logger.info("Loan created: %s to %s until %s", key, borrower, record["end_date"])
        return self._to_read(record)

    async def delete(self, book_id: str, username: Optional[str] = None) -> None:
        """Return a book.

        When ``username`` is given only a loan held by that user is
        removed.  Unknown ids (or a different borrower) are ignored.
        """
        match = None
        if username and username.strip():
            match = {"username": username.strip().lower()}
        if self.store.delete(self.collection, str(book_id), match=match):
            logger.info("Loan of %s returned", book_id)
