"""Client side data sync for the reading list service.

This module keeps a local copy of the shared service state and
reconciles it with the server, the way the browser frontend does with
``localStorage``:

* Loans and announcements are fetched from the server first.  When the
  server cannot be reached the last cached copy is used instead, and a
  successful fetch refreshes the cache.
* Cached loans are normalised (older caches stored bare book ids) and
  loans whose end date has passed are dropped, so books become
  available again even while offline.
* The current user's role is re-read periodically so that a promotion
  by an administrator takes effect without logging in again.
* Borrowing and returning update the local cache immediately and the
  server as well; server failures are logged and the local state kept.

Polling is explicit: :meth:`ReadingListSync.poll_once` runs every task
whose interval has elapsed and :meth:`ReadingListSync.run` loops over it.
Default intervals are 30 seconds for the role and loans and 10 seconds
for announcements.  Every task is idempotent, so running one twice is
harmless.

Run ``python reading_list_sync.py --help`` for the command line entry
point.  Options default to these environment variables:

``READING_LIST_BASE_URL``
    Base URL of the service.  Defaults to ``http://localhost:3000``.

``READING_LIST_USERNAME`` / ``READING_LIST_PASSWORD``
    Optional credentials to log in with before polling.

``READING_LIST_CACHE``
    Path of the local cache file.  Defaults to ``reading_list_cache.json``.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import threading
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from reading_list_client import Error, ReadingListAPI


logger = logging.getLogger(__name__)

DEFAULT_ROLE = "student"
LOAN_DAYS = 14


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_date(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class LocalCache:
    """A small JSON file key/value store standing in for ``localStorage``.

    Values must be JSON serialisable.  Every ``set`` rewrites the file
    atomically.  A missing or unreadable file behaves like an empty
    cache.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._write()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._write()


class ReadingListSync:
    """Keeps a local cache in step with the reading list service."""

    CURRENT_USER_KEY = "currentUser"
    ROLE_KEY = "currentUserRole"
    LOANS_KEY = "borrowedBooks"
    ANNOUNCEMENTS_KEY = "announcements"

    def __init__(
        self,
        api: ReadingListAPI,
        cache: LocalCache,
        *,
        role_interval: float = 30,
        loan_interval: float = 30,
        announcement_interval: float = 10,
        loan_days: int = LOAN_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.api = api
        self.cache = cache
        self.intervals: Dict[str, float] = {
            "role": role_interval,
            "loans": loan_interval,
            "announcements": announcement_interval,
        }
        self.loan_days = loan_days
        self.clock = clock
        # Next due time per task on the monotonic clock; a task that has
        # never run is due immediately.
        self._next_run: Dict[str, float] = {}
        # Display casing is kept locally, API calls use the lowercase form.
        self.current_user: Optional[str] = cache.get(self.CURRENT_USER_KEY)
        self.role: str = cache.get(self.ROLE_KEY) or DEFAULT_ROLE
        self.loans: List[Dict[str, Any]] = []
        self.announcements: List[Dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def register(self, username: str, password: str) -> Tuple[Optional[str], Optional[Error]]:
        """Create an account.  Returns the assigned role."""
        data, error = self.api.create_account(username, password)
        if error:
            return None, error
        return (data or {}).get("role", DEFAULT_ROLE), None

    def login(self, username: str, password: str) -> Tuple[Optional[str], Optional[Error]]:
        """Log in and remember the user.  Returns the role."""
        data, error = self.api.login(username, password)
        if error:
            return None, error
        self.current_user = username
        self.role = (data or {}).get("role") or DEFAULT_ROLE
        self.cache.set(self.CURRENT_USER_KEY, username)
        self.cache.set(self.ROLE_KEY, self.role)
        logger.info("Logged in as %s (%s)", username, self.role)
        return self.role, None

    def logout(self) -> None:
        self.current_user = None
        self.role = DEFAULT_ROLE
        self.cache.remove(self.CURRENT_USER_KEY)
        self.cache.remove(self.ROLE_KEY)

    def restore_session(self) -> Optional[str]:
        """Re-read the role of the cached user from the server.

        Falls back to ``student`` when the server does not know the user
        or cannot be reached.  Returns the cached username, if any.
        """
        if not self.current_user:
            return None
        data, error = self.api.get_account(self.current_user)
        if error or not data or not data.get("role"):
            self.role = DEFAULT_ROLE
        else:
            self.role = data["role"]
        self.cache.set(self.ROLE_KEY, self.role)
        return self.current_user

    def refresh_role(self) -> bool:
        """Check whether an administrator changed the current user's role.

        Returns True when the role changed.  Failures are ignored; the
        current role stays in place until the server answers again.
        """
        if not self.current_user:
            return False
        data, error = self.api.get_account(self.current_user)
        if error or not data:
            return False
        new_role = data.get("role")
        if new_role and new_role != self.role:
            logger.info("Role of %s changed from %s to %s", self.current_user, self.role, new_role)
            self.role = new_role
            self.cache.set(self.ROLE_KEY, new_role)
            return True
        return False

    # ------------------------------------------------------------------
    # Loans
    # ------------------------------------------------------------------
    def load_cached_loans(self) -> List[Dict[str, Any]]:
        """Return cached loans, normalised and without expired entries.

        Old caches hold plain book ids; they become records without a
        borrower or end date.  Entries without a usable id are dropped.  The
        cleaned list is written back.
        """
        raw = self.cache.get(self.LOANS_KEY) or []
        if not isinstance(raw, list):
            raw = []
        now = self.clock()
        loans: List[Dict[str, Any]] = []
        for entry in raw:
            if not isinstance(entry, dict):
                entry = {"id": entry}
            book_id = entry.get("id")
            if book_id is None or isinstance(book_id, bool) or not str(book_id).strip():
                continue
            loan = dict(entry)
            loan["id"] = str(book_id).strip()
            loan["username"] = (entry.get("username") or entry.get("user") or "").lower()
            loan.pop("user", None)
            loan["endDate"] = entry.get("endDate") or None
            end = _parse_date(loan["endDate"])
            if end is not None and end <= now:
                continue
            loans.append(loan)
        self.cache.set(self.LOANS_KEY, loans)
        self.loans = loans
        return loans

    def fetch_loans(self) -> List[Dict[str, Any]]:
        """Fetch active loans from the server, or use the cache when offline."""
        loans, error = self.api.list_loans()
        if error:
            logger.warning("Using cached loans: %s", error["message"])
            return self.load_cached_loans()
        self.cache.set(self.LOANS_KEY, loans)
        self.loans = loans
        return loans

    def my_loans(self) -> List[Dict[str, Any]]:
        if not self.current_user:
            return []
        user = self.current_user.lower()
        return [loan for loan in self.loans if loan.get("username") == user]

    def is_borrowed(self, book_id: str) -> bool:
        return any(loan.get("id") == str(book_id) for loan in self.loans)

    def borrow(self, book_id: str, title: str, author: str) -> Tuple[bool, Optional[Error]]:
        """Borrow a book for the current user.

        A rejection by the server (for instance 409 when someone else
        holds the book) leaves the cache untouched.  When the server is
        unreachable the loan is recorded locally only.
        """
        if not self.current_user:
            return False, {"status_code": None, "message": "Not logged in"}
        book_id = str(book_id)
        if self.is_borrowed(book_id):
            return False, {"status_code": 409, "message": "Book is already on loan"}
        user = self.current_user.lower()
        _, error = self.api.create_loan(book_id, user, title, author)
        if error and error.get("status_code") is not None:
            return False, error
        if error:
            logger.warning("Loan of %s recorded locally only: %s", book_id, error["message"])
        now = self.clock()
        self.loans.append(
            {
                "id": book_id,
                "username": user,
                "title": title,
                "author": author,
                "borrowedAt": now.isoformat(),
                "endDate": (now + timedelta(days=self.loan_days)).isoformat(),
            }
        )
        self.cache.set(self.LOANS_KEY, self.loans)
        return True, None

    def return_book(self, book_id: str) -> Tuple[bool, Optional[Error]]:
        """Return a book: drop it locally, then tell the server."""
        book_id = str(book_id)
        self.loans = [loan for loan in self.loans if loan.get("id") != book_id]
        self.cache.set(self.LOANS_KEY, self.loans)
        ok, error = self.api.delete_loan(book_id, username=self.current_user)
        if error:
            logger.warning("Return of %s not confirmed by server: %s", book_id, error["message"])
        return ok, error

    # ------------------------------------------------------------------
    # Announcements
    # ------------------------------------------------------------------
    def fetch_announcements(self) -> List[Dict[str, Any]]:
        announcements, error = self.api.list_announcements()
        if error:
            cached = self.cache.get(self.ANNOUNCEMENTS_KEY) or []
            self.announcements = cached if isinstance(cached, list) else []
            return self.announcements
        self.cache.set(self.ANNOUNCEMENTS_KEY, announcements)
        self.announcements = announcements
        return announcements

    def post_announcement(self, title: str, body: str) -> Tuple[bool, Optional[Error]]:
        """Publish an announcement (teachers and admins only) and refresh the list."""
        if self.role not in ("teacher", "admin"):
            return False, {"status_code": None, "message": "Only teachers and admins can post announcements"}
        if not (title or "").strip() and not (body or "").strip():
            return False, {"status_code": None, "message": "Title or body required"}
        _, error = self.api.create_announcement(title, body, username=self.current_user)
        if error:
            return False, error
        self.fetch_announcements()
        return True, None

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    def poll_once(self, now: Optional[float] = None) -> List[str]:
        """Run every task whose interval has elapsed.

        Args:
            now: Current monotonic time; defaults to ``time.monotonic()``.
        Returns:
            The names of the tasks that ran.
        """
        now = time.monotonic() if now is None else now
        tasks: Dict[str, Callable[[], Any]] = {
            "role": self.refresh_role,
            "loans": self.fetch_loans,
            "announcements": self.fetch_announcements,
        }
        ran: List[str] = []
        for name, task in tasks.items():
            if now < self._next_run.get(name, now):
                continue
            try:
                task()
            except Exception:
                logger.exception("Sync task %s failed", name)
            self._next_run[name] = now + self.intervals[name]
            ran.append(name)
        return ran

    def run(
        self,
        stop_event: Optional[threading.Event] = None,
        *,
        tick: float = 1.0,
        max_iterations: Optional[int] = None,
    ) -> None:
        """Poll until ``stop_event`` is set or ``max_iterations`` ticks passed."""
        stop_event = stop_event or threading.Event()
        iterations = 0
        while not stop_event.is_set():
            self.poll_once()
            iterations += 1
            if max_iterations is not None and iterations >= max_iterations:
                break
            stop_event.wait(tick)


def main() -> None:
    parser = argparse.ArgumentParser(description="Keep a local cache in sync with the reading list service.")
    parser.add_argument("--base-url", default=os.getenv("READING_LIST_BASE_URL", "http://localhost:3000"))
    parser.add_argument("--username", default=os.getenv("READING_LIST_USERNAME"))
    parser.add_argument("--password", default=os.getenv("READING_LIST_PASSWORD"))
    parser.add_argument("--cache", default=os.getenv("READING_LIST_CACHE", "reading_list_cache.json"))
    parser.add_argument("--role-interval", type=float, default=30)
    parser.add_argument("--loan-interval", type=float, default=30)
    parser.add_argument("--announcement-interval", type=float, default=10)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    sync = ReadingListSync(
        ReadingListAPI(base_url=args.base_url),
        LocalCache(args.cache),
        role_interval=args.role_interval,
        loan_interval=args.loan_interval,
        announcement_interval=args.announcement_interval,
    )
    if args.username and args.password:
        _, error = sync.login(args.username, args.password)
        if error:
            raise SystemExit(f"Login failed: {error['message']}")
    else:
        sync.restore_session()
    try:
        sync.run()
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
