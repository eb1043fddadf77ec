"""
Bounded retry for transient storage failures.

SQLite reports ``database is locked`` / ``database is busy`` when
another connection holds a write lock.  Those errors usually clear
within milliseconds, so storage calls are retried a handful of times
with a small fixed delay before the failure is surfaced to the request
as a ``StorageError``.
"""

import functools
import logging
import sqlite3
import time
from typing import Callable, Tuple, Type, TypeVar

from .errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_MARKERS = ("locked", "busy")


def is_transient(exc: BaseException) -> bool:
    """Return True for errors worth retrying."""
    if isinstance(exc, sqlite3.OperationalError):
        text = str(exc).lower()
        return any(marker in text for marker in TRANSIENT_MARKERS)
    return False


def retry_transient(
    attempts: int = 3,
    delay: float = 0.1,
    errors: Tuple[Type[BaseException], ...] = (sqlite3.Error,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator factory retrying a call on transient storage errors.

    Non-transient errors among ``errors`` are converted to
    ``StorageError`` immediately.  Transient ones are retried up to
    ``attempts`` times in total, sleeping ``delay`` seconds between
    tries, and then converted as well.
    """
    attempts = max(1, attempts)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except errors as exc:
                    if not is_transient(exc):
                        logger.error("Storage operation %s failed: %s", func.__name__, exc)
                        raise StorageError(f"Storage error: {exc}") from exc
                    if attempt == attempts:
                        logger.error(
                            "Storage operation %s failed after %d attempts: %s",
                            func.__name__,
                            attempts,
                            exc,
                        )
                        raise StorageError(f"Storage error: {exc}") from exc
                    logger.warning(
                        "Transient storage failure #%d in %s (%s), retrying in %.2fs",
                        attempt,
                        func.__name__,
                        exc,
                        delay,
                    )
                    time.sleep(delay)
            raise StorageError("Storage error")  # pragma: no cover

        return wrapper

    return decorator
