"""
Business logic for accounts.

Usernames are case-insensitive: they are stripped and lowercased
before they are used as storage keys, so ``Foo`` and ``foo`` name the
same account.  The configured superuser name is created with the
``admin`` role; every other account starts as ``student`` and can be
promoted later through ``set_role``.

Passwords are stored as salted PBKDF2 hashes (see ``core.security``).
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from ..core.security import DUMMY_PASSWORD_HASH, hash_password, verify_password
from ..core.timeutil import utcnow
from ..schemas.account import AccountRead
from ..storage import Storage

logger = logging.getLogger(__name__)

ROLES = ("student", "teacher", "admin")
DEFAULT_ROLE = "student"
ADMIN_ROLE = "admin"


def normalize_username(username: Optional[str]) -> str:
    """Return the storage key for a username (stripped, lowercased)."""
    return (username or "").strip().lower()


class AccountService:
    """Registration, login and role management on top of a ``Storage``."""

    collection = "users"

    def __init__(
        self,
        store: Storage,
        *,
        superuser_name: str = "dreamseak",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.superuser_name = normalize_username(superuser_name)
        self.clock = clock

    @staticmethod
    def _to_read(record: dict) -> AccountRead:
        return AccountRead(
            username=record["username"],
            role=record.get("role") or DEFAULT_ROLE,
            created_at=record.get("created_at"),
        )

    def role_for(self, username: str) -> str:
        return ADMIN_ROLE if username == self.superuser_name else DEFAULT_ROLE

    async def create_account(self, username: Optional[str], password: Optional[str]) -> str:
        """Create an account and return the role it was given.

        Raises ``ValidationError`` if either field is missing and
        ``ConflictError`` if the normalised username is taken.  The
        uniqueness check and the write are a single atomic insert.
        """
        key = normalize_username(username)
        if not key or not password:
            raise ValidationError("Username and password required")
        role = self.role_for(key)
        record = {
            "username": key,
            "password_hash": hash_password(password),
            "role": role,
            "created_at": self.clock().isoformat(),
        }
        if not self.store.insert(self.collection, key, record):
            raise ConflictError("User already exists")
        logger.info("Created account %s with role %s", key, role)
        return role

    async def login(self, username: Optional[str], password: Optional[str]) -> AccountRead:
        """Check credentials and return the stored account.

        Unknown usernames and wrong passwords raise the same
        ``AuthError``, and an unknown username still pays for one hash
        verification so the two cases cannot be told apart.
        """
        key = normalize_username(username)
        if not key or not password:
            raise ValidationError("Username and password required")
        record = self.store.get(self.collection, key)
        if record is None:
            verify_password(password, DUMMY_PASSWORD_HASH)
            logger.info("Failed login for unknown account")
            raise AuthError("Invalid username or password")
        if not verify_password(password, record.get("password_hash", "")):
            logger.info("Failed login for %s", key)
            raise AuthError("Invalid username or password")
        logger.info("Login: %s has role %s", key, record.get("role"))
        return self._to_read(record)

    async def get_account(self, username: Optional[str]) -> AccountRead:
        key = normalize_username(username)
        if not key:
            raise ValidationError("Username required")
        record = self.store.get(self.collection, key)
        if record is None:
            raise NotFoundError("User not found")
        return self._to_read(record)

    async def list_accounts(self) -> List[AccountRead]:
        """Return every account in creation order."""
        return [self._to_read(record) for record in self.store.list(self.collection)]

    async def set_role(self, username: Optional[str], role: Optional[str]) -> AccountRead:
        """Overwrite the role of an existing account.

        The role is matched case-insensitively against ``ROLES``.
        """
        key = normalize_username(username)
        new_role = (role or "").strip().lower()
        if not key or not new_role:
            raise ValidationError("Username and role required")
        if new_role not in ROLES:
            raise ValidationError(f"Invalid role {role!r}; expected one of {', '.join(ROLES)}")
        record = self.store.update(self.collection, key, {"role": new_role})
        if record is None:
            raise NotFoundError("User not found")
        logger.info("Role of %s set to %s", key, new_role)
        return self._to_read(record)
