"""
Password hashing helpers.

Passwords are hashed with PBKDF2-HMAC-SHA256 and a random 16-byte salt
per password.  The stored form is ``"<salt hex>$<hash hex>"``.  Plain
passwords are never persisted or compared directly; verification
recomputes the digest and compares in constant time.
"""

import hashlib
import hmac
import os

PBKDF2_ITERATIONS = 100_000


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    Parameters
    ----------
    password : str
        The plain text password to hash.

    Returns
    -------
    str
        Salt and hash concatenated with ``$``.
    """
    salt = os.urandom(16)
    return f"{salt.hex()}${_derive(password, salt).hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored salt+hash string.

    Malformed stored values never match.
    """
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    return hmac.compare_digest(_derive(plain_password, salt), stored_hash)


# Verified against when a login names an unknown account so that the
# response time does not reveal whether the username exists.
DUMMY_PASSWORD_HASH = hash_password("reading-list-placeholder")
