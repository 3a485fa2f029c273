"""
Password hashing for the screensaver unlock prompt.

The settings page stores ``screensaverPasswordHash`` as the hex SHA-256
digest of the password; the unlock prompt hashes what the user typed and
compares digests.
"""
import hashlib
import hmac
from typing import Optional


def hash_password(password: str) -> str:
    """Return the hex SHA-256 digest of ``password`` (UTF-8)."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    """Check ``password`` against a stored digest in constant time."""
    if not stored_hash or not password:
        return False
    return hmac.compare_digest(hash_password(password), stored_hash.lower())
