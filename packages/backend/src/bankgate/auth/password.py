"""Password hashing utilities.

bcrypt salts automatically and stores the work factor inside the hash
("$2b$10$..."), so verification needs nothing but the stored string.
The work factor comes from BANKGATE_BCRYPT_ROUNDS unless the caller
passes its app's value.
"""

from typing import Optional

import bcrypt

from bankgate.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash. Malformed hashes never match."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


def needs_rehash(password_hash: str, rounds: Optional[int] = None) -> bool:
    """Check if a hash was made with fewer rounds than currently configured."""
    try:
        hash_rounds = int(password_hash.split("$")[2])
    except (IndexError, ValueError):
        return True
    return hash_rounds < (rounds or settings.bcrypt_rounds)
