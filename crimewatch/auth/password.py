"""
CrimeWatch - Password Hashing Utilities

Password hashing using bcrypt.
Work factor comes from settings (default 12); tests lower it for speed.

Security:
- Never log or expose plaintext passwords
- bcrypt includes salt automatically
- Hashing is CPU-bound; async callers use the *_async variants,
  which run on the threadpool instead of the event loop
"""

from functools import lru_cache

import bcrypt
from starlette.concurrency import run_in_threadpool

from crimewatch.config import settings


# bcrypt ignores (or rejects, in newer releases) input past this many bytes
BCRYPT_MAX_BYTES = 72


@lru_cache(maxsize=4)
def _dummy_hash(work_factor: int) -> str:
    """Throwaway hash checked when the username does not exist."""
    return bcrypt.hashpw(b"crimewatch-dummy-password", bcrypt.gensalt(rounds=work_factor)).decode("utf-8")


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plaintext password

    Returns:
        bcrypt hash string (includes salt)

    Example:
        >>> hashed = hash_password("secret1")
        >>> hashed.startswith("$2b$")
        True
    """
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_WORK_FACTOR)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Uses constant-time comparison to prevent timing attacks.

    Returns:
        True if password matches, False otherwise
    """
    try:
        password_bytes = plain_password.encode("utf-8")
        hashed_bytes = hashed_password.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except (ValueError, TypeError):
        # Invalid hash format or over-long input
        return False


def needs_rehash(hashed_password: str, target_work_factor: int = None) -> bool:
    """
    Check if a password hash was produced with a lower work factor than configured.

    Example:
        # After increasing BCRYPT_WORK_FACTOR from 10 to 12:
        >>> needs_rehash(old_hash)  # Generated with factor 10
        True
    """
    if target_work_factor is None:
        target_work_factor = settings.BCRYPT_WORK_FACTOR
    try:
        # bcrypt hash format: $2b$XX$...
        _prefix, work_factor_str, _ = hashed_password.split("$")[1:4]
        return int(work_factor_str) < target_work_factor
    except (ValueError, IndexError):
        # Not a valid bcrypt hash, definitely needs rehash
        return True


async def hash_password_async(password: str) -> str:
    return await run_in_threadpool(hash_password, password)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    return await run_in_threadpool(verify_password, plain_password, hashed_password)


async def burn_verification(plain_password: str) -> None:
    """Spend one bcrypt check on a throwaway hash."""
    await run_in_threadpool(verify_password, plain_password, _dummy_hash(settings.BCRYPT_WORK_FACTOR))
