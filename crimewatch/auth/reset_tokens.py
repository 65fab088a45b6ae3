"""
CrimeWatch - Password Reset Tokens

Single-use, time-bounded reset grants.

Security:
- Token is secrets.token_urlsafe(32); only its SHA-256 is stored
- A token is rejected once used_at is set or expires_at has passed
- Issuing a new token does not revoke older unexpired ones
"""

import hashlib
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session as DBSession, select

from crimewatch.auth.models import PasswordResetToken, utcnow
from crimewatch.errors import InvalidToken


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_reset_token(db: DBSession, user_id: int, expire_minutes: int) -> str:
    """
    Create a reset token for a user.

    Returns:
        The plaintext token. It is not recoverable afterwards.
    """
    token = secrets.token_urlsafe(32)
    now = utcnow()
    db.add(PasswordResetToken(
        user_id=user_id,
        token_hash=hash_token(token),
        issued_at=now,
        expires_at=now + timedelta(minutes=expire_minutes),
    ))
    db.commit()
    return token


def claim_reset_token(db: DBSession, token: Optional[str]) -> PasswordResetToken:
    """
    Atomically mark a token used.

    A single conditional UPDATE claims the row, so of two concurrent
    claims on the same token exactly one succeeds. The change is part of
    db's open transaction; the caller commits it together with the
    password update and must not await in between.

    Raises:
        InvalidToken: Token missing, unknown, already used, or expired
    """
    if not token:
        raise InvalidToken()

    now = utcnow()
    token_hash = hash_token(token)
    statement = (
        update(PasswordResetToken)
        .where(PasswordResetToken.token_hash == token_hash)
        .where(PasswordResetToken.used_at.is_(None))
        .where(PasswordResetToken.expires_at > now)
        .values(used_at=now)
    )
    result = db.connection().execute(statement)
    if result.rowcount != 1:
        raise InvalidToken()

    statement = select(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash)
    return db.exec(statement).one()


def purge_expired_tokens(db: DBSession) -> int:
    """Delete tokens that can no longer be used."""
    now = utcnow()
    statement = select(PasswordResetToken).where(PasswordResetToken.expires_at < now)
    records = db.exec(statement).all()
    for record in records:
        db.delete(record)
    db.commit()
    return len(records)
