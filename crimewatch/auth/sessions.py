"""
CrimeWatch - Session Management

Server-side session stores. One store is selected at startup from
settings.SESSION_STORE and held on app.state.session_store:

- DatabaseSessionStore: durable, rows in the "sessions" table
- MemorySessionStore: process-local dict. NOT durable: every session is
  lost when the process restarts, and sessions are not shared between
  worker processes. Intended for local/demo use only.

Security:
- Session IDs are secrets.token_urlsafe(32) (256 bits of randomness)
- Logout immediately invalidates the session
- Sessions expire SESSION_EXPIRE_DAYS after login (fixed window)
"""

import secrets
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from pydantic import BaseModel
from sqlmodel import Session as DBSession, select

from crimewatch.auth.models import Session, utcnow
from crimewatch.errors import ConfigurationError


class SessionRecord(BaseModel):
    """Store-independent view of an active session."""
    session_id: str
    user_id: int
    issued_at: datetime
    expires_at: datetime
    last_seen: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    model_config = {"from_attributes": True}


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """Abstract session store."""

    durable: bool = False

    def __init__(self, expire_days: int = 30):
        self.lifetime = timedelta(days=expire_days)

    @abstractmethod
    def create(
        self,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SessionRecord:
        """Create and persist a new session for user_id."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionRecord]:
        """Return the session if it exists, is valid and has not expired."""

    @abstractmethod
    def revoke(self, session_id: str) -> bool:
        """Invalidate one session. Returns False if it was not active. Never raises."""

    @abstractmethod
    def revoke_user(self, user_id: int) -> int:
        """Invalidate every session of a user. Returns the count."""

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop expired sessions. Returns the count."""


class DatabaseSessionStore(SessionStore):
    """
    Durable sessions backed by the relational database.

    Args:
        session_factory: Callable returning a new database session
        expire_days: Session lifetime
    """

    durable = True

    def __init__(self, session_factory: Callable[[], DBSession], expire_days: int = 30):
        super().__init__(expire_days)
        self.session_factory = session_factory

    def create(self, user_id, ip_address=None, user_agent=None) -> SessionRecord:
        now = utcnow()
        session = Session(
            session_id=new_session_id(),
            user_id=user_id,
            issued_at=now,
            expires_at=now + self.lifetime,
            last_seen=now,
            is_valid=True,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        with self.session_factory() as db:
            db.add(session)
            db.commit()
            db.refresh(session)
            return SessionRecord.model_validate(session)

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self.session_factory() as db:
            session = db.get(Session, session_id)

            if not session or not session.is_valid:
                return None

            now = utcnow()
            if now > session.expires_at:
                # Mark expired session as invalid
                session.is_valid = False
                db.add(session)
                db.commit()
                return None

            # Update last_seen for activity tracking
            session.last_seen = now
            db.add(session)
            db.commit()
            db.refresh(session)
            return SessionRecord.model_validate(session)

    def revoke(self, session_id: str) -> bool:
        with self.session_factory() as db:
            session = db.get(Session, session_id)
            if not session or not session.is_valid:
                return False

            session.is_valid = False
            db.add(session)
            db.commit()
            return True

    def revoke_user(self, user_id: int) -> int:
        with self.session_factory() as db:
            statement = select(Session).where(
                Session.user_id == user_id,
                Session.is_valid == True,  # noqa: E712
            )
            sessions = db.exec(statement).all()

            for session in sessions:
                session.is_valid = False
                db.add(session)
            db.commit()
            return len(sessions)

    def purge_expired(self) -> int:
        now = utcnow()
        with self.session_factory() as db:
            statement = select(Session).where(Session.expires_at < now)
            sessions = db.exec(statement).all()

            for session in sessions:
                db.delete(session)
            db.commit()
            return len(sessions)


class MemorySessionStore(SessionStore):
    """
    Process-local, non-durable session store.

    Sessions live only as long as this object (normally the process).
    Concurrent operations on the same session are last-write-wins.
    """

    durable = False

    def __init__(self, expire_days: int = 30):
        super().__init__(expire_days)
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create(self, user_id, ip_address=None, user_agent=None) -> SessionRecord:
        now = utcnow()
        record = SessionRecord(
            session_id=new_session_id(),
            user_id=user_id,
            issued_at=now,
            expires_at=now + self.lifetime,
            last_seen=now,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        with self._lock:
            self._sessions[record.session_id] = record
        return record.model_copy()

    def get(self, session_id: str) -> Optional[SessionRecord]:
        now = utcnow()
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return None
            if now > record.expires_at:
                del self._sessions[session_id]
                return None
            record.last_seen = now
            return record.model_copy()

    def revoke(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def revoke_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [sid for sid, record in self._sessions.items() if record.user_id == user_id]
            for sid in doomed:
                del self._sessions[sid]
        return len(doomed)

    def purge_expired(self) -> int:
        now = utcnow()
        with self._lock:
            doomed = [sid for sid, record in self._sessions.items() if now > record.expires_at]
            for sid in doomed:
                del self._sessions[sid]
        return len(doomed)


def build_session_store(
    kind: str,
    session_factory: Callable[[], DBSession],
    expire_days: int = 30,
) -> SessionStore:
    """
    Select the session store implementation by name.

    Raises:
        ConfigurationError: Unknown store kind
    """
    if kind == "database":
        return DatabaseSessionStore(session_factory, expire_days=expire_days)
    if kind == "memory":
        return MemorySessionStore(expire_days=expire_days)
    raise ConfigurationError(f"Unknown SESSION_STORE {kind!r}: expected 'database' or 'memory'")
