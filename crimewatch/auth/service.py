"""
CrimeWatch - Authentication Service

Registration, credential checks, logout and the password reset flow.
HTTP-agnostic: raises domain exceptions from crimewatch.errors.

All operations are logged; passwords and tokens never are.
"""

from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session as DBSession, select

from crimewatch.auth.models import User, utcnow
from crimewatch.auth.password import (
    burn_verification,
    hash_password_async,
    needs_rehash,
    verify_password_async,
)
from crimewatch.auth.reset_tokens import claim_reset_token, issue_reset_token
from crimewatch.auth.schemas import RegisterRequest, UserRead
from crimewatch.auth.sessions import SessionRecord, SessionStore
from crimewatch.config import settings
from crimewatch.errors import ConflictError, InvalidCredentials, NotFound


class AuthService:
    """
    Authentication operations bound to one database session and the
    application's session store.
    """

    def __init__(self, db: DBSession, session_store: SessionStore):
        self.db = db
        self.session_store = session_store

    def get_user_by_username(self, username: str) -> Optional[User]:
        statement = select(User).where(User.username == username)
        return self.db.exec(statement).first()

    async def register(self, data: RegisterRequest) -> UserRead:
        """
        Create a user with a bcrypt-hashed password.

        Raises:
            ConflictError: Username already taken
        """
        if self.get_user_by_username(data.username):
            logger.info(f"Registration rejected: username {data.username!r} taken")
            raise ConflictError("Username already exists")

        now = utcnow()
        user = User(
            username=data.username,
            email=data.email,
            password_hash=await hash_password_async(data.password),
            role=data.role,
            created_at=now,
            updated_at=now,
        )

        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            self.db.rollback()
            raise ConflictError("Username already exists")
        self.db.refresh(user)

        logger.info(f"User registered: id={user.id} username={user.username!r} role={user.role.value}")
        return UserRead.model_validate(user)

    async def authenticate(self, username: str, password: str) -> UserRead:
        """
        Check credentials.

        Raises:
            InvalidCredentials: Unknown username or wrong password (indistinguishable)
        """
        user = self.get_user_by_username(username)

        if not user:
            await burn_verification(password)
            logger.warning(f"Login failed for {username!r}: user_not_found")
            raise InvalidCredentials()

        if not await verify_password_async(password, user.password_hash):
            logger.warning(f"Login failed for {username!r}: invalid_password")
            raise InvalidCredentials()

        # Upgrade hash if the work factor was raised since it was created
        if needs_rehash(user.password_hash):
            user.password_hash = await hash_password_async(password)
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"Password hash upgraded for user id={user.id}")

        logger.info(f"Login succeeded: id={user.id} username={user.username!r}")
        return UserRead.model_validate(user)

    def start_session(
        self,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SessionRecord:
        return self.session_store.create(user_id, ip_address=ip_address, user_agent=user_agent)

    def logout(self, session_id: Optional[str]) -> None:
        """Revoke a session. Missing, unknown or expired references are ignored."""
        if not session_id:
            return
        if self.session_store.revoke(session_id):
            logger.info("Session revoked on logout")

    def request_password_reset(self, username: str) -> Tuple[User, str]:
        """
        Issue a reset token.

        Raises:
            NotFound: No such user
        """
        user = self.get_user_by_username(username)
        if not user:
            logger.info(f"Password reset requested for unknown username {username!r}")
            raise NotFound("User not found")

        token = issue_reset_token(self.db, user.id, settings.RESET_TOKEN_EXPIRE_MINUTES)
        logger.info(f"Password reset token issued for user id={user.id}")
        return user, token

    async def reset_password(self, token: Optional[str], new_password: str) -> UserRead:
        """
        Consume a reset token and set a new password.

        Existing sessions of the user are revoked; no new session is created.

        Raises:
            InvalidToken: Missing, unknown, used or expired token
        """
        # Hash first: nothing may await between the claim and the commit
        new_hash = await hash_password_async(new_password)

        record = claim_reset_token(self.db, token)
        user = self.db.get(User, record.user_id)
        user.password_hash = new_hash
        user.updated_at = utcnow()
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        revoked = self.session_store.revoke_user(user.id)
        logger.info(f"Password reset for user id={user.id}; {revoked} session(s) revoked")
        return UserRead.model_validate(user)

    def list_users(self) -> List[UserRead]:
        statement = select(User).order_by(User.role, User.id)
        return [UserRead.model_validate(u) for u in self.db.exec(statement).all()]
