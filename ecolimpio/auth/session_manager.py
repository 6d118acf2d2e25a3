"""
Session lifecycle: issued -> active -> (expired | revoked).

A session is addressed by two credentials at once: the bearer token kept in
the session cookie and the access hash carried in the URL path. Page routes
must present both; JSON API routes authenticate with the token alone.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..models.base import utcnow
from ..models.user import Session, User
from ..storage.session_store import SessionStore
from ..storage.user_store import UserStore
from ..utils.exceptions import DuplicateError, SessionHashCollisionError
from ..utils.logger import get_logger
from .session_hash import generate_access_hash, generate_session_token

logger = get_logger(__name__)

SESSION_EXPIRY_DAYS = 7
MAX_HASH_ATTEMPTS = 5


@dataclass(frozen=True)
class AuthenticatedSession:
    session: Session
    user: User


class SessionManager:
    def __init__(
        self,
        sessions: SessionStore,
        users: UserStore,
        expiry_days: int = SESSION_EXPIRY_DAYS,
        max_hash_attempts: int = MAX_HASH_ATTEMPTS,
        hash_factory: Callable[[], str] = generate_access_hash,
        token_factory: Callable[[], str] = generate_session_token,
    ):
        self.sessions = sessions
        self.users = users
        self.expiry_days = expiry_days
        self.max_hash_attempts = max_hash_attempts
        self.hash_factory = hash_factory
        self.token_factory = token_factory

    def create_session(self, user: User) -> Session:
        """
        Issue a session with a fresh token and an access hash unique among
        stored sessions.

        The pre-check avoids most collisions; the UNIQUE constraint on insert
        is authoritative and a rejected insert counts as another attempt.
        Raises SessionHashCollisionError once the attempt budget is spent.
        """
        expires_at = utcnow() + timedelta(days=self.expiry_days)
        for attempt in range(1, self.max_hash_attempts + 1):
            access_hash = self.hash_factory()
            if self.sessions.hash_in_use(access_hash):
                logger.warning("Access hash collision", attempt=attempt)
                continue
            session = Session(
                user_id=user.id,
                token=self.token_factory(),
                access_hash=access_hash,
                expires_at=expires_at,
            )
            try:
                self.sessions.create(session)
            except DuplicateError:
                logger.warning("Access hash collision on insert", attempt=attempt)
                continue
            logger.info("Session issued", user_id=user.id, role=user.role.value)
            return session

        logger.error("Could not allocate unique access hash", attempts=self.max_hash_attempts)
        raise SessionHashCollisionError(
            "No se pudo generar una sesión única. Inténtalo de nuevo."
        )

    def _activate(self, session: Optional[Session], now: Optional[datetime] = None) -> Optional[AuthenticatedSession]:
        if session is None:
            return None
        if session.is_expired(now):
            self.sessions.delete(session.id)
            logger.info("Expired session purged", session_id=session.id)
            return None
        user = self.users.get_by_id(session.user_id)
        if user is None:
            self.sessions.delete(session.id)
            return None
        return AuthenticatedSession(session=session, user=user)

    def resolve(self, token: Optional[str], access_hash: Optional[str]) -> Optional[AuthenticatedSession]:
        """Match a (cookie token, path hash) pair against one live session"""
        if not token or not access_hash:
            return None
        return self._activate(self.sessions.find(token, access_hash))

    def authenticate(self, token: Optional[str]) -> Optional[AuthenticatedSession]:
        """Token-only lookup used by JSON API routes"""
        if not token:
            return None
        return self._activate(self.sessions.find_by_token(token))

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        removed = self.sessions.delete_by_token(token)
        if removed:
            logger.info("Session revoked")
        return removed > 0

    def purge_expired(self) -> int:
        return self.sessions.purge_expired(utcnow())
