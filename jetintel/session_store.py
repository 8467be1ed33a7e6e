"""
App session store.

Maps opaque app-issued tokens to upstream Sessions. Callers receive a
token from POST /api/auth/login and present it on every request; the
store resolves it back to the shared upstream session.

Two backends:
- InMemorySessionStore: dict + lock, single process (and tests)
- SqlSessionStore: SQLAlchemy table `app_sessions`, shared deployments

Expired app sessions are treated as absent and purged on read. Token
pairs rotated while serving a request are written back through
save_if_rotated.
"""

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from sqlalchemy import delete, select

from jetintel.config import config
from jetintel.errors import AuthError
from jetintel.models.base import init_db, make_engine, make_session_factory, session_scope
from jetintel.models.session_record import SessionRecord
from jetintel.upstream.session import Credentials, Session, SessionManager, TokenPair

logger = logging.getLogger(__name__)


def _new_token() -> str:
    return uuid.uuid4().hex


class SessionStore(ABC):
    """Storage for upstream sessions keyed by app session token."""

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = ttl_seconds or config.sessions.app_session_ttl_seconds

    @abstractmethod
    def get(self, token: str) -> Optional[Session]:
        """Session for token, or None if unknown or expired."""

    @abstractmethod
    def put(self, session: Session, token: Optional[str] = None) -> Tuple[str, datetime]:
        """Store a session; returns (token, expires_at)."""

    @abstractmethod
    def delete(self, token: str) -> None:
        """Forget a session. Unknown tokens are ignored."""

    def refresh(self, token: str, manager: SessionManager) -> Optional[Session]:
        """
        Resolve token to a session that is valid upstream.

        Runs manager.ensure_valid and stores a replacement session under
        the same token. If re-authentication fails the entry is deleted
        and None is returned.
        """
        session = self.get(token)
        if session is None:
            return None

        validated_at = session.last_validated_at
        try:
            valid = manager.ensure_valid(session)
        except AuthError as e:
            logger.warning(f'Dropping app session after failed re-authentication: {e}')
            self.delete(token)
            return None

        if valid is not session or valid.last_validated_at != validated_at:
            self.put(valid, token=token)
        return valid

    def save_if_rotated(self, token: str, session: Session, loaded: TokenPair) -> bool:
        """
        Write session back under token if its pair is no longer `loaded`.

        A re-login inside the upstream client only updates the Session
        object; this persists the new pair. Tokens that were logged out
        in the meantime are not recreated.
        """
        if session.tokens is loaded or self.get(token) is None:
            return False
        self.put(session, token=token)
        logger.debug(f'Stored rotated upstream tokens for {session.credentials.email}')
        return True


class InMemorySessionStore(SessionStore):
    """Process-local store. Upstream Session objects are shared by reference."""

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(ttl_seconds)
        self.clock = clock
        self._sessions: Dict[str, Tuple[Session, float]] = {}
        self._lock = threading.RLock()

    def get(self, token: str) -> Optional[Session]:
        with self._lock:
            item = self._sessions.get(token)
            if item is None:
                return None
            session, expires_at = item
            if self.clock() >= expires_at:
                del self._sessions[token]
                return None
            return session

    def put(self, session: Session, token: Optional[str] = None) -> Tuple[str, datetime]:
        token = token or _new_token()
        expires_at = self.clock() + self.ttl_seconds
        with self._lock:
            self._sessions[token] = (session, expires_at)
        return token, datetime.fromtimestamp(expires_at, tz=timezone.utc)

    def delete(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class SqlSessionStore(SessionStore):
    """
    Durable store on the `app_sessions` table.

    Credentials are stored alongside the token pair so a session restored
    in another process can still re-login. The upstream password is kept in
    plaintext: the database must be readable only by the service account.
    Deployments that cannot guarantee that should use InMemorySessionStore. Within a process the restored
    Session objects are kept per token, so overlapping requests share one
    object and its re-login lock. A row holding a newer pair than the kept
    object (rotated by another process) replaces it.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        engine=None,
    ):
        super().__init__(ttl_seconds)
        self.engine = engine or make_engine(database_url or config.sessions.database_url)
        init_db(self.engine)
        self._factory = make_session_factory(self.engine)
        self._live: Dict[str, Session] = {}
        self._live_lock = threading.Lock()
        logger.warning(
            f'Session store at {self.engine.url} keeps upstream passwords in plaintext; '
            'restrict access to this database'
        )

    @staticmethod
    def _now() -> datetime:
        # Naive UTC, matching the DateTime column
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def get(self, token: str) -> Optional[Session]:
        with session_scope(self._factory) as db:
            record = db.get(SessionRecord, token)
            if record is None:
                return None
            if record.expires_at <= self._now():
                db.delete(record)
                self._forget(token)
                return None
            with self._live_lock:
                live = self._live.get(token)
                if live is not None and live.created_at >= record.created_at:
                    return live
                session = Session(
                    base_url=record.base_url,
                    credentials=Credentials(record.email, record.password),
                    tokens=TokenPair(
                        bearer_token=record.bearer_token,
                        api_token=record.api_token,
                        created_at=record.created_at,
                    ),
                    last_validated_at=record.last_validated_at,
                )
                self._live[token] = session
                return session

    def put(self, session: Session, token: Optional[str] = None) -> Tuple[str, datetime]:
        token = token or _new_token()
        expires_at = self._now() + timedelta(seconds=self.ttl_seconds)
        tokens = session.tokens

        with session_scope(self._factory) as db:
            record = db.get(SessionRecord, token)
            if record is None:
                record = SessionRecord(token=token)
                db.add(record)
            record.base_url = session.base_url
            record.email = session.credentials.email
            record.password = session.credentials.password
            record.bearer_token = tokens.bearer_token
            record.api_token = tokens.api_token
            record.created_at = tokens.created_at
            record.last_validated_at = session.last_validated_at
            record.expires_at = expires_at

        return token, expires_at.replace(tzinfo=timezone.utc)

    def delete(self, token: str) -> None:
        with session_scope(self._factory) as db:
            db.execute(delete(SessionRecord).where(SessionRecord.token == token))
        self._forget(token)

    def _forget(self, token: str) -> None:
        with self._live_lock:
            self._live.pop(token, None)

    def purge_expired(self) -> int:
        """Delete every expired row; returns the count removed."""
        with session_scope(self._factory) as db:
            expired = db.scalars(
                select(SessionRecord.token).where(SessionRecord.expires_at <= self._now())
            ).all()
            if expired:
                db.execute(delete(SessionRecord).where(SessionRecord.token.in_(expired)))
        for token in expired:
            self._forget(token)
        if expired:
            logger.info(f'Purged {len(expired)} expired app sessions')
        return len(expired)


def create_session_store() -> SessionStore:
    """Store selected by SESSION_STORE."""
    if config.sessions.is_sql:
        return SqlSessionStore()
    return InMemorySessionStore()
