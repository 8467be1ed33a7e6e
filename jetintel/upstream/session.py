"""
Upstream session management.

Owns the credential exchange with the provider and the lifetime of the
resulting token pair:

- login(): POST /api/Admin/APILogin, returns a Session
- ensure_valid(): returns the same session while its tokens are younger
  than the TTL (50 minutes); past that, a lightweight account-info call
  validates it, and a failed validation triggers a full re-login
- relogin(): rotates the token pair of a shared session in place, used
  by the client after an invalid-token response

A Session's bearer/api tokens live in one immutable TokenPair that is
swapped by reference under a lock, so concurrent readers always see a
pair from a single login.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from jetintel.config import config
from jetintel.errors import AuthError
from jetintel.upstream.envelope import classify_envelope
from jetintel.upstream.schema import parse_login

logger = logging.getLogger(__name__)

LOGIN_PATH = '/api/Admin/APILogin'
VALIDATE_PATH = '/api/Admin/getAccountInfo/{apiToken}'


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str

    def __repr__(self) -> str:
        return f'Credentials(email={self.email!r}, password=***)'


@dataclass(frozen=True)
class TokenPair:
    """Bearer + API token issued together by one login."""
    bearer_token: str
    api_token: str
    created_at: float


class Session:
    """
    Authenticated upstream session.

    Shared mutable state: one instance may be used by several concurrent
    calls. Token rotation replaces the whole TokenPair at once.
    """

    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        tokens: TokenPair,
        last_validated_at: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.credentials = credentials
        self._tokens = tokens
        self._last_validated_at = last_validated_at if last_validated_at is not None else tokens.created_at
        self._lock = threading.Lock()
        # Serializes re-logins so a burst of invalid-token responses logs in once
        self.relogin_lock = threading.Lock()

    @property
    def tokens(self) -> TokenPair:
        return self._tokens

    @property
    def bearer_token(self) -> str:
        return self._tokens.bearer_token

    @property
    def api_token(self) -> str:
        return self._tokens.api_token

    @property
    def created_at(self) -> float:
        return self._tokens.created_at

    @property
    def last_validated_at(self) -> float:
        return self._last_validated_at

    def age(self, now: float) -> float:
        return now - self._tokens.created_at

    def replace_tokens(self, tokens: TokenPair) -> None:
        with self._lock:
            self._tokens = tokens
            self._last_validated_at = tokens.created_at

    def mark_validated(self, now: float) -> None:
        with self._lock:
            self._last_validated_at = now

    def __repr__(self) -> str:
        return f'<Session {self.credentials.email} @ {self.base_url} created={self.created_at:.0f}>'


class SessionManager:
    """
    Creates and maintains upstream sessions.

    Handles:
    - Credential exchange (falls back to configured credentials)
    - Token TTL checks and lightweight validation
    - Full re-login with atomic token replacement
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token_ttl_seconds: Optional[int] = None,
        http: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.base_url = (base_url or config.upstream.base_url).rstrip('/')
        self.timeout = timeout or config.upstream.timeout_seconds
        self.token_ttl_seconds = token_ttl_seconds or config.upstream.token_ttl_seconds
        self.http = http or requests.Session()
        self.clock = clock

    @classmethod
    def from_config(cls) -> 'SessionManager':
        """Create manager from application configuration."""
        return cls(
            base_url=config.upstream.base_url,
            timeout=config.upstream.timeout_seconds,
            token_ttl_seconds=config.upstream.token_ttl_seconds,
        )

    def login(
        self,
        credentials: Optional[Credentials] = None,
        base_url: Optional[str] = None,
    ) -> Session:
        """
        Exchange credentials for a token pair.

        Raises:
            AuthError if credentials are missing, rejected, or the
            response carries no tokens. Never retried.
        """
        if credentials is None and config.upstream.has_default_credentials:
            credentials = Credentials(config.upstream.email, config.upstream.password)
        if credentials is None or not (credentials.email and credentials.password):
            raise AuthError('JETNET credentials missing.')

        base = (base_url or self.base_url).rstrip('/')
        url = f'{base}{LOGIN_PATH}'

        try:
            response = self.http.request(
                'POST',
                url,
                json={'emailAddress': credentials.email, 'password': credentials.password},
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f'JETNET login request failed: {e}')
            raise AuthError(f'JETNET login failed: {e}') from e

        if not response.ok:
            logger.warning(f'JETNET login rejected with HTTP {response.status_code}')
            raise AuthError(f'JETNET login HTTP {response.status_code}')

        try:
            data = response.json()
        except ValueError as e:
            raise AuthError('JETNET login returned a non-JSON body.') from e

        failure = classify_envelope(data, 'APILogin')
        if failure is not None:
            raise AuthError(f'JETNET login rejected: {failure.status}')

        bearer_token, api_token = parse_login(data)
        if not bearer_token or not api_token:
            raise AuthError('JETNET login returned no tokens. Check credentials.')

        now = self.clock()
        logger.info(f'JETNET login succeeded for {credentials.email}')
        return Session(
            base_url=base,
            credentials=credentials,
            tokens=TokenPair(bearer_token=bearer_token, api_token=api_token, created_at=now),
            last_validated_at=now,
        )

    def ensure_valid(self, session: Session) -> Session:
        """
        Return a session that is safe to use.

        The same session while age < TTL or when the validation call
        succeeds; otherwise a replacement from a full re-login.
        """
        now = self.clock()
        if session.age(now) < self.token_ttl_seconds:
            return session

        if self._validate(session):
            session.mark_validated(self.clock())
            logger.debug(f'Session for {session.credentials.email} re-validated')
            return session

        logger.info(f'Session for {session.credentials.email} expired, logging in again')
        return self.login(session.credentials, session.base_url)

    def relogin(self, session: Session, stale: TokenPair) -> TokenPair:
        """
        Replace the session's tokens after an invalid-token response.

        If another caller already rotated the pair since `stale` was
        read, the current pair is returned without logging in again.
        """
        with session.relogin_lock:
            current = session.tokens
            if current is not stale:
                return current
            fresh = self.login(session.credentials, session.base_url)
            session.replace_tokens(fresh.tokens)
            logger.info(f'Rotated upstream tokens for {session.credentials.email}')
            return fresh.tokens

    def _validate(self, session: Session) -> bool:
        tokens = session.tokens
        url = session.base_url + VALIDATE_PATH.replace('{apiToken}', tokens.api_token)
        try:
            response = self.http.request(
                'GET',
                url,
                headers={'Authorization': f'Bearer {tokens.bearer_token}'},
                timeout=self.timeout,
            )
            if not response.ok:
                return False
            return classify_envelope(response.json(), 'getAccountInfo') is None
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.debug(f'Session validation failed: {e}')
            return False
