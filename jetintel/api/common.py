"""
Shared request helpers for the API blueprints.

- Resolves the caller's app session token (Authorization: Bearer, or
  ?token=) to a valid upstream session through the SessionStore
- Writes back upstream tokens rotated while the request was served
- Maps pipeline errors to HTTP responses
"""

import logging
from typing import Optional, Tuple

from flask import current_app, g, jsonify, request

from jetintel.errors import (
    AircraftNotFoundError,
    AuthError,
    IntelError,
    UpstreamDataShapeError,
    UpstreamError,
    UpstreamHTTPError,
)
from jetintel.session_store import SessionStore
from jetintel.services.profile_builder import ProfileBuilder
from jetintel.upstream.session import Session, SessionManager

logger = logging.getLogger(__name__)


def session_store() -> SessionStore:
    return current_app.config['SESSION_STORE']


def session_manager() -> SessionManager:
    return current_app.config['SESSION_MANAGER']


def profile_builder() -> ProfileBuilder:
    return current_app.config['PROFILE_BUILDER']


def request_token() -> Optional[str]:
    """App session token from the Authorization header or ?token=."""
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        token = header[len('Bearer '):].strip()
        if token:
            return token
    return request.args.get('token') or None


def current_session() -> Optional[Session]:
    """Upstream session for this request, refreshed if its tokens aged out."""
    token = request_token()
    if not token:
        return None
    session = session_store().refresh(token, session_manager())
    if session is not None:
        g.app_session = (token, session, session.tokens)
    return session


def save_rotated_session() -> None:
    """Persist the request's session if a re-login replaced its tokens."""
    loaded = g.pop('app_session', None)
    if loaded is None:
        return
    token, session, tokens = loaded
    session_store().save_if_rotated(token, session, tokens)


def not_authenticated(message: str = 'Not authenticated.') -> Tuple:
    return jsonify({'message': message}), 401


def error_response(error: IntelError) -> Tuple:
    """
    HTTP response for a pipeline error.

    401 for authentication, 404 for unknown registrations, 502 for any
    other upstream failure, 500 otherwise.
    """
    if isinstance(error, AuthError):
        return jsonify({'message': str(error), 'source': 'jetnet'}), 401
    if isinstance(error, AircraftNotFoundError):
        return jsonify({'message': str(error), 'source': 'jetnet'}), 404
    if isinstance(error, (UpstreamError, UpstreamHTTPError, UpstreamDataShapeError)):
        logger.warning(f'Upstream failure: {error}')
        return jsonify({'message': str(error), 'source': 'jetnet'}), 502
    logger.error(f'Unhandled pipeline error: {error}')
    return jsonify({'message': str(error), 'source': 'internal'}), 500
