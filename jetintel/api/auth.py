"""
Authentication API endpoints.

Provides endpoints for:
- POST /api/auth/login - Exchange upstream credentials for an app session token
- POST /api/auth/logout - Forget an app session
- GET /api/auth/health - Validate (and if needed refresh) the upstream session
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

from jetintel.api.common import (
    error_response,
    not_authenticated,
    request_token,
    session_manager,
    session_store,
)
from jetintel.errors import AuthError
from jetintel.upstream.session import Credentials

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Log in against the upstream provider.

    Body: {"email": ..., "password": ...}
    Returns the app session token and its expiry.
    """
    body = request.get_json(silent=True) or {}
    email = body.get('email')
    password = body.get('password')
    if not email or not password:
        return jsonify({'message': 'Email and password required.'}), 400

    try:
        session = session_manager().login(Credentials(email, password))
    except AuthError as e:
        logger.info(f'Login rejected for {email}')
        return error_response(e)

    token, expires_at = session_store().put(session)
    return jsonify({
        'app_session_token': token,
        'expires_at': expires_at.isoformat(),
    })


@auth_bp.route('/logout', methods=['POST'])
def logout():
    token = request_token()
    if token:
        session_store().delete(token)
    return jsonify({'message': 'Logged out.'})


@auth_bp.route('/health', methods=['GET'])
def health():
    """Check that the caller's upstream session is still usable."""
    if not request_token():
        return not_authenticated('No session token.')

    session = session_store().refresh(request_token(), session_manager())
    if session is None:
        return not_authenticated('Session expired.')

    return jsonify({
        'status': 'connected',
        'validated_at': datetime.fromtimestamp(session.last_validated_at, tz=timezone.utc).isoformat(),
    })
