"""
Upstream provider access: session management, typed client and schema
adapters.
"""

from jetintel.upstream.session import Credentials, Session, SessionManager, TokenPair
from jetintel.upstream.client import UpstreamClient
from jetintel.upstream.envelope import ErrorKind, UpstreamResult, classify_envelope

__all__ = [
    'Credentials',
    'Session',
    'SessionManager',
    'TokenPair',
    'UpstreamClient',
    'ErrorKind',
    'UpstreamResult',
    'classify_envelope',
]
