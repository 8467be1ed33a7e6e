"""
Upstream response envelope classification.

The provider reports application-level failures inside a 200 response,
either as a `responsestatus` string starting with ERROR/INVALID or as an
RFC7807-style {title, status, detail} body. Every response is inspected
regardless of HTTP status.

Outcomes are modelled as an UpstreamResult with an ErrorKind instead of
raised exceptions so the client's single re-login retry is a plain
branch. unwrap() converts a failed result into the matching exception
at the boundary where callers want one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from jetintel.errors import (
    InvalidTokenError,
    UpstreamDataShapeError,
    UpstreamError,
    UpstreamHTTPError,
)


class ErrorKind(str, Enum):
    """Failure classification of one upstream call."""
    INVALID_TOKEN = 'invalid_token'
    UPSTREAM = 'upstream'
    HTTP = 'http'
    DATA_SHAPE = 'data_shape'


@dataclass
class UpstreamResult:
    """Outcome of one logical upstream call."""
    endpoint: str
    data: Any = None
    kind: Optional[ErrorKind] = None
    status: Optional[str] = None
    detail: Optional[str] = None
    status_code: Optional[int] = None
    url: Optional[str] = None
    retried: bool = False

    @property
    def ok(self) -> bool:
        return self.kind is None

    @classmethod
    def success(cls, endpoint: str, data: Any) -> 'UpstreamResult':
        return cls(endpoint=endpoint, data=data)

    def unwrap(self) -> Any:
        """Return data or raise the exception matching the failure kind."""
        if self.kind is None:
            return self.data
        if self.kind == ErrorKind.INVALID_TOKEN:
            raise InvalidTokenError(self.endpoint, self.status or 'INVALID', self.detail)
        if self.kind == ErrorKind.HTTP:
            raise UpstreamHTTPError(self.url or self.endpoint, self.status_code, self.status or '')
        if self.kind == ErrorKind.DATA_SHAPE:
            raise UpstreamDataShapeError(f'[{self.endpoint}] {self.detail or "malformed response"}')
        raise UpstreamError(self.endpoint, self.status or 'ERROR', self.detail)


def classify_envelope(payload: Any, endpoint: str = '') -> Optional[UpstreamResult]:
    """
    Inspect a decoded response body for an upstream-declared error.

    Returns a failed UpstreamResult, or None when the envelope reports
    success (or carries no envelope at all, e.g. a bare list).
    """
    if not isinstance(payload, dict):
        return None

    status = payload.get('responsestatus')
    if isinstance(status, str):
        upper = status.strip().upper()
        if upper.startswith('INVALID'):
            return UpstreamResult(endpoint=endpoint, kind=ErrorKind.INVALID_TOKEN, status=status)
        if upper.startswith('ERROR'):
            return UpstreamResult(endpoint=endpoint, kind=ErrorKind.UPSTREAM, status=status)

    if 'title' in payload and 'status' in payload:
        title = str(payload.get('title') or '')
        detail = payload.get('detail')
        detail = str(detail) if detail else None
        kind = ErrorKind.UPSTREAM
        if title.strip().upper().startswith('INVALID') or str(payload.get('status')) == '401':
            kind = ErrorKind.INVALID_TOKEN
        return UpstreamResult(endpoint=endpoint, kind=kind, status=title, detail=detail)

    return None
