"""
Error taxonomy for the intelligence pipeline.

Only identity and authentication failures abort a profile build.
Enrichment failures are recorded on the profile as
PartialAggregationFailure records (see jetintel.models.aircraft) and
cache expiry is a transparent refetch, so neither has an exception here.
"""

from typing import Optional


class IntelError(Exception):
    """Base class for all pipeline errors."""


class AuthError(IntelError):
    """Credentials are absent or were rejected. Fatal, never retried."""


class UpstreamError(IntelError):
    """Upstream declared a failure in its response envelope."""

    def __init__(self, endpoint: str, status: str, detail: Optional[str] = None):
        message = f'JETNET error [{endpoint}]: {status}'
        if detail:
            message += f' -- {detail}'
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status
        self.detail = detail


class InvalidTokenError(UpstreamError):
    """Upstream rejected the token pair, still failing after one re-login."""


class UpstreamHTTPError(IntelError):
    """Transport-level failure: non-2xx status or no response at all."""

    def __init__(self, url: str, status_code: Optional[int], reason: str = ''):
        if status_code is None:
            message = f'Request failed -- {url}: {reason}'
        else:
            message = f'HTTP {status_code} {reason} -- {url}'.replace('  ', ' ')
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class UpstreamDataShapeError(IntelError):
    """A response is missing fields that cannot be defaulted."""


class AircraftNotFoundError(UpstreamDataShapeError):
    """The registration did not resolve to an aircraft."""

    def __init__(self, registration: str):
        super().__init__(f'Aircraft not found for registration: {registration}')
        self.registration = registration
