"""
Upstream data client.

Wraps every provider call with:
- {apiToken} substitution into the path and body
- Envelope classification on every response, regardless of HTTP status
- Exactly one re-login + retry per logical call on an invalid-token
  envelope; a second failure is surfaced to the caller
- Immediate failure (no retry) on transport errors and non-2xx status

execute() returns an UpstreamResult so the retry policy stays a plain
branch; request() unwraps it into data or an IntelError.

Endpoint helpers (lookup_by_registration, get_flight_data, ...) return
typed models produced by jetintel.upstream.schema.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from jetintel.config import config
from jetintel.models.aircraft import (
    AircraftDetails,
    AircraftIdentity,
    CompanyContact,
    CompanyProfile,
    FleetAircraft,
    HistoryEntry,
    Picture,
)
from jetintel.models.flight import FlightRecord
from jetintel.upstream.envelope import ErrorKind, UpstreamResult, classify_envelope
from jetintel.upstream.schema import (
    flight_page_items,
    format_upstream_date,
    parse_aircraft,
    parse_aircraft_details,
    parse_company_profile,
    parse_contacts,
    parse_fleet,
    parse_flight_records,
    parse_history,
    parse_pictures,
)
from jetintel.upstream.session import Session, SessionManager, TokenPair

logger = logging.getLogger(__name__)


def _substitute(value: Any, api_token: str) -> Any:
    """Replace {apiToken} placeholders in strings, lists and dicts."""
    if isinstance(value, str):
        return value.replace('{apiToken}', api_token)
    if isinstance(value, list):
        return [_substitute(v, api_token) for v in value]
    if isinstance(value, dict):
        return {k: _substitute(v, api_token) for k, v in value.items()}
    return value


def _endpoint_name(path: str) -> str:
    """Short endpoint label for logs and errors, e.g. 'getPictures'."""
    parts = [p for p in path.split('/') if p and not p.startswith('{')]
    return parts[2] if len(parts) > 2 else path


def _months_ago(today: date, months: int) -> date:
    year = today.year + (today.month - 1 - months) // 12
    month = (today.month - 1 - months) % 12 + 1
    day = min(today.day, 28)
    return date(year, month, day)


class UpstreamClient:
    """
    Typed client for the aviation-data provider.

    Shares the SessionManager's requests.Session and timeout; the
    session passed to each call is the caller's (shared) upstream
    session.
    """

    def __init__(self, manager: SessionManager):
        self.manager = manager
        self.http = manager.http
        self.timeout = manager.timeout

    @classmethod
    def from_config(cls) -> 'UpstreamClient':
        return cls(SessionManager.from_config())

    # -------------------------------------------------------------------------
    # Core request path
    # -------------------------------------------------------------------------

    def _send(
        self,
        session: Session,
        tokens: TokenPair,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]],
    ) -> UpstreamResult:
        endpoint = _endpoint_name(path)
        url = session.base_url + _substitute(path, tokens.api_token)
        payload = _substitute(body, tokens.api_token) if body is not None else None

        try:
            response = self.http.request(
                method,
                url,
                json=payload,
                headers={
                    'Authorization': f'Bearer {tokens.bearer_token}',
                    'Content-Type': 'application/json',
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f'{method} {endpoint} failed: {e}')
            return UpstreamResult(
                endpoint=endpoint, kind=ErrorKind.HTTP, status=str(e), url=url,
            )

        if not response.ok:
            logger.warning(f'{method} {endpoint} returned HTTP {response.status_code}')
            return UpstreamResult(
                endpoint=endpoint,
                kind=ErrorKind.HTTP,
                status=response.reason or '',
                status_code=response.status_code,
                url=url,
            )

        try:
            data = response.json()
        except ValueError:
            return UpstreamResult(
                endpoint=endpoint, kind=ErrorKind.DATA_SHAPE, detail='response body is not JSON', url=url,
            )

        failure = classify_envelope(data, endpoint)
        if failure is not None:
            failure.url = url
            return failure
        return UpstreamResult.success(endpoint, data)

    def execute(
        self,
        session: Session,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> UpstreamResult:
        """
        Perform one logical call.

        On an invalid-token envelope the session is re-logged in (once,
        coalesced across concurrent callers) and the call is retried
        exactly once.
        """
        tokens = session.tokens
        result = self._send(session, tokens, method, path, body)
        if result.kind != ErrorKind.INVALID_TOKEN:
            return result

        logger.info(f'Invalid token on {result.endpoint}, re-authenticating and retrying once')
        fresh = self.manager.relogin(session, tokens)
        retry = self._send(session, fresh, method, path, body)
        retry.retried = True
        if retry.kind == ErrorKind.INVALID_TOKEN:
            logger.warning(f'{result.endpoint} still reports an invalid token after re-login')
        return retry

    def request(
        self,
        session: Session,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """execute() and unwrap: returns data or raises an IntelError."""
        return self.execute(session, method, path, body).unwrap()

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    def lookup_by_registration(self, session: Session, registration: str) -> AircraftIdentity:
        reg = registration.strip().upper()
        path_reg = requests.utils.quote(reg, safe='')
        data = self.request(session, 'GET', f'/api/Aircraft/getRegNumber/{path_reg}/{{apiToken}}')
        return parse_aircraft(data, reg)

    def get_aircraft(self, session: Session, aircraft_id: int) -> AircraftDetails:
        """Full aircraft record, for specifications and estimated airframe time."""
        data = self.request(session, 'GET', f'/api/Aircraft/getAircraft/{aircraft_id}/{{apiToken}}')
        return parse_aircraft_details(data)

    def get_pictures(self, session: Session, aircraft_id: int) -> List[Picture]:
        data = self.request(session, 'GET', f'/api/Aircraft/getPictures/{aircraft_id}/{{apiToken}}')
        return parse_pictures(data)

    def get_relationships(self, session: Session, aircraft_id: int) -> Any:
        """Raw relationships payload; see jetintel.services.relationships."""
        return self.request(
            session,
            'POST',
            '/api/Aircraft/getRelationships/{apiToken}',
            {'aclist': [aircraft_id], 'modlist': []},
        )

    def get_flight_data(
        self,
        session: Session,
        aircraft_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[FlightRecord]:
        """
        Fetch paged flight data (default: trailing 12 months).

        Stops at max_flight_pages or on the first short page.
        """
        end = end or date.today()
        start = start or _months_ago(end, config.aggregator.flight_window_months)
        page_size = config.aggregator.page_size

        items: List[Any] = []
        for page in range(1, config.aggregator.max_flight_pages + 1):
            data = self.request(
                session,
                'POST',
                f'/api/Aircraft/getFlightDataPaged/{{apiToken}}/{page_size}/{page}',
                {
                    'aclist': [aircraft_id],
                    'modlist': [],
                    'startdate': format_upstream_date(start),
                    'enddate': format_upstream_date(end),
                },
            )
            page_items = flight_page_items(data)
            items.extend(page_items)
            logger.debug(f'Flight page {page} for aircraft {aircraft_id}: {len(page_items)} rows')
            if len(page_items) < page_size:
                break

        return parse_flight_records(items)

    def get_history(
        self,
        session: Session,
        aircraft_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[HistoryEntry]:
        """Transaction history (default: trailing 10 years)."""
        end = end or date.today()
        start = start or _months_ago(end, config.aggregator.history_window_years * 12)
        data = self.request(
            session,
            'POST',
            f'/api/Aircraft/getHistoryListPaged/{{apiToken}}/{config.aggregator.page_size}/1',
            {
                'aclist': [aircraft_id],
                'modlist': [],
                'transtype': ['None'],
                'startdate': format_upstream_date(start),
                'enddate': format_upstream_date(end),
            },
        )
        return parse_history(data)

    def get_market_trends(self, session: Session, model_id: int) -> Any:
        """Raw model market trend payload; see jetintel.services.model_trends."""
        return self.request(session, 'GET', f'/api/Aircraft/getMarketTrends/{model_id}/{{apiToken}}')

    def search_fleet_by_company(
        self,
        session: Session,
        company_name: str,
        exclude_aircraft_id: Optional[int] = None,
    ) -> List[FleetAircraft]:
        data = self.request(
            session,
            'POST',
            f'/api/Aircraft/getFleetPaged/{{apiToken}}/{config.aggregator.page_size}/1',
            {'aclist': [], 'modlist': [], 'companyname': company_name},
        )
        return parse_fleet(data, exclude_aircraft_id=exclude_aircraft_id)


    def get_company(self, session: Session, company_id: int) -> Optional[CompanyProfile]:
        data = self.request(
            session,
            'POST',
            f'/api/Company/getCompanyList/{{apiToken}}/{config.aggregator.page_size}/1',
            {'companyid': company_id},
        )
        return parse_company_profile(data, company_id)

    def get_company_contacts(self, session: Session, company_id: int) -> List[CompanyContact]:
        data = self.request(
            session,
            'POST',
            f'/api/Contact/getContactList/{{apiToken}}/{config.aggregator.page_size}/1',
            {'companyid': company_id},
        )
        return parse_contacts(data)
