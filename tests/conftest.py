"""Shared fixtures: scripted HTTP transport, controllable clock, sessions."""

from datetime import date
from typing import Any, List, Optional

import pytest

from jetintel.errors import AircraftNotFoundError
from jetintel.models.aircraft import (
    AircraftDetails,
    AircraftIdentity,
    AircraftProfile,
    AircraftSpecs,
    CompanyContact,
    CompanyProfile,
    FleetAircraft,
    Headquarters,
    HistoryEntry,
    Location,
    MarketSignals,
    Picture,
    Relationship,
    UtilizationSummary,
)
from jetintel.models.flight import FlightRecord
from jetintel.upstream.client import UpstreamClient
from jetintel.upstream.session import Credentials, Session, SessionManager, TokenPair

BASE_URL = 'https://jetnet.test'

NOT_JSON = object()


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload: Any = None, status_code: int = 200, reason: str = 'OK'):
        self.payload = payload
        self.status_code = status_code
        self.reason = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self.payload is NOT_JSON:
            raise ValueError('No JSON object could be decoded')
        return self.payload


class FakeHTTP:
    """
    Scripted transport with the requests.Session.request signature.

    Routes match on method and a URL fragment. Each call pops the next
    scripted response for its route; the last one repeats. A response may
    be a FakeResponse, a plain payload (200 JSON) or an exception to raise.
    """

    def __init__(self):
        self.routes: List[list] = []
        self.calls: List[dict] = []

    def add(self, method: str, fragment: str, *responses: Any) -> 'FakeHTTP':
        self.routes.append([method.upper(), fragment, list(responses)])
        return self

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append({'method': method, 'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        for route_method, fragment, responses in self.routes:
            if route_method == method.upper() and fragment in url:
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(response, Exception):
                    raise response
                if isinstance(response, FakeResponse):
                    return response
                return FakeResponse(response)
        raise AssertionError(f'Unscripted request: {method} {url}')

    def calls_to(self, fragment: str) -> List[dict]:
        return [c for c in self.calls if fragment in c['url']]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def login_payload(bearer: str = 'bearer-2', api: str = 'api-2') -> dict:
    return {'responsestatus': 'SUCCESS', 'bearerToken': bearer, 'apiToken': api}


def make_profile(**overrides: Any) -> AircraftProfile:
    """Bare profile with only identity set; override any field."""
    fields = {
        'registration': 'N123AB',
        'aircraft_id': 1001,
        'model_id': None,
    }
    fields.update(overrides)
    return AircraftProfile(**fields)


def complete_profile(as_of: Optional[date] = None) -> AircraftProfile:
    year = (as_of or date(2025, 1, 1)).year
    return make_profile(
        make='Gulfstream',
        model='G550',
        year_mfr=year - 4,
        year_delivered=year - 4,
        serial_number='5123',
        category_size='Large Cabin',
        weight_class='Heavy',
        base_location=Location(icao='KTEB', city='Teterboro'),
        pictures=[Picture(url='https://img.test/1.jpg')],
        relationships=[Relationship(company_id=10, company_name='Acme Air LLC', relation_type='Owner')],
        utilization_summary=UtilizationSummary(total_flights=240, date_range='2024-01-01 - 2024-12-31',
                                               avg_flights_per_month=20.0),
        history=[HistoryEntry(date='2021-03-01', transaction_type='Full Sale', description='Sold to Acme Air')],
    )


RELATIONSHIPS_PAYLOAD = {'relationships': [{'aircraftid': 1001, 'companyrelationships': [
    {'companyid': 10, 'name': 'Acme Air LLC', 'relationtype': 'Owner',
     'contact': {'contactid': 5, 'firstname': 'Ann', 'lastname': 'Lee', 'title': 'CFO', 'email': 'a@x.com'}},
    {'companyid': 11, 'name': 'Skyops Management', 'relationtype': 'Manager',
     'contact': {'contactid': 6, 'firstname': 'Dee', 'lastname': 'Ray', 'title': 'Chief Pilot'}},
]}]}

TRENDS_PAYLOAD = {'markettrendsresult': {'inventorycount': [{'value': 20}, {'value': 20}, {'value': 20},
                                                            {'value': 10}, {'value': 10}, {'value': 10}]}}


class FakeClient:
    """UpstreamClient stand-in; set `failures[name]` to make a call raise."""

    def __init__(self, identity=None):
        self.identity = identity or AircraftIdentity(
            registration='N123AB',
            aircraft_id=1001,
            model_id=42,
            make='Gulfstream',
            model='G550',
            year_mfr=2015,
            year_delivered=2015,
            serial_number='5500',
            category_size='Large Cabin',
            base_location=Location(icao='KTEB'),
            market_signals=MarketSignals(for_sale=True, days_on_market=45),
            flat_relationships=[Relationship(company_id=10, company_name='Acme Air LLC', relation_type='Owner')],
        )
        self.failures = {}
        self.calls = []

    def _call(self, name, result):
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]
        return result

    def lookup_by_registration(self, session, registration):
        if registration == 'N000XX':
            raise AircraftNotFoundError(registration)
        return self._call('lookup', self.identity)

    def get_pictures(self, session, aircraft_id):
        return self._call('pictures', [Picture(url='https://img.test/1.jpg')])

    def get_relationships(self, session, aircraft_id):
        return self._call('relationships', RELATIONSHIPS_PAYLOAD)

    def get_flight_data(self, session, aircraft_id, start=None, end=None):
        flights = [FlightRecord(date(2024, m, 10), 'KTEB', 'KPBI') for m in range(1, 13)]
        return self._call('flights', flights)

    def get_history(self, session, aircraft_id):
        return self._call('history', [
            HistoryEntry('2019-05-01', 'Full Sale', 'Gulfstream G450 sold to Acme Air'),
        ])

    def get_market_trends(self, session, model_id):
        return self._call('model_trends', TRENDS_PAYLOAD)

    def search_fleet_by_company(self, session, company_name, exclude_aircraft_id=None):
        return self._call('fleet', [
            FleetAircraft('N456CD', 2002, 'Gulfstream', 'G650', 2019, '6400'),
        ])

    def get_aircraft(self, session, aircraft_id):
        return self._call('aircraft_details', AircraftDetails(
            specs=AircraftSpecs(engine_model='BR710', engine_count=2, cabin_seats=16),
            estimated_aftt=4200.0,
        ))

    def get_company(self, session, company_id):
        return self._call('company', CompanyProfile(
            company_id=company_id,
            company_name='Acme Air LLC',
            company_type='Corporate',
            headquarters=Headquarters(city='Wilmington', state='DE', country='US'),
        ))

    def get_company_contacts(self, session, company_id):
        return self._call('contacts', [
            CompanyContact('Ann Lee', contact_id=5, title='CFO', email='ann@acme.test'),
            CompanyContact('Bo Park', contact_id=6, title='Chief Pilot'),
            CompanyContact('Cy Dunn', contact_id=7, title='Scheduler'),
        ])


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def http():
    return FakeHTTP()


@pytest.fixture
def manager(http, clock):
    return SessionManager(
        base_url=BASE_URL,
        timeout=5,
        token_ttl_seconds=50 * 60,
        http=http,
        clock=clock,
    )


@pytest.fixture
def credentials():
    return Credentials('broker@example.com', 's3cret')


@pytest.fixture
def session(credentials, clock):
    return Session(
        base_url=BASE_URL,
        credentials=credentials,
        tokens=TokenPair(bearer_token='bearer-1', api_token='api-1', created_at=clock()),
    )


@pytest.fixture
def client(manager):
    return UpstreamClient(manager)
