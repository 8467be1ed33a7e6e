"""
Schema adapters for upstream responses.

Each upstream endpoint has one field map below, declaring for every
canonical field the upstream keys it may arrive under (dotted keys reach
into nested objects, e.g. 'contact.email'). All alias knowledge lives in
this module; services and analytics only see the typed models.

Adapters never raise on missing or malformed fields. They fall back to
None/empty defaults, except when the aircraft identity itself cannot be
resolved (AircraftNotFoundError).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from jetintel.errors import AircraftNotFoundError
from jetintel.models.aircraft import (
    AircraftDetails,
    AircraftIdentity,
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
)
from jetintel.models.flight import FlightRecord

logger = logging.getLogger(__name__)

FieldMap = Dict[str, Tuple[str, ...]]

# Collection key(s) wrapping each endpoint's payload
RESULT_KEYS: Dict[str, Tuple[str, ...]] = {
    'aircraft': ('aircraftresult',),
    'pictures': ('pictureresult', 'pictures'),
    'relationships': ('aircraftrelationshipresult', 'relationships'),
    'history': ('historylistresult', 'history'),
    'flights': (
        'flightdataresult', 'FlightDataResult', 'flights', 'flightdata',
        'FlightData', 'result', 'Result', 'data', 'Data',
    ),
    'fleet': ('fleetresult', 'fleet'),
    'market_trends': ('markettrendsresult', 'result'),
    'companies': ('companylistresult', 'companies'),
    'contacts': ('contactlistresult', 'contacts'),
}

LOGIN_FIELDS: FieldMap = {
    'bearer_token': ('bearerToken', 'bearertoken'),
    'api_token': ('apiToken', 'apitoken'),
}

AIRCRAFT_FIELDS: FieldMap = {
    'aircraft_id': ('aircraftid', 'aircraftId'),
    'model_id': ('modelid', 'modelId'),
    'registration': ('regnbr',),
    'make': ('make',),
    'model': ('model', 'modelname'),
    'series': ('series',),
    'year_mfr': ('yearmfr',),
    'year_delivered': ('yeardlv', 'yearmfr'),
    'serial_number': ('serialnbr', 'sernbr'),
    'lifecycle_status': ('lifecycle',),
    'usage': ('usage',),
    'weight_class': ('weightclass',),
    'category_size': ('categorysize',),
    'base_icao': ('baseicao',),
    'base_airport': ('baseairport',),
    'base_city': ('basecity',),
    'base_country': ('basecountry',),
    'for_sale': ('forsale',),
    'asking_price': ('askingprice',),
    'days_on_market': ('daysonmarket',),
    'market_status': ('marketstatus',),
    'company_relationships': ('companyrelationships',),
    'estimated_aftt': ('estaftt',),
}

SPEC_FIELDS: FieldMap = {
    'engine_model': ('enginemodel', 'enginemake', 'engmodel'),
    'engine_count': ('numberofengines', 'enginecount', 'nbrofengines'),
    'engine_program': ('engineprogram', 'engprogram'),
    'apu_model': ('apumodel', 'apu'),
    'range_nm': ('range', 'rangefull', 'maxrange'),
    'max_speed': ('maxspeed', 'highspeed', 'cruisespeed'),
    'mtow': ('mtow', 'maxrampwt', 'maxtakeoffweight'),
    'fuel_capacity': ('fuelcapacity', 'maxfuel'),
    'cabin_seats': ('seatcapacity', 'paxseats', 'cabinseats', 'seats'),
    'cabin_config': ('cabinconfig', 'interiorconfig', 'interiordescription'),
    'avionics_suite': ('avionics', 'avionicssuite', 'cockpitavionics'),
    'wifi_equipped': ('wifi', 'wifiequipped', 'wifionboard'),
    'total_landings': ('totallandings', 'landings', 'cycles'),
    'last_int_refurb': ('lastintrefurb', 'interiorrefurb', 'intrefurbyear'),
    'last_ext_paint': ('lastextpaint', 'extpaint', 'extpaintyear'),
    'operation_type': ('operationtype', 'optype', 'part135'),
    'certificate': ('certificate', 'typecertificate'),
    'noise_stage': ('noisestage', 'noise'),
}

NUMERIC_SPECS = frozenset({
    'engine_count', 'range_nm', 'max_speed', 'mtow', 'fuel_capacity', 'cabin_seats', 'total_landings',
})

COMPANY_FIELDS: FieldMap = {
    'company_name': ('name', 'companyname'),
    'company_type': ('companytype', 'type'),
    'city': ('city',),
    'state': ('state',),
    'country': ('country',),
    'industry': ('industry', 'siccode'),
}

CONTACT_FIELDS: FieldMap = {
    'contact_id': ('contactid', 'contactId'),
    'first_name': ('firstname', 'contactfirstname'),
    'last_name': ('lastname', 'contactlastname'),
    'title': ('title', 'contacttitle'),
    'email': ('email', 'contactemail'),
    'phone': ('office', 'mobile', 'phone'),
}

RELATIONSHIP_FIELDS: FieldMap = {
    'aircraft_id': ('aircraftid', 'aircraftId'),
    'company_id': ('companyid', 'companyId'),
    'company_name': ('company.name', 'name', 'companyname', 'companyName'),
    'relationship_type': ('relationtype', 'companyrelation', 'relationType'),
    'city': ('company.city', 'city'),
    'state': ('company.stateabbr', 'company.state', 'state'),
    'country': ('company.country', 'country'),
    'contact_id': ('contact.contactid', 'contactid', 'contactId'),
    'first_name': ('contact.firstname', 'contactfirstname', 'owrfname', 'firstname'),
    'last_name': ('contact.lastname', 'contactlastname', 'owrlname', 'lastname'),
    'title': ('contact.title', 'title', 'contacttitle'),
    'email': ('contact.email', 'email', 'contactemail'),
    'mobile': ('contact.mobile', 'mobile', 'mobilephone', 'cellphone'),
    'office': ('contact.office', 'office', 'phone', 'officephone', 'directphone', 'contactphone'),
}

PICTURE_FIELDS: FieldMap = {
    'url': ('pictureurl', 'url'),
    'caption': ('caption', 'description'),
}

HISTORY_FIELDS: FieldMap = {
    'date': ('transdate', 'date'),
    'transaction_type': ('transtype', 'transactionType'),
    'description': ('description', 'transdesc'),
}

FLIGHT_FIELDS: FieldMap = {
    'date': ('flightdate', 'date', 'departuredate'),
    'origin': ('departureairport', 'origin', 'departairport', 'depart'),
    'destination': ('arrivalairport', 'destination', 'arriveairport', 'arrive'),
    'hours': ('flighthours',),
}

FLEET_FIELDS: FieldMap = {
    'aircraft_id': ('aircraftid', 'aircraftId'),
    'registration': ('regnbr', 'registration'),
    'make': ('make',),
    'model': ('model',),
    'year_mfr': ('yearmfr',),
    'serial_number': ('serialnbr', 'sernbr'),
    'for_sale': ('forsale',),
}

# Model market trend series and the point keys each data point may use
MARKET_TREND_SERIES: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    'inventory': (('inventorycount', 'inventory'), ('value', 'count', 'y')),
    'days_on_market': (('avgdaysonmarket', 'daysonmarket'), ('value', 'days', 'y')),
    'asking_price': (('avgaskingprice', 'askingprice'), ('value', 'price', 'y')),
    'transactions': (('transactioncount', 'transactions'), ('value', 'count', 'y')),
}

DATE_FORMATS = (
    '%Y-%m-%d',
    '%Y-%m-%dT%H:%M:%S',
    '%m/%d/%Y',
    '%m/%d/%Y %H:%M:%S',
    '%m/%d/%Y %I:%M:%S %p',
)


# -----------------------------------------------------------------------------
# Primitive helpers
# -----------------------------------------------------------------------------

def _lookup(record: Dict[str, Any], key: str) -> Any:
    value: Any = record
    for part in key.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def pick(record: Any, keys: Sequence[str], default: Any = None) -> Any:
    """First non-empty value among the candidate keys."""
    if not isinstance(record, dict):
        return default
    for key in keys:
        value = _lookup(record, key)
        if value is not None and value != '':
            return value
    return default


def to_int(value: Any) -> Optional[int]:
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def to_float(value: Any) -> Optional[float]:
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_flag(value: Any) -> bool:
    """Upstream yes/no flags arrive as booleans, 'Y'/'N' or 'true'/'false'."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('y', 'yes', 'true', '1')


def to_optional_flag(value: Any) -> Optional[bool]:
    """Like to_flag, but None when the value is absent or not a yes/no."""
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('y', 'yes', 'true', '1'):
        return True
    if text in ('n', 'no', 'false', '0'):
        return False
    return None


def to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_date(value: Any) -> Optional[date]:
    """Parse the date formats the provider is known to emit."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = to_str(value)
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        return None


def format_upstream_date(d: date) -> str:
    """Dates in request bodies are MM/DD/YYYY."""
    return d.strftime('%m/%d/%Y')


def result_items(payload: Any, endpoint: str) -> List[Any]:
    """Extract the list of records an endpoint wraps in its envelope."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    for key in RESULT_KEYS.get(endpoint, ()):
        value = payload.get(key)
        if isinstance(value, list):
            return value
    return []


# -----------------------------------------------------------------------------
# Endpoint adapters
# -----------------------------------------------------------------------------

def parse_login(payload: Any) -> Tuple[str, str]:
    """(bearer_token, api_token); empty strings when absent."""
    bearer = to_str(pick(payload, LOGIN_FIELDS['bearer_token'])) or ''
    api_token = to_str(pick(payload, LOGIN_FIELDS['api_token'])) or ''
    return bearer, api_token


def _aircraft_record(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, dict):
        record = payload.get('aircraftresult')
        if isinstance(record, dict):
            return record
        if isinstance(record, list) and record and isinstance(record[0], dict):
            return record[0]
        return payload
    return {}


def parse_aircraft(payload: Any, registration: str) -> AircraftIdentity:
    """
    Resolve the registration lookup response into an identity.

    Raises AircraftNotFoundError when no aircraft id is present.
    """
    ac = _aircraft_record(payload)
    f = AIRCRAFT_FIELDS

    aircraft_id = to_int(pick(ac, f['aircraft_id']))
    if not aircraft_id:
        raise AircraftNotFoundError(registration)

    year_mfr = to_int(pick(ac, f['year_mfr'])) or 0

    return AircraftIdentity(
        registration=to_str(pick(ac, f['registration'])) or registration,
        aircraft_id=aircraft_id,
        model_id=to_int(pick(ac, f['model_id'])),
        make=to_str(pick(ac, f['make'])) or 'Unknown',
        model=to_str(pick(ac, f['model'])) or 'Unknown',
        series=to_str(pick(ac, f['series'])),
        year_mfr=year_mfr,
        year_delivered=to_int(pick(ac, f['year_delivered'])) or year_mfr,
        serial_number=to_str(pick(ac, f['serial_number'])) or '',
        lifecycle_status=to_str(pick(ac, f['lifecycle_status'])) or 'Unknown',
        usage=to_str(pick(ac, f['usage'])) or 'Unknown',
        weight_class=to_str(pick(ac, f['weight_class'])) or 'Unknown',
        category_size=to_str(pick(ac, f['category_size'])) or 'Unknown',
        base_location=Location(
            icao=to_str(pick(ac, f['base_icao'])),
            airport=to_str(pick(ac, f['base_airport'])),
            city=to_str(pick(ac, f['base_city'])),
            country=to_str(pick(ac, f['base_country'])),
        ),
        market_signals=MarketSignals(
            for_sale=to_flag(pick(ac, f['for_sale'], False)),
            asking_price=to_str(pick(ac, f['asking_price'])),
            days_on_market=to_int(pick(ac, f['days_on_market'])),
            market_status=to_str(pick(ac, f['market_status'])),
        ),
        flat_relationships=[
            _relationship_from_row(row)
            for row in _rows_from_relationship_list(pick(ac, f['company_relationships'], []), aircraft_id)
        ],
        specs=parse_specs(ac),
        estimated_aftt=to_float(pick(ac, f['estimated_aftt'])) or None,
    )


def parse_specs(record: Any) -> Optional[AircraftSpecs]:
    """Specifications from an aircraft record; None when no field is present."""
    values: Dict[str, Any] = {}
    for name, keys in SPEC_FIELDS.items():
        raw = pick(record, keys)
        if name in NUMERIC_SPECS:
            values[name] = to_int(raw)
        elif name == 'wifi_equipped':
            values[name] = to_optional_flag(raw)
        else:
            values[name] = to_str(raw)
    if all(v is None for v in values.values()):
        return None
    return AircraftSpecs(**values)


def parse_aircraft_details(payload: Any) -> AircraftDetails:
    """The full aircraft record: specifications and estimated airframe time."""
    ac = _aircraft_record(payload)
    return AircraftDetails(
        specs=parse_specs(ac),
        estimated_aftt=to_float(pick(ac, AIRCRAFT_FIELDS['estimated_aftt'])) or None,
    )


@dataclass
class RelationshipRow:
    """One normalized aircraft/company/contact relationship row."""
    aircraft_id: int
    company_id: Optional[int]
    company_name: str
    relationship_type: str
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    contact_id: Optional[int]
    first_name: str
    last_name: str
    title: Optional[str]
    email: Optional[str]
    mobile: Optional[str]
    office: Optional[str]

    @property
    def has_contact(self) -> bool:
        return bool(self.first_name or self.last_name)


def _row(rel: Dict[str, Any], aircraft_id: int) -> RelationshipRow:
    f = RELATIONSHIP_FIELDS
    return RelationshipRow(
        aircraft_id=aircraft_id,
        company_id=to_int(pick(rel, f['company_id'])),
        company_name=to_str(pick(rel, f['company_name'])) or 'Unknown',
        relationship_type=to_str(pick(rel, f['relationship_type'])) or 'Unknown',
        city=to_str(pick(rel, f['city'])),
        state=to_str(pick(rel, f['state'])),
        country=to_str(pick(rel, f['country'])),
        contact_id=to_int(pick(rel, f['contact_id'])),
        first_name=to_str(pick(rel, f['first_name'])) or '',
        last_name=to_str(pick(rel, f['last_name'])) or '',
        title=to_str(pick(rel, f['title'])),
        email=to_str(pick(rel, f['email'])),
        mobile=to_str(pick(rel, f['mobile'])),
        office=to_str(pick(rel, f['office'])),
    )


def _rows_from_relationship_list(rels: Any, aircraft_id: int) -> Iterator[RelationshipRow]:
    if isinstance(rels, dict):
        rels = [rels]
    if not isinstance(rels, list):
        return
    for rel in rels:
        if isinstance(rel, dict):
            yield _row(rel, aircraft_id)


def iter_relationship_rows(payload: Any) -> Iterator[RelationshipRow]:
    """
    Flatten the relationships response.

    Items either carry a nested `companyrelationships` list or are
    themselves a single relationship row.
    """
    for item in result_items(payload, 'relationships'):
        if not isinstance(item, dict):
            continue
        aircraft_id = to_int(pick(item, RELATIONSHIP_FIELDS['aircraft_id'])) or 0
        nested = item.get('companyrelationships') or item.get('relationships')
        yield from _rows_from_relationship_list(nested if nested else [item], aircraft_id)


def _relationship_from_row(row: RelationshipRow) -> Relationship:
    contact_name = ' '.join(p for p in (row.first_name, row.last_name) if p) or None
    return Relationship(
        company_id=row.company_id,
        company_name=row.company_name,
        relation_type=row.relationship_type,
        contact_name=contact_name,
        contact_title=row.title,
        contact_email=row.email,
        contact_phone=row.office or row.mobile,
        city=row.city,
        state=row.state,
        country=row.country,
    )


def parse_relationships(payload: Any) -> List[Relationship]:
    return [_relationship_from_row(row) for row in iter_relationship_rows(payload)]


def parse_pictures(payload: Any) -> List[Picture]:
    pictures = []
    for p in result_items(payload, 'pictures'):
        url = to_str(pick(p, PICTURE_FIELDS['url']))
        if url:
            pictures.append(Picture(url=url, caption=to_str(pick(p, PICTURE_FIELDS['caption']))))
    return pictures


def parse_history(payload: Any) -> List[HistoryEntry]:
    entries = []
    for h in result_items(payload, 'history'):
        if not isinstance(h, dict):
            continue
        when = to_str(pick(h, HISTORY_FIELDS['date'])) or ''
        trans_type = to_str(pick(h, HISTORY_FIELDS['transaction_type']))
        description = to_str(pick(h, HISTORY_FIELDS['description']))
        entries.append(HistoryEntry(
            date=when,
            transaction_type=trans_type or 'Unknown',
            description=description or f'{trans_type or "Transaction"} - {when}',
        ))
    return entries


def flight_page_items(payload: Any) -> List[Any]:
    """Records of one flight-data page; falls back to the first non-empty list."""
    items = result_items(payload, 'flights')
    if items or not isinstance(payload, dict):
        return items
    for value in payload.values():
        if isinstance(value, list) and value:
            return value
    return []


def parse_flight_records(items: Sequence[Any]) -> List[FlightRecord]:
    """Normalize raw flight rows; rows without a parseable date are dropped."""
    records = []
    dropped = 0
    for f in items:
        when = parse_date(pick(f, FLIGHT_FIELDS['date']))
        if when is None:
            dropped += 1
            continue
        hours = to_float(pick(f, FLIGHT_FIELDS['hours']))
        records.append(FlightRecord(
            date=when,
            origin=(to_str(pick(f, FLIGHT_FIELDS['origin'])) or '').upper(),
            destination=(to_str(pick(f, FLIGHT_FIELDS['destination'])) or '').upper(),
            hours=hours or None,
        ))
    if dropped:
        logger.debug(f'Dropped {dropped} flight rows without a usable date')
    return records


def parse_fleet(payload: Any, exclude_aircraft_id: Optional[int] = None, limit: int = 20) -> List[FleetAircraft]:
    fleet = []
    for ac in result_items(payload, 'fleet'):
        aircraft_id = to_int(pick(ac, FLEET_FIELDS['aircraft_id']))
        if not aircraft_id or aircraft_id == exclude_aircraft_id:
            continue
        fleet.append(FleetAircraft(
            registration=to_str(pick(ac, FLEET_FIELDS['registration'])) or 'N/A',
            aircraft_id=aircraft_id,
            make=to_str(pick(ac, FLEET_FIELDS['make'])) or 'Unknown',
            model=to_str(pick(ac, FLEET_FIELDS['model'])) or 'Unknown',
            year_mfr=to_int(pick(ac, FLEET_FIELDS['year_mfr'])) or 0,
            serial_number=to_str(pick(ac, FLEET_FIELDS['serial_number'])) or '',
            for_sale=to_flag(pick(ac, FLEET_FIELDS['for_sale'], False)),
        ))
    return fleet[:limit]


def parse_company_profile(payload: Any, company_id: int) -> Optional[CompanyProfile]:
    """First company in the directory response, or None."""
    items = result_items(payload, 'companies')
    company = items[0] if items else None
    if not isinstance(company, dict):
        return None
    f = COMPANY_FIELDS
    return CompanyProfile(
        company_id=company_id,
        company_name=to_str(pick(company, f['company_name'])) or 'Unknown',
        company_type=to_str(pick(company, f['company_type'])),
        headquarters=Headquarters(
            city=to_str(pick(company, f['city'])),
            state=to_str(pick(company, f['state'])),
            country=to_str(pick(company, f['country'])),
        ),
        industry=to_str(pick(company, f['industry'])),
    )


def parse_contacts(payload: Any) -> List[CompanyContact]:
    """Company contacts; rows without a name are dropped."""
    contacts = []
    f = CONTACT_FIELDS
    for c in result_items(payload, 'contacts'):
        if not isinstance(c, dict):
            continue
        name = ' '.join(
            p for p in (to_str(pick(c, f['first_name'])), to_str(pick(c, f['last_name']))) if p
        )
        if not name:
            continue
        contacts.append(CompanyContact(
            contact_name=name,
            contact_id=to_int(pick(c, f['contact_id'])),
            title=to_str(pick(c, f['title'])),
            email=to_str(pick(c, f['email'])),
            phone=to_str(pick(c, f['phone'])),
        ))
    return contacts


def market_trend_series(payload: Any) -> Dict[str, List[float]]:
    """Numeric series per trend metric; unknown points count as 0."""
    data = payload
    if isinstance(payload, dict):
        for key in RESULT_KEYS['market_trends']:
            if isinstance(payload.get(key), dict):
                data = payload[key]
                break

    series = {}
    for name, (series_keys, point_keys) in MARKET_TREND_SERIES.items():
        points = pick(data, series_keys, [])
        if not isinstance(points, list):
            points = []
        series[name] = [to_float(pick(p, point_keys, 0)) or 0.0 for p in points]
    return series
