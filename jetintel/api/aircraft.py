"""
Aircraft API endpoints.

Provides endpoints for:
- GET /api/aircraft/<registration>/profile - Merged profile with scores
- GET /api/aircraft/<registration>/flight-intel - Flight activity analytics
"""

import logging
import time
from datetime import date

from flask import Blueprint, jsonify, request

from jetintel.analytics.flight_analysis import analyze_flights
from jetintel.api.common import current_session, error_response, not_authenticated, profile_builder
from jetintel.errors import IntelError
from jetintel.upstream.schema import parse_date

logger = logging.getLogger(__name__)

aircraft_bp = Blueprint('aircraft', __name__, url_prefix='/api/aircraft')


@aircraft_bp.route('/<registration>/profile', methods=['GET'])
def get_profile(registration: str):
    """
    Build the aircraft profile.

    Enrichment sources that failed are listed in partial_failures; the
    request only fails when the registration cannot be resolved or the
    session cannot be authenticated.
    """
    start_time = time.perf_counter()

    session = current_session()
    if session is None:
        return not_authenticated()

    try:
        profile = profile_builder().build_profile(registration, session)
    except IntelError as e:
        return error_response(e)

    result = profile.to_dict()
    result['query_time_ms'] = round((time.perf_counter() - start_time) * 1000, 2)
    return jsonify(result)


@aircraft_bp.route('/<registration>/flight-intel', methods=['GET'])
def get_flight_intel(registration: str):
    """
    Analyze the aircraft's flight activity.

    Query parameters:
    - start: window start date (default: 12 months before end)
    - end: window end date (default: today)
    """
    session = current_session()
    if session is None:
        return not_authenticated()

    start = parse_date(request.args.get('start'))
    end = parse_date(request.args.get('end'))
    if request.args.get('start') and start is None:
        return jsonify({'message': 'Invalid start date.'}), 400
    if request.args.get('end') and end is None:
        return jsonify({'message': 'Invalid end date.'}), 400

    try:
        identity, flights = profile_builder().fetch_flight_records(registration, session, start=start, end=end)
    except IntelError as e:
        return error_response(e)

    intel = analyze_flights(flights, as_of=end or date.today())
    return jsonify({
        'registration': identity.registration,
        'aircraft_id': identity.aircraft_id,
        'flights_usable': len(flights),
        'flight_intelligence': intel.to_dict(),
    })
