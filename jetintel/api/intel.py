"""
Relationship intelligence API endpoints.

Provides endpoints for:
- GET /api/intel/relationships/<registration>?persona=<id> - Relationship
  graph and ranked contacts for a persona (standard ranking by default)
"""

import logging

from flask import Blueprint, jsonify, request

from jetintel.analytics.contact_weights import Persona
from jetintel.api.common import current_session, error_response, not_authenticated, profile_builder
from jetintel.errors import IntelError

logger = logging.getLogger(__name__)

intel_bp = Blueprint('intel', __name__, url_prefix='/api/intel')


@intel_bp.route('/relationships/<registration>', methods=['GET'])
def get_relationships(registration: str):
    session = current_session()
    if session is None:
        return not_authenticated()

    persona = request.args.get('persona') or None
    try:
        result = profile_builder().relationship_intel(registration, session, persona=persona)
    except ValueError:
        valid = ['standard'] + [p.value for p in Persona]
        return jsonify({'message': f'Unknown persona: {persona}', 'valid_personas': valid}), 400
    except IntelError as e:
        return error_response(e)

    return jsonify(result)
