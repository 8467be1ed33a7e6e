"""
API module for JetIntel.

Provides REST endpoints for:
- Authentication against the upstream provider (app session tokens)
- Aircraft profiles and flight analytics
- Relationship intelligence and contact ranking
"""

from jetintel.api.aircraft import aircraft_bp
from jetintel.api.auth import auth_bp
from jetintel.api.intel import intel_bp

__all__ = ['aircraft_bp', 'auth_bp', 'intel_bp']
