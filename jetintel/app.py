"""
JetIntel Flask Application.

Main entry point for the web application. Initializes:
- App session store (in-memory or SQL)
- Upstream session manager and client
- Profile aggregator
- API routes

Usage:
    python -m jetintel.app

Or with gunicorn:
    gunicorn "jetintel.app:create_app()"
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from jetintel.api import aircraft_bp, auth_bp, intel_bp
from jetintel.api.common import save_rotated_session
from jetintel.cache import model_trend_cache
from jetintel.config import config
from jetintel.services.profile_builder import ProfileBuilder
from jetintel.session_store import SessionStore, create_session_store
from jetintel.upstream.client import UpstreamClient
from jetintel.upstream.session import SessionManager

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    store: Optional[SessionStore] = None,
    manager: Optional[SessionManager] = None,
    builder: Optional[ProfileBuilder] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        store: App session store. Defaults to the configured backend.
        manager: Upstream session manager. Defaults to one built from config.
        builder: Profile aggregator. Defaults to one sharing the manager's
                 HTTP session and the process-wide trend cache.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    manager = manager or SessionManager.from_config()
    if builder is None:
        builder = ProfileBuilder(UpstreamClient(manager), trend_cache=model_trend_cache)
    if store is None:
        logger.info(f'Initializing {config.sessions.backend} session store...')
        store = create_session_store()

    app.config['SESSION_STORE'] = store
    app.config['SESSION_MANAGER'] = manager
    app.config['PROFILE_BUILDER'] = builder

    # Register API blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(aircraft_bp)
    app.register_blueprint(intel_bp)

    @app.after_request
    def persist_rotated_tokens(response):
        save_rotated_session()
        return response

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    @app.route('/api/cache/stats')
    def cache_stats():
        """Model trend cache counters."""
        return builder.trend_cache.stats

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting JetIntel on http://localhost:{port}')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,
    )


if __name__ == '__main__':
    run_development_server()
