"""
JetIntel Package.

Aircraft intelligence service built with Flask, Requests, SQLAlchemy, and NumPy.

Modules:
    api/            REST endpoints for auth, aircraft profiles, and relationship intel
    upstream/       Upstream session management and endpoint client
    models/         Domain dataclasses and the SQLAlchemy session table
    services/       Profile aggregation, relationship graphs, model market trends
    analytics/      Flight analytics, marketability scoring, disposition, contact ranking
    cache.py        Thread-safe TTL cache for model market trends
    session_store.py  App session storage (in-memory or SQL)
    config.py       Centralized configuration from environment variables
"""

__version__ = '1.0.0'
