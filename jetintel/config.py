"""
Configuration management for JetIntel.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _parse_bool(value: str) -> bool:
    """Parse '1'/'true'/'yes' style flags."""
    return (value or '').strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class UpstreamConfig:
    """Upstream aviation-data provider configuration."""
    base_url: str = os.getenv('JETNET_BASE_URL', 'https://customer.jetnetconnect.com')
    email: Optional[str] = os.getenv('JETNET_EMAIL') or None
    password: Optional[str] = os.getenv('JETNET_PASSWORD') or None

    # Applied to every upstream HTTP call (login, validation, data)
    timeout_seconds: float = float(os.getenv('UPSTREAM_TIMEOUT_SECONDS', '30'))

    # Upstream tokens are re-validated after this age
    token_ttl_seconds: int = 50 * 60

    @property
    def has_default_credentials(self) -> bool:
        return bool(self.email and self.password)


@dataclass(frozen=True)
class AggregatorConfig:
    """Profile aggregation settings."""
    max_workers: int = int(os.getenv('AGGREGATOR_MAX_WORKERS', '6'))

    flight_window_months: int = 12
    history_window_years: int = 10

    page_size: int = 100
    max_flight_pages: int = 5


@dataclass(frozen=True)
class CacheConfig:
    """Model trend cache settings."""
    model_trend_ttl_seconds: int = int(os.getenv('MODEL_TREND_CACHE_TTL_SECONDS', str(24 * 60 * 60)))
    coalesce_misses: bool = _parse_bool(os.getenv('MODEL_TREND_CACHE_COALESCE', '0'))


@dataclass(frozen=True)
class SessionStoreConfig:
    """App session storage settings."""
    backend: str = os.getenv('SESSION_STORE', 'memory')
    database_url: str = os.getenv('DATABASE_URL', 'sqlite:///jetintel.db')

    # App-issued session tokens outlive a single upstream token by a margin
    app_session_ttl_seconds: int = 55 * 60

    @property
    def is_sql(self) -> bool:
        return self.backend.lower() == 'sql'


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    upstream: UpstreamConfig
    aggregator: AggregatorConfig
    cache: CacheConfig
    sessions: SessionStoreConfig

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        upstream=UpstreamConfig(),
        aggregator=AggregatorConfig(),
        cache=CacheConfig(),
        sessions=SessionStoreConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
