"""
Data model for JetIntel.

Aircraft profiles, relationship graphs, flight records and derived
scores are plain dataclasses recomputed per request. The only persisted
table is the app session store (SessionRecord).
"""

from jetintel.models.base import Base, make_engine, make_session_factory, session_scope, init_db
from jetintel.models.session_record import SessionRecord
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
    ModelTrendSignals,
    PartialAggregationFailure,
    Picture,
    Relationship,
    UtilizationSummary,
)
from jetintel.models.relationships import (
    BrokerContact,
    CompanyNode,
    ContactNode,
    ContactPhones,
    RelationshipEdge,
    RelationshipGraph,
)
from jetintel.models.flight import FlightRecord
from jetintel.models.scores import DispositionFactor, HotNotScore, OwnerIntelligence, ScoringFactor

__all__ = [
    'Base',
    'make_engine',
    'make_session_factory',
    'session_scope',
    'init_db',
    'SessionRecord',
    'AircraftDetails',
    'AircraftIdentity',
    'AircraftProfile',
    'AircraftSpecs',
    'CompanyContact',
    'CompanyProfile',
    'FleetAircraft',
    'Headquarters',
    'HistoryEntry',
    'Location',
    'MarketSignals',
    'ModelTrendSignals',
    'PartialAggregationFailure',
    'Picture',
    'Relationship',
    'UtilizationSummary',
    'BrokerContact',
    'CompanyNode',
    'ContactNode',
    'ContactPhones',
    'RelationshipEdge',
    'RelationshipGraph',
    'FlightRecord',
    'DispositionFactor',
    'HotNotScore',
    'OwnerIntelligence',
    'ScoringFactor',
]
