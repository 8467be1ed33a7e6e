"""
Aircraft profile model - the merged per-aircraft view.

Every enrichment field is independently nullable (or empty). A missing
source never prevents constructing the profile; scoring degrades to
documented baselines instead.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from jetintel.models.relationships import RelationshipGraph
    from jetintel.models.scores import HotNotScore, OwnerIntelligence


@dataclass
class Location:
    """Base location of an aircraft."""
    icao: Optional[str] = None
    airport: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return bool(self.icao or self.city)


@dataclass
class Relationship:
    """Flat company/contact relationship row as shown on a profile."""
    company_id: Optional[int]
    company_name: str
    relation_type: str
    contact_name: Optional[str] = None
    contact_title: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


@dataclass
class Picture:
    url: str
    caption: Optional[str] = None


@dataclass
class UtilizationSummary:
    total_flights: int
    date_range: str
    avg_flights_per_month: float


@dataclass
class MarketSignals:
    """Listing state of this specific aircraft."""
    for_sale: bool = False
    asking_price: Optional[str] = None
    days_on_market: Optional[int] = None
    market_status: Optional[str] = None


@dataclass
class ModelTrendSignals:
    """Model-level market trend summary (cached per model id)."""
    model_id: int
    avg_days_on_market: Optional[int]
    inventory_trend: str            # Increasing | Stable | Decreasing
    dom_trend: str                  # Improving | Stable | Worsening
    asking_price_trend: str         # Rising | Flat | Falling
    transaction_velocity_trend: str  # Increasing | Stable | Declining
    market_heat_score: float
    market_heat_label: str          # Strong | Moderate | Weak


@dataclass
class HistoryEntry:
    """One transaction from the aircraft's history."""
    date: str
    transaction_type: str
    description: str


@dataclass
class FleetAircraft:
    """Another aircraft in the owner company's fleet."""
    registration: str
    aircraft_id: int
    make: str
    model: str
    year_mfr: int
    serial_number: str
    for_sale: bool = False


@dataclass
class AircraftSpecs:
    """Equipment and performance figures from the full aircraft record."""
    engine_model: Optional[str] = None
    engine_count: Optional[int] = None
    engine_program: Optional[str] = None
    apu_model: Optional[str] = None
    range_nm: Optional[int] = None
    max_speed: Optional[int] = None
    mtow: Optional[int] = None
    fuel_capacity: Optional[int] = None
    cabin_seats: Optional[int] = None
    cabin_config: Optional[str] = None
    avionics_suite: Optional[str] = None
    wifi_equipped: Optional[bool] = None
    total_landings: Optional[int] = None
    last_int_refurb: Optional[str] = None
    last_ext_paint: Optional[str] = None
    operation_type: Optional[str] = None
    certificate: Optional[str] = None
    noise_stage: Optional[str] = None


@dataclass
class AircraftDetails:
    specs: Optional[AircraftSpecs] = None
    estimated_aftt: Optional[float] = None


@dataclass
class Headquarters:
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


@dataclass
class CompanyProfile:
    """Owner company as listed by the company directory."""
    company_id: int
    company_name: str
    company_type: Optional[str] = None
    headquarters: Headquarters = field(default_factory=Headquarters)
    industry: Optional[str] = None


@dataclass
class CompanyContact:
    """A person listed under the owner company."""
    contact_name: str
    contact_id: Optional[int] = None
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role_signal: str = 'Operational'  # Decision Maker | Influencer | Operational


@dataclass
class AircraftIdentity:
    """Result of resolving a registration: identity plus listing state."""
    registration: str
    aircraft_id: int
    model_id: Optional[int]
    make: str = 'Unknown'
    model: str = 'Unknown'
    series: Optional[str] = None
    year_mfr: int = 0
    year_delivered: int = 0
    serial_number: str = ''
    lifecycle_status: str = 'Unknown'
    usage: str = 'Unknown'
    weight_class: str = 'Unknown'
    category_size: str = 'Unknown'
    base_location: Location = field(default_factory=Location)
    market_signals: MarketSignals = field(default_factory=MarketSignals)
    flat_relationships: List[Relationship] = field(default_factory=list)
    specs: Optional[AircraftSpecs] = None
    estimated_aftt: Optional[float] = None

    @property
    def owner_relationship(self) -> Optional[Relationship]:
        for rel in self.flat_relationships:
            if rel.relation_type.lower() == 'owner':
                return rel
        return None


@dataclass(frozen=True)
class PartialAggregationFailure:
    """One enrichment source that failed during a profile build."""
    source: str
    reason: str


@dataclass
class AircraftProfile:
    """
    Merged, per-aircraft view.

    Identity and descriptive attributes come from the registration lookup.
    Enrichment fields (pictures, relationships, utilization, history,
    model trends, fleet, owner company, owner contacts, specs) each
    degrade to an empty/None default when their source fails. hot_not_score and owner_intelligence are derived.
    """
    # Identity
    registration: str
    aircraft_id: int
    model_id: Optional[int]

    # Descriptive attributes
    make: str = 'Unknown'
    model: str = 'Unknown'
    series: Optional[str] = None
    year_mfr: int = 0
    year_delivered: int = 0
    serial_number: str = ''
    lifecycle_status: str = 'Unknown'
    usage: str = 'Unknown'
    weight_class: str = 'Unknown'
    category_size: str = 'Unknown'
    base_location: Location = field(default_factory=Location)

    # Enrichment
    relationships: List[Relationship] = field(default_factory=list)
    relationship_graph: Optional['RelationshipGraph'] = None
    pictures: List[Picture] = field(default_factory=list)
    utilization_summary: Optional[UtilizationSummary] = None
    market_signals: MarketSignals = field(default_factory=MarketSignals)
    model_trends: Optional[ModelTrendSignals] = None
    history: List[HistoryEntry] = field(default_factory=list)
    fleet: List[FleetAircraft] = field(default_factory=list)
    company_profile: Optional[CompanyProfile] = None
    contacts: List[CompanyContact] = field(default_factory=list)
    specs: Optional[AircraftSpecs] = None
    estimated_aftt: Optional[float] = None

    # Derived
    hot_not_score: Optional['HotNotScore'] = None
    owner_intelligence: Optional['OwnerIntelligence'] = None

    # Build metadata
    partial_failures: List[PartialAggregationFailure] = field(default_factory=list)
    lookups_completed_at: Optional[datetime] = None

    @classmethod
    def from_identity(cls, identity: AircraftIdentity) -> 'AircraftProfile':
        return cls(
            registration=identity.registration,
            aircraft_id=identity.aircraft_id,
            model_id=identity.model_id,
            make=identity.make,
            model=identity.model,
            series=identity.series,
            year_mfr=identity.year_mfr,
            year_delivered=identity.year_delivered,
            serial_number=identity.serial_number,
            lifecycle_status=identity.lifecycle_status,
            usage=identity.usage,
            weight_class=identity.weight_class,
            category_size=identity.category_size,
            base_location=identity.base_location,
            relationships=list(identity.flat_relationships),
            market_signals=identity.market_signals,
            specs=identity.specs,
            estimated_aftt=identity.estimated_aftt,
        )

    def failed_sources(self) -> List[str]:
        return [f.source for f in self.partial_failures]

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'registration': self.registration,
            'aircraft_id': self.aircraft_id,
            'model_id': self.model_id,
            'make': self.make,
            'model': self.model,
            'series': self.series,
            'year_mfr': self.year_mfr,
            'year_delivered': self.year_delivered,
            'serial_number': self.serial_number,
            'lifecycle_status': self.lifecycle_status,
            'usage': self.usage,
            'weight_class': self.weight_class,
            'category_size': self.category_size,
            'base_location': asdict(self.base_location),
            'relationships': [asdict(r) for r in self.relationships],
            'relationship_graph': self.relationship_graph.to_dict() if self.relationship_graph else None,
            'pictures': [asdict(p) for p in self.pictures],
            'utilization_summary': asdict(self.utilization_summary) if self.utilization_summary else None,
            'market_signals': asdict(self.market_signals),
            'model_trends': asdict(self.model_trends) if self.model_trends else None,
            'history': [asdict(h) for h in self.history],
            'fleet': [asdict(a) for a in self.fleet],
            'company_profile': asdict(self.company_profile) if self.company_profile else None,
            'contacts': [asdict(c) for c in self.contacts],
            'specs': asdict(self.specs) if self.specs else None,
            'estimated_aftt': self.estimated_aftt,
            'hot_not_score': self.hot_not_score.to_dict() if self.hot_not_score else None,
            'owner_intelligence': self.owner_intelligence.to_dict() if self.owner_intelligence else None,
            'partial_failures': [asdict(f) for f in self.partial_failures],
            'lookups_completed_at': self.lookups_completed_at.isoformat() if self.lookups_completed_at else None,
        }
