"""
Derived score models: marketability (HotNotScore) and disposition
(OwnerIntelligence).
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, List

from jetintel.models.aircraft import FleetAircraft


@dataclass(frozen=True)
class ScoringFactor:
    """One marketability factor. value is in [0, 1]; weights sum to 1.0."""
    name: str
    weight: float
    value: float
    explanation: str


@dataclass
class HotNotScore:
    score: int
    label: str  # HOT | WARM | NEUTRAL | COLD
    time_to_sell_estimate_days: int
    factors: List[ScoringFactor] = field(default_factory=list)
    assumptions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DispositionFactor:
    """One disposition factor on a point scale (score out of max_score)."""
    name: str
    weight: float
    score: int
    max_score: int
    explanation: str


@dataclass
class OwnerIntelligence:
    purchase_date: Optional[str]
    ownership_years: float
    avg_ownership_years: float
    brand_loyalty: str  # HIGH | MODERATE | LOW
    brand_loyalty_score: float
    prior_aircraft: List[str]
    upgrade_pattern: str
    sell_probability: int
    predicted_sell_window: str
    confidence: float
    owner_archetype: str
    replacement_cycle_status: str
    cycle_ratio: float
    fleet_size: int
    fleet_trend: str  # Expanding | Stable | Contracting
    fleet_aircraft: List[FleetAircraft] = field(default_factory=list)
    explanation_factors: List[DispositionFactor] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
