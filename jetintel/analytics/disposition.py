"""
Owner disposition (sell probability) analysis.

Ownership age over the expected hold period for the aircraft's class
gives a cycle ratio:

    < 0.6        Early Ownership
    0.6 - 1.0    Watch Zone
    > 1.0        Replacement Window

Six point factors (maxima 30/20/15/15/10/10) sum to a 0-100 sell
probability, which buckets into a predicted sell window. The owner
archetype is a fixed-precedence decision tree, first match wins.
"""

import logging
from collections import OrderedDict
from datetime import date
from typing import List, Optional, Tuple

from jetintel.models.aircraft import AircraftProfile, FleetAircraft, HistoryEntry
from jetintel.models.scores import DispositionFactor, OwnerIntelligence
from jetintel.upstream.schema import parse_date

logger = logging.getLogger(__name__)

# Typical hold period in years, matched by substring in this order
TYPICAL_HOLD_YEARS = OrderedDict([
    ('light', (4, 7)),
    ('midsize', (5, 8)),
    ('mid', (5, 8)),
    ('super mid', (6, 9)),
    ('large', (7, 12)),
    ('long-range', (7, 12)),
    ('ultra long', (8, 15)),
    ('ultra', (8, 15)),
    ('heavy', (7, 12)),
])
DEFAULT_HOLD_YEARS = 7.0

OWNERSHIP_TRANSACTIONS = ('sale', 'deliver', 'transfer')

# Cap on the assumed average hold when the owner has prior aircraft
PRIOR_OWNERSHIP_CAP_YEARS = 6.8

SELL_WINDOWS = (
    (75, '3-9 months'),
    (55, '9-18 months'),
    (35, '18-36 months'),
)
DEFAULT_SELL_WINDOW = '36-60 months'


def expected_hold_years(*classes: Optional[str]) -> float:
    """Midpoint of the typical hold range for the first class that matches."""
    for value in classes:
        text = (value or '').lower()
        if not text:
            continue
        for key, (low, high) in TYPICAL_HOLD_YEARS.items():
            if key in text:
                return (low + high) / 2
    return DEFAULT_HOLD_YEARS


def cycle_status(ratio: float) -> str:
    if ratio < 0.6:
        return 'Early Ownership'
    if ratio <= 1.0:
        return 'Watch Zone'
    return 'Replacement Window'


def last_ownership_transaction(history: List[HistoryEntry]) -> Optional[HistoryEntry]:
    """
    Most recent sale/delivery/transfer.

    Picks the latest parseable date; if none parse, the last matching
    entry in history order.
    """
    matches = [
        h for h in history
        if any(t in h.transaction_type.lower() for t in OWNERSHIP_TRANSACTIONS)
    ]
    if not matches:
        return None

    dated = [(parse_date(h.date), h) for h in matches]
    dated = [(d, h) for d, h in dated if d is not None]
    if dated:
        return max(dated, key=lambda pair: pair[0])[1]
    return matches[-1]


def ownership_age(profile: AircraftProfile, as_of: date) -> Tuple[float, Optional[str]]:
    """(years owned, purchase date) with a manufacture-year fallback."""
    entry = last_ownership_transaction(profile.history)
    if entry is not None:
        purchased = parse_date(entry.date)
        if purchased is not None:
            years = (as_of - purchased).days / 365.25
            return round(max(0.0, years), 1), entry.date

    built = profile.year_mfr or profile.year_delivered
    if built:
        return float(max(0, as_of.year - built)), None
    return 0.0, None


def brand_loyalty(prior_aircraft: List[str], make: str) -> Tuple[float, str]:
    """Share of prior aircraft from the same manufacturer."""
    if not prior_aircraft:
        return 0.5, 'MODERATE'

    current = (make or '').upper()
    same = sum(1 for a in prior_aircraft if (a.split(' ')[0] if a else '').upper() == current)
    ratio = same / len(prior_aircraft)

    if ratio >= 0.7:
        return ratio, 'HIGH'
    if ratio >= 0.4:
        return ratio, 'MODERATE'
    return ratio, 'LOW'


def fleet_trend(fleet_size: int) -> str:
    # No fleet history is available, so only presence is observable
    return 'Stable' if fleet_size >= 1 else 'Contracting'


def owner_archetype(
    ownership_years: float,
    prior_count: int,
    avg_ownership_years: float,
    fleet_size: int,
    trend: str,
) -> str:
    if fleet_size >= 3 and trend != 'Contracting':
        return 'Fleet Operator'
    if prior_count >= 3 and avg_ownership_years < 5:
        return 'Serial Upgrader'
    if ownership_years > 10 or avg_ownership_years > 8:
        return 'Long-Term Holder'
    if trend == 'Contracting':
        return 'Consolidator'
    if prior_count <= 1:
        return 'Lifestyle Owner'
    return 'Opportunistic Seller'


def upgrade_pattern(prior_count: int) -> str:
    if prior_count >= 2:
        return 'Incremental OEM upgrades'
    if prior_count == 1:
        return 'Single prior upgrade'
    return 'No upgrade history'


def sell_window(probability: int) -> str:
    for threshold, window in SELL_WINDOWS:
        if probability >= threshold:
            return window
    return DEFAULT_SELL_WINDOW


def _ownership_cycle_points(ratio: float) -> int:
    if ratio >= 1.2:
        return 28
    if ratio >= 1.0:
        return 24
    if ratio >= 0.8:
        return 18
    if ratio >= 0.6:
        return 12
    return 5


def compute_disposition(
    profile: AircraftProfile,
    fleet: Optional[List[FleetAircraft]] = None,
    prior_aircraft: Optional[List[str]] = None,
    as_of: Optional[date] = None,
) -> OwnerIntelligence:
    """
    Predict how likely the current owner is to sell, and when.

    Missing history, fleet or utilization select baseline points; this
    never raises for an incomplete profile.
    """
    fleet = fleet or []
    prior_aircraft = prior_aircraft or []
    as_of = as_of or date.today()

    years, purchase_date = ownership_age(profile, as_of)
    hold_years = expected_hold_years(profile.category_size, profile.weight_class)
    ratio = years / hold_years
    status = cycle_status(ratio)

    prior_count = len(prior_aircraft)
    avg_years = min(years, PRIOR_OWNERSHIP_CAP_YEARS) if prior_count else years
    loyalty_score, loyalty_level = brand_loyalty(prior_aircraft, profile.make)

    fleet_size = len(fleet)
    trend = fleet_trend(fleet_size)
    archetype = owner_archetype(years, prior_count, avg_years, fleet_size, trend)

    factors = [
        DispositionFactor(
            name='Ownership Age vs Cycle',
            weight=0.3,
            score=_ownership_cycle_points(ratio),
            max_score=30,
            explanation=(
                f'{years:g} years owned vs {hold_years:g}-year expected cycle '
                f'(ratio: {ratio:.2f}). Status: {status}.'
            ),
        ),
    ]

    if prior_count >= 3:
        behavior_points = 16
    elif prior_count >= 1:
        behavior_points = 10
    else:
        behavior_points = 5
    factors.append(DispositionFactor(
        name='Historical Upgrade Behavior',
        weight=0.2,
        score=behavior_points,
        max_score=20,
        explanation=(
            f'Owner has {prior_count} prior aircraft. Pattern: {archetype}.'
            if prior_count else 'No prior aircraft history available.'
        ),
    ))

    if trend == 'Contracting':
        fleet_points = 13
    elif fleet_size >= 3:
        fleet_points = 8
    else:
        fleet_points = 7
    factors.append(DispositionFactor(
        name='Fleet Expansion/Reduction',
        weight=0.15,
        score=fleet_points,
        max_score=15,
        explanation=f'Fleet size: {fleet_size} aircraft. Trend: {trend}.',
    ))

    brand_points = {'HIGH': 12, 'MODERATE': 8}.get(loyalty_level, 5)
    upgrade_path = (
        'Likely to upgrade within same OEM.' if loyalty_level == 'HIGH'
        else 'May consider cross-OEM options.'
    )
    factors.append(DispositionFactor(
        name='Brand Loyalty Upgrade Path',
        weight=0.15,
        score=brand_points,
        max_score=15,
        explanation=f'Brand loyalty: {loyalty_level} ({round(loyalty_score * 100)}%). {upgrade_path}',
    ))

    util = profile.utilization_summary
    if util is None or util.total_flights == 0:
        util_points = 6
    elif util.avg_flights_per_month < 5:
        util_points = 8
    elif util.avg_flights_per_month > 30:
        util_points = 4
    else:
        util_points = 5
    if util is not None:
        usage_note = (
            'Declining use often precedes listing.' if util.avg_flights_per_month < 5
            else 'Active use suggests continued need.'
        )
        util_explanation = f'{util.avg_flights_per_month:.1f} flights/month. {usage_note}'
    else:
        util_explanation = 'No utilization data available.'
    factors.append(DispositionFactor(
        name='Utilization Trend',
        weight=0.1,
        score=util_points,
        max_score=10,
        explanation=util_explanation,
    ))

    for_sale = profile.market_signals.for_sale
    factors.append(DispositionFactor(
        name='Market Timing Alignment',
        weight=0.1,
        score=8 if for_sale else 5,
        max_score=10,
        explanation='Currently listed - already in sell cycle.' if for_sale else 'Not currently listed.',
    ))

    probability = sum(f.score for f in factors)

    confidence = 0.5
    if prior_count:
        confidence += 0.15
    if fleet_size:
        confidence += 0.1
    if profile.history:
        confidence += 0.1
    if util is not None:
        confidence += 0.1

    logger.debug(
        f'{profile.registration}: sell probability {probability}, {status}, archetype {archetype}'
    )

    return OwnerIntelligence(
        purchase_date=purchase_date,
        ownership_years=years,
        avg_ownership_years=avg_years,
        brand_loyalty=loyalty_level,
        brand_loyalty_score=loyalty_score,
        prior_aircraft=list(prior_aircraft),
        upgrade_pattern=upgrade_pattern(prior_count),
        sell_probability=probability,
        predicted_sell_window=sell_window(probability),
        confidence=round(min(0.95, confidence), 2),
        owner_archetype=archetype,
        replacement_cycle_status=status,
        cycle_ratio=round(ratio, 2),
        fleet_size=fleet_size,
        fleet_trend=trend,
        fleet_aircraft=list(fleet),
        explanation_factors=factors,
    )
