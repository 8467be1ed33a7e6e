"""
Marketability ("hot or not") scoring.

Seven factors, each a value in [0, 1] with a fixed weight (weights sum
to 1.0):

    Model Liquidity            0.25
    Days on Market Signal      0.20
    Age & Configuration Fit    0.15
    Transaction Pattern        0.10
    Utilization Profile        0.10
    Ownership Simplicity       0.10
    Data Completeness          0.10

score = round(100 * sum(value * weight)), labelled HOT (>=80), WARM
(>=60), NEUTRAL (>=40) or COLD. Time to sell is 180 days scaled by the
label's multiplier.

Every factor states the branch it took in its explanation. Missing
inputs select a documented baseline branch; nothing here raises.
"""

import math
from datetime import date
from typing import Callable, List, Optional

from jetintel.models.aircraft import AircraftProfile
from jetintel.models.scores import HotNotScore, ScoringFactor

BASELINE_DAYS_TO_SELL = 180

LABEL_THRESHOLDS = (
    (80, 'HOT'),
    (60, 'WARM'),
    (40, 'NEUTRAL'),
)

TIME_TO_SELL_MULTIPLIER = {
    'HOT': 0.8,
    'WARM': 1.0,
    'NEUTRAL': 1.25,
    'COLD': 1.7,
}

BASE_ASSUMPTIONS = (
    'Score is based on publicly available JETNET data at time of lookup.',
    'Time-to-sell is a heuristic estimate based on scoring factors.',
)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def model_liquidity(profile: AircraftProfile, as_of: date) -> ScoringFactor:
    value = 0.5
    explanation = 'Baseline liquidity assumed for model category.'

    category = (profile.category_size or '').lower()
    if 'large' in category or 'long' in category:
        value = 0.65
        explanation = 'Large cabin / long-range jets have strong market demand.'
    elif 'mid' in category:
        value = 0.7
        explanation = 'Midsize jets are the most liquid segment.'
    elif 'light' in category:
        value = 0.6
        explanation = 'Light jets have reasonable market liquidity.'
    elif 'ultra' in category:
        value = 0.55
        explanation = 'Ultra long-range jets have a smaller buyer pool but command premium.'

    trends = profile.model_trends
    if trends is not None:
        value = (value + trends.market_heat_score) / 2
        explanation += (
            f' Model market heat is {trends.market_heat_label} ({trends.market_heat_score:.2f}).'
        )

    if profile.market_signals.for_sale:
        value = min(value + 0.1, 1.0)
        explanation += ' Currently listed for sale increases exposure.'

    return ScoringFactor('Model Liquidity', 0.25, _clamp(value), explanation)


def days_on_market(profile: AircraftProfile, as_of: date) -> ScoringFactor:
    dom = profile.market_signals.days_on_market

    if dom is None:
        if profile.market_signals.for_sale:
            value = 0.6
            explanation = 'Listed for sale but days-on-market data unavailable.'
        else:
            value = 0.5
            explanation = 'Not currently listed. Days-on-market not applicable (baseline).'
    elif dom < 30:
        value = 0.95
        explanation = f'Only {dom} days on market - very fresh listing.'
    elif dom < 90:
        value = 0.8
        explanation = f'{dom} days on market - still within normal sell window.'
    elif dom < 180:
        value = 0.55
        explanation = f'{dom} days on market - approaching stale territory.'
    elif dom < 365:
        value = 0.3
        explanation = f'{dom} days on market - pricing or positioning likely needs review.'
    else:
        value = 0.15
        explanation = f'{dom} days on market - significantly stale listing.'

    return ScoringFactor('Days on Market Signal', 0.2, _clamp(value), explanation)


def age_fit(profile: AircraftProfile, as_of: date) -> ScoringFactor:
    if not profile.year_mfr:
        return ScoringFactor(
            'Age & Configuration Fit', 0.15, 0.5,
            'Year of manufacture unknown; baseline assumed.',
        )

    age = as_of.year - profile.year_mfr
    if age <= 5:
        value = 0.9
        explanation = f'{age} years old - in the sweet spot for buyers.'
    elif age <= 10:
        value = 0.75
        explanation = f'{age} years old - still strong demand.'
    elif age <= 15:
        value = 0.6
        explanation = f'{age} years old - moderate demand, condition matters.'
    elif age <= 20:
        value = 0.4
        explanation = f'{age} years old - narrower buyer pool, value-focused buyers.'
    else:
        value = 0.25
        explanation = f'{age} years old - limited demand, specialized buyers only.'

    return ScoringFactor('Age & Configuration Fit', 0.15, _clamp(value), explanation)


def transaction_pattern(profile: AircraftProfile, as_of: date) -> ScoringFactor:
    count = len(profile.history)

    if count == 0:
        value = 0.5
        explanation = 'No transaction history available.'
    elif count == 1:
        value = 0.6
        explanation = 'Single owner history - stable ownership may appeal to buyers.'
    elif count <= 3:
        value = 0.65
        explanation = f'{count} transactions - normal lifecycle.'
    elif count <= 5:
        value = 0.55
        explanation = f'{count} transactions - moderate turnover.'
    else:
        value = 0.35
        explanation = f'{count} transactions - frequent flips may signal issues.'

    return ScoringFactor('Transaction Pattern', 0.1, _clamp(value), explanation)


def utilization(profile: AircraftProfile, as_of: date) -> ScoringFactor:
    util = profile.utilization_summary

    if util is None or util.total_flights == 0:
        value = 0.35
        explanation = 'No utilization data - possible hangar queen, may concern buyers.'
    else:
        monthly = util.avg_flights_per_month
        if 15 <= monthly <= 40:
            value = 0.8
            explanation = f'{monthly:.1f} flights/month - healthy utilization.'
        elif 5 <= monthly < 15:
            value = 0.6
            explanation = f'{monthly:.1f} flights/month - moderate use.'
        elif monthly > 40:
            value = 0.5
            explanation = f'{monthly:.1f} flights/month - heavy use may increase maintenance concerns.'
        else:
            value = 0.4
            explanation = f'{monthly:.1f} flights/month - low utilization.'

    return ScoringFactor('Utilization Profile', 0.1, _clamp(value), explanation)


def ownership_simplicity(profile: AircraftProfile, as_of: date) -> ScoringFactor:
    relations = profile.relationships
    total = len(relations)
    trustees = sum(1 for r in relations if r.relation_type.lower() == 'trustee')

    if total <= 2 and trustees == 0:
        value = 0.9
        explanation = 'Simple ownership structure - easy to transact.'
    elif trustees > 0 and total <= 4:
        value = 0.6
        explanation = 'Trustee involvement adds complexity but is common.'
    elif total <= 4:
        value = 0.7
        explanation = 'Moderate relationship complexity.'
    else:
        value = 0.4
        explanation = f'{total} relationships - layered structure may slow transactions.'

    return ScoringFactor('Ownership Simplicity', 0.1, _clamp(value), explanation)


def data_completeness(profile: AircraftProfile, as_of: date) -> ScoringFactor:
    """Share of key data points present. Year of manufacture counts but is never listed as missing."""
    checks = (
        ('pictures', bool(profile.pictures)),
        ('relationships', bool(profile.relationships)),
        ('utilization', bool(profile.utilization_summary and profile.utilization_summary.total_flights > 0)),
        ('history', bool(profile.history)),
        ('serial number', bool(profile.serial_number)),
        ('base location', profile.base_location.is_known),
        (None, profile.year_mfr > 0),
    )
    available = sum(1 for _, present in checks if present)
    missing = [name for name, present in checks if name and not present]
    total = len(checks)

    if missing:
        explanation = f'Missing: {", ".join(missing)}. {available}/{total} data points available.'
    else:
        explanation = f'All {total} key data points available.'

    return ScoringFactor('Data Completeness', 0.1, _clamp(available / total), explanation)


FACTORS: List[Callable[[AircraftProfile, date], ScoringFactor]] = [
    model_liquidity,
    days_on_market,
    age_fit,
    transaction_pattern,
    utilization,
    ownership_simplicity,
    data_completeness,
]


def score_label(score: int) -> str:
    for threshold, label in LABEL_THRESHOLDS:
        if score >= threshold:
            return label
    return 'COLD'


def compute_hot_not_score(profile: AircraftProfile, as_of: Optional[date] = None) -> HotNotScore:
    """
    Score an aircraft's marketability.

    Pure for a given profile and as_of date (defaults to today, used
    only for the aircraft's age).
    """
    as_of = as_of or date.today()
    factors = [factor(profile, as_of) for factor in FACTORS]

    raw = sum(f.value * f.weight for f in factors)
    score = _round_half_up(raw * 100)
    label = score_label(score)

    assumptions = list(BASE_ASSUMPTIONS)
    if profile.model_trends is not None:
        assumptions.insert(1, 'Market liquidity blends model category with model-level market trends.')
    else:
        assumptions.insert(1, 'Market liquidity is estimated from model category, not real-time inventory.')
    if profile.market_signals.days_on_market is None:
        assumptions.append('Days-on-market data was not available; baseline assumed.')

    return HotNotScore(
        score=score,
        label=label,
        time_to_sell_estimate_days=_round_half_up(BASELINE_DAYS_TO_SELL * TIME_TO_SELL_MULTIPLIER[label]),
        factors=factors,
        assumptions=assumptions,
    )
