"""
Model-level market trend signals.

Normalizes the provider's per-model market trend series into
ModelTrendSignals:
- Per-series direction: mean of the last 3 points vs the earlier points,
  more than 5% either way moves off flat
- Days-on-market reads in reverse: fewer days is Improving
- Market heat score starting at 0.5, adjusted per signal, clamped to [0, 1]

Fetches go through the MarketTrendCache so each model is fetched at most
once per TTL window.
"""

import logging
from typing import Any, List, Optional

import numpy as np

from jetintel.cache import MarketTrendCache, model_trend_cache
from jetintel.models.aircraft import ModelTrendSignals
from jetintel.upstream.client import UpstreamClient
from jetintel.upstream.schema import market_trend_series
from jetintel.upstream.session import Session

logger = logging.getLogger(__name__)

TREND_THRESHOLD = 0.05
RECENT_POINTS = 3

# (trend label, heat adjustment) per signal
INVENTORY_HEAT = {'Decreasing': 0.15, 'Increasing': -0.1}
DOM_HEAT = {'Improving': 0.15, 'Worsening': -0.1}
PRICE_HEAT = {'Rising': 0.1, 'Falling': -0.1}
VELOCITY_HEAT = {'Increasing': 0.1, 'Declining': -0.1}


def classify_trend(
    values: Optional[List[float]],
    ascending: str,
    flat: str,
    descending: str,
) -> str:
    """
    Compare the recent points against the earlier ones.

    Fewer than two points, or an earlier mean of zero, is flat.
    """
    if not values or len(values) < 2:
        return flat

    series = np.asarray(values, dtype=float)
    recent = series[-RECENT_POINTS:]
    earlier = series[:max(1, len(series) - RECENT_POINTS)]

    earlier_avg = float(np.mean(earlier))
    if earlier_avg == 0:
        return flat

    change = (float(np.mean(recent)) - earlier_avg) / earlier_avg
    if change > TREND_THRESHOLD:
        return ascending
    if change < -TREND_THRESHOLD:
        return descending
    return flat


def market_heat_label(score: float) -> str:
    if score >= 0.65:
        return 'Strong'
    if score >= 0.4:
        return 'Moderate'
    return 'Weak'


def normalize_model_trends(model_id: int, payload: Any) -> ModelTrendSignals:
    """Build ModelTrendSignals from a raw market trends payload."""
    series = market_trend_series(payload)
    dom_values = series['days_on_market']

    avg_dom = int(round(float(np.mean(dom_values)))) if dom_values else None

    inventory_trend = classify_trend(series['inventory'], 'Increasing', 'Stable', 'Decreasing')
    # Falling days on market is the improving direction
    dom_trend = classify_trend(dom_values, 'Worsening', 'Stable', 'Improving')
    price_trend = classify_trend(series['asking_price'], 'Rising', 'Flat', 'Falling')
    velocity_trend = classify_trend(series['transactions'], 'Increasing', 'Stable', 'Declining')

    heat = 0.5
    heat += INVENTORY_HEAT.get(inventory_trend, 0.0)
    heat += DOM_HEAT.get(dom_trend, 0.0)
    heat += PRICE_HEAT.get(price_trend, 0.0)
    heat += VELOCITY_HEAT.get(velocity_trend, 0.0)

    if avg_dom is not None:
        if avg_dom < 120:
            heat += 0.1
        elif avg_dom > 300:
            heat -= 0.1

    heat = min(1.0, max(0.0, heat))

    return ModelTrendSignals(
        model_id=model_id,
        avg_days_on_market=avg_dom,
        inventory_trend=inventory_trend,
        dom_trend=dom_trend,
        asking_price_trend=price_trend,
        transaction_velocity_trend=velocity_trend,
        market_heat_score=round(heat, 2),
        market_heat_label=market_heat_label(heat),
    )


def fetch_model_trends(
    model_id: int,
    session: Session,
    client: UpstreamClient,
    cache: Optional[MarketTrendCache] = None,
) -> ModelTrendSignals:
    """Cached model trend signals; upstream errors propagate."""
    cache = cache or model_trend_cache

    def fetch() -> ModelTrendSignals:
        payload = client.get_market_trends(session, model_id)
        signals = normalize_model_trends(model_id, payload)
        logger.info(
            f'Model {model_id} market heat {signals.market_heat_score} ({signals.market_heat_label})'
        )
        return signals

    return cache.get_or_fetch(model_id, fetch)
