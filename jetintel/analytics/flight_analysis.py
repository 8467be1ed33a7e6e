"""
Flight activity analysis using NumPy.

Turns a list of normalized FlightRecords into FlightIntelligence, a pure
function of its input:

1. Airport and route counts: primary base, top routes, route repetition
2. Monthly buckets: activity trend (second half vs first half, +/-15%)
3. Seasonality: winter {11,12,1,2,3} vs summer {5,6,7,8,9} means, 1.5x
4. Downtime: gaps of 30+ days between consecutive flights
5. Charter likelihood from airport diversity and route repetition
6. Pre-sale signals derived from the above

There is one monthly bucket per month that had flights. An as_of date
does not pad the series; it only flags a latest month with no flights.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from jetintel.models.flight import FlightRecord

logger = logging.getLogger(__name__)

TREND_CHANGE_THRESHOLD = 0.15
MIN_TREND_MONTHS = 3

MIN_SEASONAL_MONTHS = 6
MIN_MONTHS_PER_SEASON = 2
SEASONAL_RATIO = 1.5
WINTER_MONTHS = (11, 12, 1, 2, 3)
SUMMER_MONTHS = (5, 6, 7, 8, 9)

DOWNTIME_MIN_DAYS = 30
EXTENDED_DOWNTIME_DAYS = 60
MAX_DOWNTIME_PERIODS = 5

TOP_ROUTES = 5
DAYS_PER_MONTH = 30


class ActivityTrend(str, Enum):
    """Monthly activity trend classification."""
    INCREASING = 'increasing'
    STABLE = 'stable'
    DECLINING = 'declining'


class CharterLikelihood(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


@dataclass
class RouteCount:
    route: str
    count: int


@dataclass
class MonthlyActivity:
    month: str  # YYYY-MM
    flights: int
    hours: Optional[float] = None


@dataclass
class DowntimePeriod:
    start_date: date
    end_date: date
    days: int


@dataclass
class FlightIntelligence:
    """
    Derived flight activity signals.

    Holds no identity of its own; recomputed from flight records on
    every call.
    """
    total_flights: int = 0
    total_hours: Optional[float] = None
    avg_flights_per_month: float = 0.0
    avg_hours_per_flight: Optional[float] = None
    unique_airports: int = 0
    primary_base_airport: Optional[str] = None
    top_routes: List[RouteCount] = field(default_factory=list)
    monthly_breakdown: List[MonthlyActivity] = field(default_factory=list)
    activity_trend_slope: ActivityTrend = ActivityTrend.STABLE
    route_repetition_score: int = 0
    international_ratio: float = 0.0
    downtime_periods: List[DowntimePeriod] = field(default_factory=list)
    seasonal_pattern: Optional[str] = None
    charter_likelihood: CharterLikelihood = CharterLikelihood.LOW
    pre_sale_signals: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        data = asdict(self)
        data['activity_trend_slope'] = self.activity_trend_slope.value
        data['charter_likelihood'] = self.charter_likelihood.value
        data['downtime_periods'] = [
            {'start_date': d.start_date.isoformat(), 'end_date': d.end_date.isoformat(), 'days': d.days}
            for d in self.downtime_periods
        ]
        return data


def _month_key(d: date) -> str:
    return f'{d.year:04d}-{d.month:02d}'


def monthly_breakdown(flights: Sequence[FlightRecord]) -> List[MonthlyActivity]:
    """Flights and hours per calendar month that had flights, oldest first."""
    counts: Counter = Counter()
    hours: Dict[str, float] = {}
    for f in flights:
        key = _month_key(f.date)
        counts[key] += 1
        if f.hours:
            hours[key] = hours.get(key, 0.0) + f.hours

    return [
        MonthlyActivity(
            month=key,
            flights=counts.get(key, 0),
            hours=round(hours[key], 1) if hours.get(key) else None,
        )
        for key in sorted(counts)
    ]


def classify_activity_trend(monthly_counts: Sequence[float]) -> ActivityTrend:
    """
    Compare the mean of the second half of the series with the first.

    Fewer than three months is always stable.
    """
    if len(monthly_counts) < MIN_TREND_MONTHS:
        return ActivityTrend.STABLE

    counts = np.asarray(monthly_counts, dtype=float)
    half = len(counts) // 2
    first_mean = float(np.mean(counts[:half]))
    second_mean = float(np.mean(counts[half:]))

    change = (second_mean - first_mean) / max(1.0, first_mean)
    if change > TREND_CHANGE_THRESHOLD:
        return ActivityTrend.INCREASING
    if change < -TREND_CHANGE_THRESHOLD:
        return ActivityTrend.DECLINING
    return ActivityTrend.STABLE


def find_downtime_periods(sorted_flights: Sequence[FlightRecord]) -> List[DowntimePeriod]:
    """Gaps of 30+ days between consecutive flights, longest first, top 5."""
    gaps = []
    for prev, curr in zip(sorted_flights, sorted_flights[1:]):
        days = (curr.date - prev.date).days
        if days >= DOWNTIME_MIN_DAYS:
            gaps.append(DowntimePeriod(start_date=prev.date, end_date=curr.date, days=days))
    gaps.sort(key=lambda g: g.days, reverse=True)
    return gaps[:MAX_DOWNTIME_PERIODS]


def detect_seasonal_pattern(monthly: Sequence[MonthlyActivity]) -> Optional[str]:
    """
    Winter- or summer-heavy activity, by average flights per calendar month.

    Returns None without six months of data or without two months in
    each season.
    """
    if len(monthly) < MIN_SEASONAL_MONTHS:
        return None

    by_calendar_month: Dict[int, List[int]] = {}
    for m in monthly:
        by_calendar_month.setdefault(int(m.month[5:7]), []).append(m.flights)
    avg_by_month = {k: float(np.mean(v)) for k, v in by_calendar_month.items()}

    winter = [avg_by_month[m] for m in WINTER_MONTHS if m in avg_by_month]
    summer = [avg_by_month[m] for m in SUMMER_MONTHS if m in avg_by_month]
    if len(winter) < MIN_MONTHS_PER_SEASON or len(summer) < MIN_MONTHS_PER_SEASON:
        return None

    winter_avg = float(np.mean(winter))
    summer_avg = float(np.mean(summer))
    if winter_avg > 0 and winter_avg >= summer_avg * SEASONAL_RATIO:
        return 'Winter-heavy (snowbird pattern)'
    if summer_avg > 0 and summer_avg >= winter_avg * SEASONAL_RATIO:
        return 'Summer-heavy'
    return 'No strong seasonal pattern'


def detect_charter_likelihood(
    total_flights: int,
    unique_airports: int,
    route_repetition_score: int,
) -> CharterLikelihood:
    if total_flights < 5:
        return CharterLikelihood.LOW
    if unique_airports > total_flights * 0.6 and route_repetition_score < 30:
        return CharterLikelihood.HIGH
    if unique_airports > total_flights * 0.4 and route_repetition_score < 50:
        return CharterLikelihood.MEDIUM
    return CharterLikelihood.LOW


def detect_pre_sale_signals(
    trend: ActivityTrend,
    downtimes: Sequence[DowntimePeriod],
    monthly: Sequence[MonthlyActivity],
    avg_per_month: float,
    latest_month_idle: bool = False,
) -> List[str]:
    signals = []

    if trend == ActivityTrend.DECLINING:
        signals.append('Activity trend is declining - possible reduced owner interest')

    extended = next((d for d in downtimes if d.days >= EXTENDED_DOWNTIME_DAYS), None)
    if extended is not None:
        signals.append(f'Extended downtime of {extended.days} days detected')

    if len(monthly) >= 3 and avg_per_month > 2:
        recent_avg = sum(m.flights for m in monthly[-3:]) / 3
        if recent_avg < avg_per_month * 0.5:
            signals.append('Recent 3-month activity well below average - possible pre-listing phase')

    if latest_month_idle:
        signals.append('Zero flights in most recent month')

    return signals


def _is_international(f: FlightRecord) -> bool:
    # ICAO codes share their first letter within a region
    return bool(f.origin and f.destination) and f.origin[0] != f.destination[0]


def analyze_flights(flights: Sequence[FlightRecord], as_of: Optional[date] = None) -> FlightIntelligence:
    """
    Analyze flight records.

    Args:
        flights: Records in any order
        as_of: Reference date; a month after the last flight with no
            activity yields the zero-flights signal

    Returns:
        FlightIntelligence; an all-zero result for no flights
    """
    if not flights:
        return FlightIntelligence()

    ordered = sorted(flights, key=lambda f: f.date)
    total = len(ordered)

    hours = np.array([f.hours for f in ordered if f.hours is not None], dtype=np.float64)
    total_hours = round(float(np.sum(hours)), 1) if hours.size else None
    avg_hours = round(total_hours / hours.size, 1) if hours.size else None

    airport_counts: Counter = Counter()
    route_counts: Counter = Counter()
    for f in ordered:
        if f.origin:
            airport_counts[f.origin] += 1
        if f.destination:
            airport_counts[f.destination] += 1
        if f.route_key:
            route_counts[f.route_key] += 1

    primary_base = airport_counts.most_common(1)[0][0] if airport_counts else None
    top_routes = [RouteCount(route=r, count=c) for r, c in route_counts.most_common(TOP_ROUTES)]
    route_repetition = round(sum(r.count for r in top_routes) / total * 100)

    monthly = monthly_breakdown(ordered)
    trend = classify_activity_trend([m.flights for m in monthly])

    span_days = (ordered[-1].date - ordered[0].date).days
    avg_per_month = round(total / max(1.0, span_days / DAYS_PER_MONTH), 1)

    latest_month_idle = as_of is not None and _month_key(as_of) > monthly[-1].month

    international = sum(1 for f in ordered if _is_international(f))
    downtimes = find_downtime_periods(ordered)

    intel = FlightIntelligence(
        total_flights=total,
        total_hours=total_hours,
        avg_flights_per_month=avg_per_month,
        avg_hours_per_flight=avg_hours,
        unique_airports=len(airport_counts),
        primary_base_airport=primary_base,
        top_routes=top_routes,
        monthly_breakdown=monthly,
        activity_trend_slope=trend,
        route_repetition_score=route_repetition,
        international_ratio=round(international / total, 2),
        downtime_periods=downtimes,
        seasonal_pattern=detect_seasonal_pattern(monthly),
        charter_likelihood=detect_charter_likelihood(total, len(airport_counts), route_repetition),
        pre_sale_signals=detect_pre_sale_signals(trend, downtimes, monthly, avg_per_month, latest_month_idle),
    )

    logger.debug(
        f'Analyzed {total} flights: trend={trend.value}, '
        f'{len(downtimes)} downtime periods, {len(intel.pre_sale_signals)} pre-sale signals'
    )
    return intel
