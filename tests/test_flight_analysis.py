"""Tests for flight activity analysis."""

from datetime import date

from jetintel.analytics.flight_analysis import (
    ActivityTrend,
    CharterLikelihood,
    FlightIntelligence,
    MonthlyActivity,
    analyze_flights,
    classify_activity_trend,
    detect_charter_likelihood,
    detect_seasonal_pattern,
    find_downtime_periods,
    monthly_breakdown,
)
from jetintel.models.flight import FlightRecord


def flight(d: str, origin: str = 'KTEB', destination: str = 'KPBI', hours=None) -> FlightRecord:
    return FlightRecord(date=date.fromisoformat(d), origin=origin, destination=destination, hours=hours)


def monthly_series(flights_by_month):
    return [
        MonthlyActivity(month=f'2023-{m:02d}', flights=n)
        for m, n in flights_by_month
    ]


class TestActivityTrend:
    """Tests for monthly trend classification."""

    def test_declining(self):
        """Second-half mean 4 against first-half mean 10 is a drop over 15%."""
        assert classify_activity_trend([10, 10, 10, 10, 1, 1]) == ActivityTrend.DECLINING

    def test_increasing(self):
        assert classify_activity_trend([2, 2, 2, 6, 6, 6]) == ActivityTrend.INCREASING

    def test_small_change_is_stable(self):
        assert classify_activity_trend([10, 10, 10, 11, 11, 11]) == ActivityTrend.STABLE

    def test_fewer_than_three_months_is_stable(self):
        assert classify_activity_trend([20, 0]) == ActivityTrend.STABLE


class TestDowntime:
    """Tests for gaps between consecutive flights."""

    def test_reports_exact_gap(self):
        """2023-01-01 to 2023-03-15 is 73 days."""
        gaps = find_downtime_periods([flight('2023-01-01'), flight('2023-03-15')])

        assert len(gaps) == 1
        assert gaps[0].days == 73
        assert gaps[0].start_date == date(2023, 1, 1)
        assert gaps[0].end_date == date(2023, 3, 15)

    def test_short_gaps_ignored(self):
        assert find_downtime_periods([flight('2023-01-01'), flight('2023-01-30')]) == []

    def test_thirty_days_counts(self):
        assert find_downtime_periods([flight('2023-01-01'), flight('2023-01-31')])[0].days == 30

    def test_longest_first_top_five(self):
        dates = ['2020-01-01', '2020-03-01', '2020-07-01', '2020-08-15',
                 '2020-10-01', '2021-06-01', '2021-08-01', '2021-09-10']
        gaps = find_downtime_periods([flight(d) for d in dates])

        assert len(gaps) == 5
        assert gaps[0].start_date == date(2020, 10, 1)
        assert [g.days for g in gaps] == sorted((g.days for g in gaps), reverse=True)


class TestMonthlyBreakdown:
    """Tests for calendar month buckets."""

    def test_only_months_with_flights(self):
        months = monthly_breakdown([flight('2023-03-20'), flight('2023-01-05'), flight('2023-03-21')])

        assert [(m.month, m.flights) for m in months] == [('2023-01', 1), ('2023-03', 2)]

    def test_spans_years_in_order(self):
        months = monthly_breakdown([flight('2024-02-01'), flight('2023-11-05')])

        assert [m.month for m in months] == ['2023-11', '2024-02']

    def test_hours_summed_per_month(self):
        months = monthly_breakdown([flight('2023-01-05', hours=1.5), flight('2023-01-09', hours=2.25)])

        assert months[0].hours == 3.8


class TestSeasonality:
    """Tests for winter/summer detection."""

    def test_winter_heavy(self):
        counts = [(m, 10 if m in (11, 12, 1, 2, 3) else 2) for m in range(1, 13)]
        assert detect_seasonal_pattern(monthly_series(counts)) == 'Winter-heavy (snowbird pattern)'

    def test_summer_heavy(self):
        counts = [(m, 9 if m in (5, 6, 7, 8, 9) else 3) for m in range(1, 13)]
        assert detect_seasonal_pattern(monthly_series(counts)) == 'Summer-heavy'

    def test_even_activity(self):
        counts = [(m, 5) for m in range(1, 13)]
        assert detect_seasonal_pattern(monthly_series(counts)) == 'No strong seasonal pattern'

    def test_needs_six_months(self):
        counts = [(m, 10) for m in range(1, 6)]
        assert detect_seasonal_pattern(monthly_series(counts)) is None

    def test_no_flights_is_not_seasonal(self):
        counts = [(m, 0) for m in range(1, 13)]
        assert detect_seasonal_pattern(monthly_series(counts)) == 'No strong seasonal pattern'


class TestCharterLikelihood:
    """Tests for airport diversity thresholds."""

    def test_few_flights_is_low(self):
        assert detect_charter_likelihood(4, 8, 0) == CharterLikelihood.LOW

    def test_high(self):
        assert detect_charter_likelihood(20, 13, 25) == CharterLikelihood.HIGH

    def test_medium(self):
        assert detect_charter_likelihood(20, 9, 45) == CharterLikelihood.MEDIUM

    def test_repetitive_routes_are_low(self):
        assert detect_charter_likelihood(20, 13, 80) == CharterLikelihood.LOW


class TestAnalyzeFlights:
    """Tests for the full analysis."""

    def test_no_flights(self):
        assert analyze_flights([]) == FlightIntelligence()

    def test_routes_and_base(self):
        """Routes are unordered pairs; the busiest airport is the base."""
        flights = [
            flight('2024-01-02', 'KTEB', 'KPBI'),
            flight('2024-01-09', 'KPBI', 'KTEB'),
            flight('2024-01-20', 'KTEB', 'KBOS'),
            flight('2024-02-01', 'KBOS', 'KTEB'),
            flight('2024-02-10', 'KTEB', 'EGLL'),
        ]

        intel = analyze_flights(flights)

        assert intel.total_flights == 5
        assert intel.primary_base_airport == 'KTEB'
        assert intel.top_routes[0].route in ('KPBI-KTEB', 'KBOS-KTEB')
        assert intel.top_routes[0].count == 2
        assert intel.unique_airports == 4
        assert intel.international_ratio == 0.2
        assert intel.route_repetition_score == 100

    def test_downtime_and_presale_signal(self):
        intel = analyze_flights([flight('2023-03-15'), flight('2023-01-01')])

        assert intel.downtime_periods[0].days == 73
        assert 'Extended downtime of 73 days detected' in intel.pre_sale_signals

    def test_recent_inactivity_with_as_of(self):
        """Idle months after the last flight flag the latest month without padding the trend."""
        flights = [flight(f'2023-{m:02d}-{d:02d}') for m in range(1, 7) for d in (3, 10, 17, 24)]

        intel = analyze_flights(flights, as_of=date(2023, 12, 15))

        assert len(intel.monthly_breakdown) == 6
        assert intel.activity_trend_slope == ActivityTrend.STABLE
        assert intel.pre_sale_signals == ['Zero flights in most recent month']

    def test_as_of_in_last_flight_month(self):
        intel = analyze_flights([flight('2023-05-02'), flight('2023-06-03')], as_of=date(2023, 6, 20))

        assert 'Zero flights in most recent month' not in intel.pre_sale_signals

    def test_sparse_months_are_not_declining(self):
        """One flight in January and one in March is two buckets, so stable."""
        intel = analyze_flights([flight('2024-01-10'), flight('2024-03-10')])

        assert [(m.month, m.flights) for m in intel.monthly_breakdown] == [('2024-01', 1), ('2024-03', 1)]
        assert intel.activity_trend_slope == ActivityTrend.STABLE
        assert intel.pre_sale_signals == ['Extended downtime of 60 days detected']

    def test_hours(self):
        intel = analyze_flights([
            flight('2024-01-02', hours=2.0),
            flight('2024-01-05', hours=3.0),
            flight('2024-01-08'),
        ])

        assert intel.total_hours == 5.0
        assert intel.avg_hours_per_flight == 2.5

    def test_deterministic(self):
        flights = [flight('2024-01-02'), flight('2024-03-05', 'KPBI', 'KTEB'), flight('2024-06-01')]
        assert analyze_flights(flights) == analyze_flights(list(reversed(flights)))

    def test_to_dict_is_json_ready(self):
        intel = analyze_flights([flight('2023-01-01'), flight('2023-03-15')])

        data = intel.to_dict()

        assert data['activity_trend_slope'] == 'stable'
        assert data['charter_likelihood'] == 'low'
        assert data['downtime_periods'][0] == {'start_date': '2023-01-01', 'end_date': '2023-03-15', 'days': 73}
