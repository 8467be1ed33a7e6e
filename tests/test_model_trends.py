"""Tests for model market trend normalization and cached fetches."""

import pytest

from jetintel.cache import MarketTrendCache
from jetintel.errors import UpstreamHTTPError
from jetintel.services.model_trends import (
    classify_trend,
    fetch_model_trends,
    market_heat_label,
    normalize_model_trends,
)

from conftest import FakeResponse


def series(*values, key='value'):
    return [{key: v} for v in values]


HOT_MARKET = {
    'responsestatus': 'SUCCESS',
    'markettrendsresult': {
        'inventorycount': series(20, 20, 20, 10, 10, 10),
        'avgdaysonmarket': series(200, 200, 200, 90, 90, 90, key='days'),
        'avgaskingprice': series(10.0, 10.0, 10.0, 12.0, 12.0, 12.0),
        'transactioncount': series(4, 4, 4, 8, 8, 8, key='count'),
    },
}


class TestClassifyTrend:
    """Tests for series direction."""

    def test_rising(self):
        assert classify_trend([10, 10, 10, 10, 12, 12, 12], 'Up', 'Flat', 'Down') == 'Up'

    def test_falling(self):
        assert classify_trend([10, 10, 10, 10, 8, 8, 8], 'Up', 'Flat', 'Down') == 'Down'

    def test_within_five_percent_is_flat(self):
        assert classify_trend([100, 100, 104, 104, 104], 'Up', 'Flat', 'Down') == 'Flat'

    def test_short_series_compares_against_first_point(self):
        assert classify_trend([10, 20], 'Up', 'Flat', 'Down') == 'Up'

    @pytest.mark.parametrize('values', [None, [], [5], [0, 0, 0, 3, 3, 3]])
    def test_degenerate_series_is_flat(self, values):
        assert classify_trend(values, 'Up', 'Flat', 'Down') == 'Flat'


class TestNormalizeModelTrends:
    """Tests for payload normalization."""

    def test_hot_market(self):
        signals = normalize_model_trends(42, HOT_MARKET)

        assert signals.model_id == 42
        assert signals.inventory_trend == 'Decreasing'
        assert signals.dom_trend == 'Improving'
        assert signals.asking_price_trend == 'Rising'
        assert signals.transaction_velocity_trend == 'Increasing'
        assert signals.avg_days_on_market == 145
        assert signals.market_heat_score == 1.0
        assert signals.market_heat_label == 'Strong'

    def test_worsening_days_on_market(self):
        payload = {'avgdaysonmarket': series(100, 100, 100, 150, 150, 150)}

        signals = normalize_model_trends(7, payload)

        assert signals.dom_trend == 'Worsening'
        assert signals.market_heat_score == 0.4

    def test_empty_payload_is_neutral(self):
        signals = normalize_model_trends(7, {})

        assert signals.avg_days_on_market is None
        assert signals.inventory_trend == 'Stable'
        assert signals.asking_price_trend == 'Flat'
        assert signals.market_heat_score == 0.5
        assert signals.market_heat_label == 'Moderate'

    def test_cold_market_clamped_at_zero(self):
        payload = {'result': {
            'inventory': series(10, 10, 10, 20, 20, 20),
            'daysonmarket': series(300, 300, 300, 400, 400, 400),
            'askingprice': series(10, 10, 10, 8, 8, 8),
            'transactions': series(8, 8, 8, 4, 4, 4),
        }}

        signals = normalize_model_trends(7, payload)

        assert signals.market_heat_score == 0.0
        assert signals.market_heat_label == 'Weak'

    @pytest.mark.parametrize('score,label', [(0.65, 'Strong'), (0.64, 'Moderate'), (0.4, 'Moderate'), (0.39, 'Weak')])
    def test_heat_labels(self, score, label):
        assert market_heat_label(score) == label


class TestFetchModelTrends:
    """Tests for cached fetching through the client."""

    def test_second_call_served_from_cache(self, client, http, session, clock):
        http.add('GET', '/api/Aircraft/getMarketTrends/42/api-1', HOT_MARKET)
        cache = MarketTrendCache(ttl_seconds=3600, clock=clock, coalesce=False)

        first = fetch_model_trends(42, session, client, cache)
        second = fetch_model_trends(42, session, client, cache)

        assert second is first
        assert len(http.calls) == 1

        clock.advance(3601)
        fetch_model_trends(42, session, client, cache)
        assert len(http.calls) == 2

    def test_upstream_failure_propagates_and_is_not_cached(self, client, http, session, clock):
        http.add('GET', '/getMarketTrends/42/', FakeResponse(None, status_code=500, reason='Server Error'), HOT_MARKET)
        cache = MarketTrendCache(ttl_seconds=3600, clock=clock, coalesce=False)

        with pytest.raises(UpstreamHTTPError):
            fetch_model_trends(42, session, client, cache)

        assert fetch_model_trends(42, session, client, cache).model_id == 42
        assert cache.stats['fetches'] == 2
