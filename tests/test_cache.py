"""Tests for the model market trend cache."""

import threading
import time

import pytest

from jetintel.cache import MarketTrendCache
from jetintel.models.aircraft import ModelTrendSignals

TTL = 24 * 60 * 60


def signals(model_id: int = 42, heat: float = 0.6) -> ModelTrendSignals:
    return ModelTrendSignals(
        model_id=model_id,
        avg_days_on_market=150,
        inventory_trend='Stable',
        dom_trend='Stable',
        asking_price_trend='Flat',
        transaction_velocity_trend='Stable',
        market_heat_score=heat,
        market_heat_label='Moderate',
    )


class CountingFetch:
    """Fetch callable that records how often it ran."""

    def __init__(self, model_id: int = 42):
        self.model_id = model_id
        self.calls = 0

    def __call__(self) -> ModelTrendSignals:
        self.calls += 1
        return signals(self.model_id)


@pytest.fixture
def cache(clock):
    return MarketTrendCache(ttl_seconds=TTL, clock=clock, coalesce=False)


class TestMarketTrendCache:
    """Tests for TTL semantics."""

    def test_first_call_fetches_second_is_cached(self, cache):
        """Within the TTL the same object is returned without refetching."""
        fetch = CountingFetch()

        first = cache.get_or_fetch(42, fetch)
        second = cache.get_or_fetch(42, fetch)

        assert fetch.calls == 1
        assert second is first

    def test_expiry_triggers_exactly_one_refetch(self, cache, clock):
        fetch = CountingFetch()
        cache.get_or_fetch(42, fetch)

        clock.advance(TTL + 1)
        cache.get_or_fetch(42, fetch)
        cache.get_or_fetch(42, fetch)

        assert fetch.calls == 2
        assert cache.stats['fetches'] == 2

    def test_entry_valid_until_expiry(self, cache, clock):
        cache.put(42, signals())

        clock.advance(TTL - 1)
        assert cache.get(42) is not None

        clock.advance(1)
        assert cache.get(42) is None
        assert cache.stats['entries'] == 0

    def test_models_cached_independently(self, cache):
        fetch_a = CountingFetch(42)
        fetch_b = CountingFetch(77)

        assert cache.get_or_fetch(42, fetch_a).model_id == 42
        assert cache.get_or_fetch(77, fetch_b).model_id == 77
        assert (fetch_a.calls, fetch_b.calls) == (1, 1)

    def test_failed_fetch_caches_nothing(self, cache):
        """Fetch errors propagate; the next call fetches again."""
        def broken():
            raise RuntimeError('upstream down')

        with pytest.raises(RuntimeError):
            cache.get_or_fetch(42, broken)

        fetch = CountingFetch()
        cache.get_or_fetch(42, fetch)
        assert fetch.calls == 1

    def test_put_replaces_entry_wholesale(self, cache):
        cache.put(42, signals(heat=0.3))
        cache.put(42, signals(heat=0.9))

        assert cache.get(42).market_heat_score == 0.9

    def test_invalidate_and_clear(self, cache):
        cache.put(42, signals(42))
        cache.put(77, signals(77))

        cache.invalidate(42)
        assert cache.get(42) is None
        assert cache.get(77) is not None

        cache.clear()
        assert cache.stats['entries'] == 0

    def test_stats(self, cache):
        fetch = CountingFetch()
        cache.get_or_fetch(42, fetch)
        cache.get_or_fetch(42, fetch)

        stats = cache.stats
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5


class TestCoalescing:
    """Tests for concurrent misses."""

    def test_concurrent_misses_share_one_fetch(self):
        """With coalescing on, waiters reuse the in-flight fetch."""
        cache = MarketTrendCache(ttl_seconds=TTL, coalesce=True)
        gate = threading.Event()
        calls = []

        def slow_fetch():
            calls.append(1)
            gate.wait(2)
            return signals()

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.get_or_fetch(42, slow_fetch)))
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        time.sleep(0.05)
        gate.set()
        for t in threads:
            t.join(5)

        assert len(calls) == 1
        assert len(results) == 5
        assert all(r is results[0] for r in results)

    def test_concurrent_misses_without_coalescing_never_corrupt(self):
        """Racing fetches may each run; the cache holds one complete entry."""
        cache = MarketTrendCache(ttl_seconds=TTL, coalesce=False)

        threads = [
            threading.Thread(target=cache.get_or_fetch, args=(42, CountingFetch()))
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)

        cached = cache.get(42)
        assert cached is not None
        assert cached.model_id == 42
        assert cache.stats['entries'] == 1
