"""
In-memory cache for model-level market trend signals.

Model trends change slowly and are shared by every aircraft of a model,
so one upstream fetch per model id is reused for a day by default.

- Entries hold the signals plus an absolute expiry timestamp
- Entries are replaced wholesale, never partially updated
- Expiry is a transparent refetch, not an error
- Thread-safe: check-then-set under an RLock

Concurrent misses for the same model id may each fetch and the last
write wins. With coalescing enabled, concurrent misses wait on the one
in-flight fetch instead.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from jetintel.config import config
from jetintel.models.aircraft import ModelTrendSignals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    signals: ModelTrendSignals
    expires_at: float


class MarketTrendCache:
    """
    Thread-safe TTL cache of ModelTrendSignals keyed by model id.
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        coalesce: Optional[bool] = None,
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.cache.model_trend_ttl_seconds
        self.coalesce = config.cache.coalesce_misses if coalesce is None else coalesce
        self.clock = clock

        self._entries: Dict[int, CacheEntry] = {}
        self._in_flight: Dict[int, threading.Event] = {}
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0
        self._fetches = 0

    def get(self, model_id: int) -> Optional[ModelTrendSignals]:
        """
        Get cached signals for a model.

        Returns None if not cached or expired; expired entries are dropped.
        """
        with self._lock:
            entry = self._entries.get(model_id)
            if entry is not None:
                if self.clock() < entry.expires_at:
                    self._hits += 1
                    return entry.signals
                del self._entries[model_id]
            self._misses += 1
        return None

    def put(self, model_id: int, signals: ModelTrendSignals) -> None:
        entry = CacheEntry(signals=signals, expires_at=self.clock() + self.ttl_seconds)
        with self._lock:
            self._entries[model_id] = entry

    def get_or_fetch(
        self,
        model_id: int,
        fetch: Callable[[], ModelTrendSignals],
    ) -> ModelTrendSignals:
        """
        Return cached signals, fetching (and caching) on a miss.

        Exceptions from fetch propagate and nothing is cached.
        """
        while True:
            cached = self.get(model_id)
            if cached is not None:
                logger.debug(f'Model trend cache hit for model {model_id}')
                return cached

            if not self.coalesce:
                return self._fetch_and_store(model_id, fetch)

            with self._lock:
                waiter = self._in_flight.get(model_id)
                if waiter is None:
                    done = threading.Event()
                    self._in_flight[model_id] = done

            if waiter is not None:
                # Another caller is fetching; re-check once it settles
                waiter.wait()
                continue

            try:
                return self._fetch_and_store(model_id, fetch)
            finally:
                with self._lock:
                    self._in_flight.pop(model_id, None)
                done.set()

    def _fetch_and_store(
        self,
        model_id: int,
        fetch: Callable[[], ModelTrendSignals],
    ) -> ModelTrendSignals:
        logger.debug(f'Model trend cache miss for model {model_id}, fetching')
        with self._lock:
            self._fetches += 1
        signals = fetch()
        self.put(model_id, signals)
        return signals

    def invalidate(self, model_id: int) -> None:
        """Remove specific entry from cache."""
        with self._lock:
            self._entries.pop(model_id, None)

    def clear(self) -> None:
        """Clear entire cache."""
        with self._lock:
            self._entries.clear()

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'entries': len(self._entries),
                'hits': self._hits,
                'misses': self._misses,
                'fetches': self._fetches,
                'hit_rate': self._hits / lookups if lookups > 0 else 0,
            }


# Singleton instance
model_trend_cache = MarketTrendCache()
