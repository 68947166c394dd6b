"""
Time-bounded read-through cache.

Keys are natural identifiers such as ``fighter_stats:<name>``,
``market_analysis:<event>:<model>`` and ``odds:mma``. Concurrent writers
for the same key are allowed to race; the last write wins.

Usage:
    cache = TTLCache(default_ttl=3600)

    report = cache.get(key)
    if report is None:
        report = build_report()
        cache.set(key, report, ttl=3600)
"""

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def fighter_stats_key(name: str) -> str:
    return f"fighter_stats:{name.strip().lower()}"


def market_analysis_key(event: str, model: str) -> str:
    return f"market_analysis:{event}:{model}"


ODDS_KEY = "odds:mma"


class TTLCache:
    """In-memory key/value cache with per-entry expiry on a monotonic clock."""

    def __init__(self, default_ttl: float = 3600, max_entries: int = 5000,
                 clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self.misses += 1
            logger.debug(f"Cache entry expired: {key}")
            return None

        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            self._entries.pop(key, None)
            return

        if key not in self._entries and len(self._entries) >= self.max_entries:
            self.purge_expired()
            if len(self._entries) >= self.max_entries:
                # Evict the entry closest to expiry
                oldest = min(self._entries, key=lambda k: self._entries[k][1])
                del self._entries[oldest]

        self._entries[key] = (value, self._clock() + ttl)

    def invalidate(self, key: str):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]],
                          ttl: Optional[float] = None) -> Any:
        """Return the cached value or await loader() and cache a non-None result"""
        value = self.get(key)
        if value is not None:
            return value

        value = await loader()
        if value is not None:
            self.set(key, value, ttl)
        return value

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
