# Duration lookup cache - normalized procedure name -> effect duration (months)
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from status_rules import normalize_text

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 10 * 60

DurationMap = Dict[str, float]
DurationFetcher = Callable[[], Awaitable[Iterable]]


def _row_value(row, name: str):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def build_duration_map(rows: Iterable) -> DurationMap:
    """Map catalog rows ({name, effectDurationMonths}) by normalized name. Missing durations become 0."""
    duration_map: DurationMap = {}
    for row in rows:
        key = normalize_text(_row_value(row, "name") or "")
        if key:
            duration_map[key] = _row_value(row, "effectDurationMonths") or 0
    return duration_map


class DurationCache:
    """
    Holds at most one duration map with its load timestamp.

    The owner (the app, or a test) passes the instance around; the clock is
    injectable so expiry can be driven deterministically. Concurrent misses
    are not deduplicated.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._map: Optional[DurationMap] = None
        self._loaded_at: float = 0.0

    async def get_map(self, fetcher: DurationFetcher) -> DurationMap:
        """Return the cached map, refetching once when empty or older than the TTL."""
        now = self._clock()
        if self._map is not None and now - self._loaded_at < self.ttl_seconds:
            logger.debug("Duration cache hit (%d entries)", len(self._map))
            return self._map

        try:
            rows = await fetcher()
        except Exception:
            logger.exception("Duration catalog fetch failed")
            raise

        self._map = build_duration_map(rows)
        self._loaded_at = now
        logger.info("Duration cache refreshed with %d entries", len(self._map))
        return self._map

    def invalidate(self) -> None:
        self._map = None
        self._loaded_at = 0.0


def apply_durations(procedures: Iterable, duration_map: DurationMap) -> List:
    """Copies of the procedure records with effectDurationMonths joined from the map by normalized name."""
    joined = []
    for proc in procedures:
        duration = duration_map.get(normalize_text(proc.procedureName))
        joined.append(replace(proc, effectDurationMonths=duration))
    return joined
