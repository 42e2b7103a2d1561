"""Scorecard — Per-Day Cache Resolver.

Splits a requested date range into days served from the day cache and days
that must be fetched from Meta. Days inside the freshness horizon are always
fetched because Meta keeps revising them (attribution windows, late
conversions). Older days are served from cache only when every requested key
has a cached numeric value; a partial hit refetches the whole day.
"""

from datetime import date, timedelta
from typing import Dict, List, Sequence

from scorecard.core.dates import dates_in_range, format_day
from scorecard.core.logging import get_logger
from scorecard.storage.day_cache import CacheReadError, DayCacheStore

logger = get_logger("engine.cache_resolver")

DailyValueStore = Dict[str, Dict[str, float]]


class CacheResolution:
    """Outcome of resolving a range against the day cache."""

    def __init__(self, daily_store: DailyValueStore, dates_to_fetch: List[str]):
        self.daily_store = daily_store
        self.dates_to_fetch = dates_to_fetch

    @property
    def dates(self) -> List[str]:
        return list(self.daily_store)

    @property
    def cached_dates(self) -> List[str]:
        pending = set(self.dates_to_fetch)
        return [d for d in self.daily_store if d not in pending]


def freshness_horizon(today: date, horizon_days: int) -> date:
    return today - timedelta(days=horizon_days)


def resolve_cached_days(
    store: DayCacheStore,
    brand_id: str,
    metric_config_hash: str,
    start: date,
    end: date,
    keys: Sequence[str],
    today: date,
    horizon_days: int = 7,
) -> CacheResolution:
    """Build the daily store for [start, end] and list the days to fetch."""
    horizon = freshness_horizon(today, horizon_days)
    horizon_str = format_day(horizon)

    daily_store: DailyValueStore = {}
    dates_to_fetch: List[str] = []

    for day in dates_in_range(start, end):
        daily_store[day] = {}

        # ISO day strings order the same way as the dates they name
        if day >= horizon_str:
            if day not in dates_to_fetch:
                dates_to_fetch.append(day)
            continue

        try:
            rows = store.read_day(brand_id, metric_config_hash, day, keys)
        except CacheReadError as e:
            logger.warning(f"Cache read error for {day}: {e}", extra={"brand_id": brand_id})
            rows = []

        cached = {
            r.base_metric_key: r.value
            for r in rows
            if isinstance(r.value, (int, float)) and not isinstance(r.value, bool)
        }
        complete = len(rows) >= len(keys) and all(k in cached for k in keys)

        if complete:
            for key in keys:
                daily_store[day][key] = float(cached[key])
        elif day not in dates_to_fetch:
            dates_to_fetch.append(day)

    dates_to_fetch.sort()
    logger.info(
        f"Resolved {len(daily_store)} days: {len(daily_store) - len(dates_to_fetch)} cached, "
        f"{len(dates_to_fetch)} to fetch",
        extra={"brand_id": brand_id},
    )
    return CacheResolution(daily_store, dates_to_fetch)
