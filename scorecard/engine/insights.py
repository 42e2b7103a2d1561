"""Scorecard — Meta Insights Engine.

Runs the cache-aware aggregation flow for one request:
  resolve keys → cache lookup per day → one Meta fetch for the missing span
  → merge + cache upsert → period aggregation

The engine holds no state between requests; durability lives in the day
cache store.
"""

import time
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence

from scorecard.connectors.meta.filters import build_level_and_filters, metric_config_hash
from scorecard.core.dates import parse_day, today_utc
from scorecard.core.logging import get_logger
from scorecard.core.metric_registry import MetricRegistry
from scorecard.engine.aggregator import aggregate_period_totals, derive_daily_ratios
from scorecard.engine.cache_resolver import DailyValueStore, resolve_cached_days
from scorecard.engine.field_resolution import extract_value
from scorecard.models.api_models import MetricConfigPayload
from scorecard.storage.day_cache import CacheRow, DayCacheStore

logger = get_logger("engine.insights")


class InvalidMetricRequest(ValueError):
    """None of the requested metric keys can be fetched."""


class InsightsProvider(Protocol):
    async def fetch_daily_insights(
        self,
        fields: Sequence[str],
        level: str,
        since: str,
        until: str,
        filtering: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]: ...


class InsightsResult:
    """Aggregated totals plus the per-day data they were built from."""

    def __init__(
        self,
        totals: Dict[str, float],
        daily: DailyValueStore,
        dates_fetched: List[str],
        metric_config_hash: str,
    ):
        self.totals = totals
        self.daily = daily
        self.dates_fetched = dates_fetched
        self.metric_config_hash = metric_config_hash


class MetaInsightsEngine:
    """Cache-aware daily insights aggregation for scorecard metrics."""

    def __init__(
        self,
        registry: MetricRegistry,
        cache_store: DayCacheStore,
        provider: InsightsProvider,
        horizon_days: int = 7,
        today: Optional[date] = None,
        hash_includes_keys: bool = True,
    ):
        self.registry = registry
        self.cache_store = cache_store
        self.provider = provider
        self.horizon_days = horizon_days
        self._today = today
        self.hash_includes_keys = hash_includes_keys

    @property
    def today(self) -> date:
        return self._today or today_utc()

    async def aggregate(
        self,
        brand_id: str,
        config: MetricConfigPayload,
        requested_keys: Sequence[str],
        start: str | date,
        end: str | date,
    ) -> InsightsResult:
        started = time.monotonic()
        keys = self.registry.resolve_base_keys(requested_keys)
        if not keys:
            raise InvalidMetricRequest(
                f"No valid Meta fields to fetch for {list(requested_keys)}"
            )

        config_hash = metric_config_hash(
            config, keys if self.hash_includes_keys else None
        )
        resolution = resolve_cached_days(
            self.cache_store,
            brand_id,
            config_hash,
            parse_day(start),
            parse_day(end),
            keys,
            today=self.today,
            horizon_days=self.horizon_days,
        )
        daily = resolution.daily_store

        if resolution.dates_to_fetch:
            staged = await self._fetch_and_merge(
                brand_id, config_hash, config, keys, daily, resolution.dates_to_fetch
            )
            self.cache_store.upsert(staged)

        aggregated = aggregate_period_totals(daily, resolution.dates, keys, self.registry)
        totals = {key: aggregated.get(key, 0.0) for key in requested_keys}
        for key in keys:
            totals.setdefault(key, aggregated[key])

        logger.info(
            f"Aggregated {len(keys)} keys over {len(daily)} days "
            f"({len(resolution.dates_to_fetch)} fetched)",
            extra={
                "brand_id": brand_id,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return InsightsResult(totals, daily, resolution.dates_to_fetch, config_hash)

    async def _fetch_and_merge(
        self,
        brand_id: str,
        config_hash: str,
        config: MetricConfigPayload,
        keys: List[str],
        daily: DailyValueStore,
        dates_to_fetch: List[str],
    ) -> List[CacheRow]:
        """Fetch the span covering every missing day and fold it into ``daily``."""
        level, filtering = build_level_and_filters(config)
        since, until = dates_to_fetch[0], dates_to_fetch[-1]

        records = await self.provider.fetch_daily_insights(
            self.registry.provider_fields(keys), level, since, until, filtering
        )

        # Entity levels return one row per campaign/ad set/ad per day
        fetched: Dict[str, Dict[str, float]] = defaultdict(
            lambda: {key: 0.0 for key in keys}
        )
        for record in records:
            day = record.get("date_start")
            if not day or day not in daily:
                continue
            values = fetched[day]
            for key in keys:
                values[key] += extract_value(self.registry.get(key), record)

        fetched_at = datetime.now(timezone.utc)
        staged: List[CacheRow] = []
        for day in sorted(fetched):
            values = fetched[day]
            derive_daily_ratios(values, self.registry)
            daily[day] = values
            staged.extend(
                CacheRow(brand_id, config_hash, day, key, values[key], fetched_at)
                for key in keys
            )
        return staged
