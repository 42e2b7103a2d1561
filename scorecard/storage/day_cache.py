"""Scorecard — Day Cache Store.

Durable per-day metric values keyed on
(brand_id, metric_config_hash, date, base_metric_key). The cache is best
effort: read failures surface as ``CacheReadError`` so the resolver can treat
the day as a miss, write failures are logged and dropped.
"""

from datetime import datetime, timezone
from typing import List, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from scorecard.models.cache_models import ScorecardMetaCache
from scorecard.core.logging import get_logger

logger = get_logger("storage.day_cache")


class CacheReadError(Exception):
    """Raised when cached rows for a day could not be read."""


class CacheRow:
    """One staged or cached (date, key, value) triple."""

    def __init__(
        self,
        brand_id: str,
        metric_config_hash: str,
        date: str,
        base_metric_key: str,
        value: float,
        fetched_at: datetime | None = None,
    ):
        self.brand_id = brand_id
        self.metric_config_hash = metric_config_hash
        self.date = date
        self.base_metric_key = base_metric_key
        self.value = value
        self.fetched_at = fetched_at or datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return f"<CacheRow {self.date} {self.base_metric_key}={self.value}>"


class DayCacheStore(Protocol):
    def read_day(
        self,
        brand_id: str,
        metric_config_hash: str,
        date: str,
        keys: Sequence[str],
    ) -> List[CacheRow]: ...

    def upsert(self, rows: Sequence[CacheRow]) -> int: ...


class SqlDayCacheStore:
    """Day cache backed by the ``scorecard_meta_cache`` table."""

    def __init__(self, session: Session):
        self.session = session

    def read_day(
        self,
        brand_id: str,
        metric_config_hash: str,
        date: str,
        keys: Sequence[str],
    ) -> List[CacheRow]:
        try:
            rows = self.session.exec(
                select(ScorecardMetaCache).where(
                    ScorecardMetaCache.brand_id == brand_id,
                    ScorecardMetaCache.metric_config_hash == metric_config_hash,
                    ScorecardMetaCache.date == date,
                    ScorecardMetaCache.base_metric_key.in_(list(keys)),  # type: ignore
                )
            ).all()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise CacheReadError(str(e)) from e

        return [
            CacheRow(
                r.brand_id,
                r.metric_config_hash,
                r.date,
                r.base_metric_key,
                r.value,
                r.fetched_at,
            )
            for r in rows
        ]

    def upsert(self, rows: Sequence[CacheRow]) -> int:
        """Insert or replace rows on the natural key. Returns rows written."""
        if not rows:
            return 0
        try:
            for row in rows:
                existing = self.session.exec(
                    select(ScorecardMetaCache).where(
                        ScorecardMetaCache.brand_id == row.brand_id,
                        ScorecardMetaCache.metric_config_hash
                        == row.metric_config_hash,
                        ScorecardMetaCache.date == row.date,
                        ScorecardMetaCache.base_metric_key == row.base_metric_key,
                    )
                ).first()

                if existing:
                    existing.value = row.value
                    existing.fetched_at = row.fetched_at
                    self.session.add(existing)
                else:
                    self.session.add(
                        ScorecardMetaCache(
                            brand_id=row.brand_id,
                            metric_config_hash=row.metric_config_hash,
                            date=row.date,
                            base_metric_key=row.base_metric_key,
                            value=row.value,
                            fetched_at=row.fetched_at,
                        )
                    )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(f"Cache upsert failed for {len(rows)} rows: {e}")
            return 0

        logger.info(f"Cached {len(rows)} daily metric values")
        return len(rows)
