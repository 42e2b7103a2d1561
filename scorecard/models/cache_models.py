"""Scorecard — Per-Day Meta Metric Cache Model."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class ScorecardMetaCache(SQLModel, table=True):
    """One cached daily value of one base metric.

    Unique constraint on (brand_id, metric_config_hash, date, base_metric_key)
    makes re-fetching a day an in-place update rather than a new row.
    """

    __tablename__ = "scorecard_meta_cache"
    __table_args__ = (
        UniqueConstraint(
            "brand_id",
            "metric_config_hash",
            "date",
            "base_metric_key",
            name="uq_scorecard_meta_cache",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    brand_id: str = Field(index=True)
    metric_config_hash: str = Field(
        index=True, description="md5 of the filter configuration"
    )
    date: str = Field(index=True, description="YYYY-MM-DD (UTC)")
    base_metric_key: str = Field(index=True, description="Key from metric registry")
    value: float = Field(default=0.0)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
