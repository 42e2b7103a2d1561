"""Scorecard — Brand, Metric Definition & Data Point Models."""

import json
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field, UniqueConstraint

from scorecard.engine.formula import FormulaToken


def _new_id() -> str:
    return str(uuid4())


class Brand(SQLModel, table=True):
    """A brand with its connected Meta ad account."""

    __tablename__ = "brands"

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(default="")
    meta_access_token: str = Field(default="")
    meta_ad_account_id: str = Field(default="")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScorecardMetric(SQLModel, table=True):
    """A user-defined scorecard metric.

    The formula and name filters are stored as JSON text, like the other
    document-shaped columns in this service.
    """

    __tablename__ = "scorecard_metrics"

    id: str = Field(default_factory=_new_id, primary_key=True)
    brand_id: str = Field(index=True)
    metric_key: str = Field(description="Stable key, e.g. purchase_roas")
    display_name: str = Field(default="")
    description: str = Field(default="")
    metric_type: str = Field(default="meta_api", description="meta_api | calculated")
    formula_json: str = Field(default="[]")
    campaign_name_filters_json: str = Field(default="[]")
    ad_set_name_filters_json: str = Field(default="[]")
    ad_name_filters_json: str = Field(default="[]")
    goal_value: Optional[float] = Field(default=None)
    goal_operator: Optional[str] = Field(default=None, description="gte|gt|lte|lt|eq")
    is_percentage: bool = Field(default=False)
    is_currency: bool = Field(default=False)
    decimal_places: int = Field(default=2)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def formula(self) -> List[FormulaToken]:
        return [FormulaToken.model_validate(t) for t in json.loads(self.formula_json)]

    def filters_payload(self) -> dict:
        """Name filters in the shape accepted by the insights engine."""
        return {
            "campaign_name_filters": json.loads(self.campaign_name_filters_json),
            "ad_set_name_filters": json.loads(self.ad_set_name_filters_json),
            "ad_name_filters": json.loads(self.ad_name_filters_json),
        }


class ScorecardDataPoint(SQLModel, table=True):
    """Computed value of a metric for one period."""

    __tablename__ = "scorecard_data"
    __table_args__ = (
        UniqueConstraint(
            "metric_id", "period_start", "period_end", name="uq_scorecard_data"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    metric_id: str = Field(index=True)
    period_start: str = Field(description="YYYY-MM-DD")
    period_end: str = Field(description="YYYY-MM-DD")
    value: float = Field(default=0.0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
