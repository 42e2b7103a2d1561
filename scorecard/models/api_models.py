"""Scorecard — Request / Response Schemas."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from scorecard.engine.formula import FormulaToken

FilterOperator = Literal[
    "contains", "not_contains", "starts_with", "ends_with", "equals", "not_equals"
]
GoalOperator = Literal["gte", "gt", "lte", "lt", "eq"]


class NameFilter(BaseModel):
    """A campaign / ad set / ad name filter."""

    operator: FilterOperator = "contains"
    value: str = ""
    case_sensitive: bool = False
    """Kept for the metric editor. Graph API name filtering ignores case, so
    this neither reaches Meta nor affects the cache bucket."""


class MetricConfigPayload(BaseModel):
    """Filter configuration a metric is aggregated under."""

    campaign_name_filters: List[NameFilter] = []
    ad_set_name_filters: List[NameFilter] = []
    ad_name_filters: List[NameFilter] = []


class DateRange(BaseModel):
    start: str
    end: str


class MetaInsightsRequest(BaseModel):
    """Request body for POST /scorecard/meta-insights."""

    brand_id: str
    base_meta_metric_keys: List[str] = Field(min_length=1)
    metric_config_payload: MetricConfigPayload = MetricConfigPayload()
    date_range: DateRange

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "brand_id": "b9c1…",
                    "base_meta_metric_keys": ["spend", "impressions", "cpm"],
                    "metric_config_payload": {
                        "campaign_name_filters": [
                            {"operator": "contains", "value": "prospecting"}
                        ]
                    },
                    "date_range": {"start": "2026-09-01", "end": "2026-09-30"},
                }
            ]
        }
    }


class MetaInsightsResponse(BaseModel):
    """Aggregated period totals for the requested keys."""

    success: bool = True
    data: Dict[str, float]
    dates_fetched: List[str] = []
    metric_config_hash: str = ""


class RefreshRequest(BaseModel):
    """Request body for POST /scorecard/refresh."""

    brand_id: str
    metric_ids: Optional[List[str]] = None
    """Metrics to refresh; all metrics of the brand when omitted."""
    date_range: Optional[DateRange] = None
    preset: Optional[str] = None
    """One of: "yesterday", "last_7d", "last_14d", "last_30d", "this_month"."""


class RefreshResult(BaseModel):
    metric_id: str
    success: bool
    value: Optional[float] = None
    status: str = "none"
    error: Optional[str] = None


class RefreshResponse(BaseModel):
    success: bool = True
    period_start: str
    period_end: str
    results: List[RefreshResult]


class MetricUpsertRequest(BaseModel):
    """Request body for POST /scorecard/metrics."""

    id: Optional[str] = None
    brand_id: str
    metric_key: str
    display_name: str
    description: str = ""
    metric_type: Literal["meta_api", "calculated"] = "meta_api"
    formula: List[FormulaToken] = []
    campaign_name_filters: List[NameFilter] = []
    ad_set_name_filters: List[NameFilter] = []
    ad_name_filters: List[NameFilter] = []
    goal_value: Optional[float] = None
    goal_operator: Optional[GoalOperator] = None
    is_percentage: bool = False
    is_currency: bool = False
    decimal_places: int = 2


class MetricOut(MetricUpsertRequest):
    id: str
