"""Scorecard — Metric Definition Routes."""

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from scorecard.core.logging import get_logger
from scorecard.core.predefined_metrics import PREDEFINED_METRICS
from scorecard.database import get_session
from scorecard.models.api_models import MetricOut, MetricUpsertRequest
from scorecard.models.scorecard_models import ScorecardDataPoint, ScorecardMetric

logger = get_logger("api.metrics")

router = APIRouter(prefix="/scorecard/metrics", tags=["Scorecard Metrics"])


def _to_out(metric: ScorecardMetric) -> MetricOut:
    return MetricOut(
        id=metric.id,
        brand_id=metric.brand_id,
        metric_key=metric.metric_key,
        display_name=metric.display_name,
        description=metric.description,
        metric_type=metric.metric_type,
        formula=metric.formula,
        **metric.filters_payload(),
        goal_value=metric.goal_value,
        goal_operator=metric.goal_operator,
        is_percentage=metric.is_percentage,
        is_currency=metric.is_currency,
        decimal_places=metric.decimal_places,
    )


def _dump_list(items: list) -> str:
    return json.dumps([item.model_dump() for item in items])


@router.get("/predefined")
async def predefined_metrics():
    """Starter metric catalogue."""
    return {"metrics": PREDEFINED_METRICS}


@router.get("", response_model=list[MetricOut])
async def list_metrics(
    brand_id: str = Query(...),
    session: Session = Depends(get_session),
):
    metrics = session.exec(
        select(ScorecardMetric).where(ScorecardMetric.brand_id == brand_id)
    ).all()
    return [_to_out(m) for m in metrics]


@router.post("", response_model=MetricOut, status_code=201)
async def upsert_metric(
    request: MetricUpsertRequest,
    session: Session = Depends(get_session),
):
    """Create a metric, or replace it when ``id`` names an existing one."""
    metric = session.get(ScorecardMetric, request.id) if request.id else None
    if metric is None:
        metric = ScorecardMetric(brand_id=request.brand_id, metric_key=request.metric_key)
        if request.id:
            metric.id = request.id

    metric.brand_id = request.brand_id
    metric.metric_key = request.metric_key
    metric.display_name = request.display_name
    metric.description = request.description
    metric.metric_type = request.metric_type
    metric.formula_json = _dump_list(request.formula)
    metric.campaign_name_filters_json = _dump_list(request.campaign_name_filters)
    metric.ad_set_name_filters_json = _dump_list(request.ad_set_name_filters)
    metric.ad_name_filters_json = _dump_list(request.ad_name_filters)
    metric.goal_value = request.goal_value
    metric.goal_operator = request.goal_operator
    metric.is_percentage = request.is_percentage
    metric.is_currency = request.is_currency
    metric.decimal_places = request.decimal_places
    metric.updated_at = datetime.now(timezone.utc)

    session.add(metric)
    session.commit()
    session.refresh(metric)
    logger.info(f"Saved metric {metric.metric_key}", extra={"metric_id": metric.id})
    return _to_out(metric)


@router.delete("/{metric_id}")
async def delete_metric(metric_id: str, session: Session = Depends(get_session)):
    """Delete a metric and its stored data points."""
    metric = session.get(ScorecardMetric, metric_id)
    if metric is None:
        raise HTTPException(status_code=404, detail="Metric not found")

    points = session.exec(
        select(ScorecardDataPoint).where(ScorecardDataPoint.metric_id == metric_id)
    ).all()
    for point in points:
        session.delete(point)
    session.delete(metric)
    session.commit()
    return {"status": "success", "message": "Metric deleted successfully"}
