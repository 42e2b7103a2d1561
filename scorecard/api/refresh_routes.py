"""Scorecard — Refresh Routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from scorecard.api.deps import (
    ProviderFactory,
    build_engine,
    get_provider_factory,
    get_registry,
    load_brand,
)
from scorecard.core.dates import normalize_range, resolve_period
from scorecard.core.logging import get_logger
from scorecard.core.metric_registry import MetricRegistry
from scorecard.database import get_session
from scorecard.engine.refresh import refresh_metrics
from scorecard.models.api_models import RefreshRequest, RefreshResponse
from scorecard.models.scorecard_models import ScorecardMetric

logger = get_logger("api.refresh")

router = APIRouter(prefix="/scorecard", tags=["Scorecard"])


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    request: RefreshRequest,
    session: Session = Depends(get_session),
    registry: MetricRegistry = Depends(get_registry),
    provider_factory: ProviderFactory = Depends(get_provider_factory),
):
    """Recompute and store scorecard metrics of a brand for one period."""
    brand = load_brand(session, request.brand_id)

    query = select(ScorecardMetric).where(ScorecardMetric.brand_id == brand.id)
    if request.metric_ids is not None:
        query = query.where(ScorecardMetric.id.in_(request.metric_ids))  # type: ignore
    metrics = session.exec(query).all()
    if not metrics:
        raise HTTPException(status_code=400, detail="No metrics to refresh")

    if request.date_range:
        try:
            period_start, period_end = normalize_range(
                request.date_range.start, request.date_range.end
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid date range: {e}")
    else:
        period_start, period_end = resolve_period(request.preset)

    provider = provider_factory(brand)
    try:
        results = await refresh_metrics(
            build_engine(session, provider, registry),
            session,
            brand.id,
            metrics,
            period_start,
            period_end,
        )
    finally:
        await provider.close()

    return RefreshResponse(
        period_start=period_start, period_end=period_end, results=results
    )
