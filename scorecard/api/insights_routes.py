"""Scorecard — Meta Insights Routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from scorecard.api.deps import (
    ProviderFactory,
    build_engine,
    get_provider_factory,
    get_registry,
    load_brand,
)
from scorecard.connectors.meta.client import MetaAPIError, MetaAuthError, RECONNECT_MESSAGE
from scorecard.core.dates import parse_day
from scorecard.core.logging import get_logger
from scorecard.core.metric_registry import MetricRegistry
from scorecard.database import get_session
from scorecard.engine.insights import InvalidMetricRequest
from scorecard.models.api_models import MetaInsightsRequest, MetaInsightsResponse
from scorecard.models.scorecard_models import ScorecardDataPoint

logger = get_logger("api.insights")

router = APIRouter(prefix="/scorecard", tags=["Scorecard"])


@router.post("/meta-insights", response_model=MetaInsightsResponse)
async def meta_insights(
    request: MetaInsightsRequest,
    session: Session = Depends(get_session),
    registry: MetricRegistry = Depends(get_registry),
    provider_factory: ProviderFactory = Depends(get_provider_factory),
):
    """Aggregate Meta metrics for a brand over a date range.

    Days older than the freshness horizon are served from the day cache when
    complete; everything else is fetched from Meta in a single daily call.
    """
    brand = load_brand(session, request.brand_id)
    try:
        start = parse_day(request.date_range.start)
        end = parse_day(request.date_range.end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date range: {e}")

    provider = provider_factory(brand)
    engine = build_engine(session, provider, registry)
    try:
        result = await engine.aggregate(
            brand.id,
            request.metric_config_payload,
            request.base_meta_metric_keys,
            start,
            end,
        )
    except InvalidMetricRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MetaAuthError as e:
        logger.error(f"Meta auth failed: {e}", extra={"brand_id": brand.id})
        raise HTTPException(
            status_code=401,
            detail={"error": RECONNECT_MESSAGE, "details": e.details},
        )
    except MetaAPIError as e:
        raise HTTPException(
            status_code=e.status_code or 502,
            detail={"error": "Failed daily fetch from Meta API", "details": e.details},
        )
    finally:
        await provider.close()

    return MetaInsightsResponse(
        data=result.totals,
        dates_fetched=result.dates_fetched,
        metric_config_hash=result.metric_config_hash,
    )


@router.get("/meta-insights")
async def metric_data_points(
    metric_id: str = Query(..., description="Scorecard metric id"),
    session: Session = Depends(get_session),
):
    """Stored period values of a metric, newest period first."""
    points = session.exec(
        select(ScorecardDataPoint)
        .where(ScorecardDataPoint.metric_id == metric_id)
        .order_by(ScorecardDataPoint.period_start.desc())  # type: ignore
    ).all()

    return {
        "data": [
            {
                "metric_id": p.metric_id,
                "period_start": p.period_start,
                "period_end": p.period_end,
                "value": p.value,
            }
            for p in points
        ]
    }
