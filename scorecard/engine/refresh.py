"""Scorecard — Metric Refresh.

Recomputes saved scorecard metrics for one period: each metric's formula
names the base keys to aggregate, the insights engine produces period totals
under the metric's own filters, and the formula result is stored as the
metric's data point for that period.

A failing metric is reported in its result and never aborts the batch.
"""

from datetime import datetime, timezone
from typing import List, Sequence

from sqlmodel import Session, select

from scorecard.connectors.meta.client import MetaAPIError, MetaAuthError, RECONNECT_MESSAGE
from scorecard.core.dates import normalize_range
from scorecard.core.logging import get_logger
from scorecard.engine.formula import evaluate_formula, formula_metric_keys
from scorecard.engine.insights import MetaInsightsEngine
from scorecard.engine.status import metric_status
from scorecard.models.api_models import MetricConfigPayload, RefreshResult
from scorecard.models.scorecard_models import ScorecardDataPoint, ScorecardMetric

logger = get_logger("engine.refresh")


def store_data_point(
    session: Session, metric_id: str, period_start: str, period_end: str, value: float
) -> ScorecardDataPoint:
    """Upsert the value of a metric for a period."""
    existing = session.exec(
        select(ScorecardDataPoint).where(
            ScorecardDataPoint.metric_id == metric_id,
            ScorecardDataPoint.period_start == period_start,
            ScorecardDataPoint.period_end == period_end,
        )
    ).first()

    if existing:
        existing.value = value
        existing.updated_at = datetime.now(timezone.utc)
        point = existing
    else:
        point = ScorecardDataPoint(
            metric_id=metric_id,
            period_start=period_start,
            period_end=period_end,
            value=value,
        )
    session.add(point)
    session.commit()
    return point


async def refresh_metric(
    engine: MetaInsightsEngine,
    session: Session,
    brand_id: str,
    metric: ScorecardMetric,
    period_start: str,
    period_end: str,
) -> RefreshResult:
    formula = metric.formula
    base_keys = formula_metric_keys(formula)
    if not base_keys:
        return RefreshResult(
            metric_id=metric.id,
            success=False,
            error="No base metrics found in formula",
        )

    config = MetricConfigPayload.model_validate(metric.filters_payload())
    result = await engine.aggregate(
        brand_id, config, base_keys, period_start, period_end
    )
    value = evaluate_formula(formula, result.totals)
    store_data_point(session, metric.id, period_start, period_end, value)

    return RefreshResult(
        metric_id=metric.id,
        success=True,
        value=value,
        status=metric_status(value, metric.goal_value, metric.goal_operator),
    )


async def refresh_metrics(
    engine: MetaInsightsEngine,
    session: Session,
    brand_id: str,
    metrics: Sequence[ScorecardMetric],
    period_start: str,
    period_end: str,
) -> List[RefreshResult]:
    """Refresh every metric for [period_start, period_end].

    Bounds are normalised to ``YYYY-MM-DD`` first so one period always maps
    to one stored data point. Unparsable bounds raise ValueError.
    """
    period_start, period_end = normalize_range(period_start, period_end)
    results: List[RefreshResult] = []

    for metric in metrics:
        try:
            results.append(
                await refresh_metric(
                    engine, session, brand_id, metric, period_start, period_end
                )
            )
        except MetaAuthError as e:
            logger.error(
                f"Meta authentication failed: {e}",
                extra={"brand_id": brand_id, "metric_id": metric.id},
            )
            results.append(
                RefreshResult(metric_id=metric.id, success=False, error=RECONNECT_MESSAGE)
            )
        except MetaAPIError as e:
            logger.error(
                f"Meta fetch failed for {metric.metric_key}: {e}",
                extra={"brand_id": brand_id, "metric_id": metric.id},
            )
            results.append(
                RefreshResult(
                    metric_id=metric.id,
                    success=False,
                    error=f"Failed to fetch Meta data: {e}",
                )
            )
        except Exception as e:
            logger.error(
                f"Refresh failed for {metric.metric_key}: {e}",
                extra={"brand_id": brand_id, "metric_id": metric.id},
            )
            results.append(
                RefreshResult(metric_id=metric.id, success=False, error=str(e))
            )

    succeeded = sum(1 for r in results if r.success)
    logger.info(
        f"Refreshed {succeeded}/{len(results)} metrics ({period_start} → {period_end})",
        extra={"brand_id": brand_id},
    )
    return results
