"""Scorecard — Period Aggregation Engine.

Sums daily values over the full period, then re-derives rate metrics (CPC,
CPM, CTR, ROAS) from their summed numerator and denominator. A 30-day CTR is
total clicks / total impressions, never the mean of 30 daily CTRs.
"""

from typing import Dict, List, Mapping, Sequence

from scorecard.core.metric_registry import MetricRegistry
from scorecard.core.logging import get_logger

logger = get_logger("engine.aggregator")


def ratio_value(numerator: float, denominator: float, multiplier: float = 1.0) -> float:
    """numerator / denominator × multiplier, or 0 for a non-positive denominator."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator * multiplier


def aggregate_period_totals(
    daily_store: Mapping[str, Mapping[str, float]],
    dates: Sequence[str],
    keys: Sequence[str],
    registry: MetricRegistry,
) -> Dict[str, float]:
    """Collapse the daily store for ``dates`` into one value per key."""
    totals: Dict[str, float] = {key: 0.0 for key in keys}
    # key → (numerator series, denominator series), one entry per day
    component_series: Dict[str, tuple[List[float], List[float]]] = {}

    for day in dates:
        values = daily_store.get(day) or {}
        for key in keys:
            totals[key] += values.get(key) or 0.0

            descriptor = registry.get(key)
            if descriptor and descriptor.components_for_average:
                num_key, den_key = descriptor.components_for_average
                nums, dens = component_series.setdefault(key, ([], []))
                nums.append(values.get(num_key) or 0.0)
                dens.append(values.get(den_key) or 0.0)

    # Only valid once every day has been visited
    for key, (nums, dens) in component_series.items():
        descriptor = registry.get(key)
        totals[key] = ratio_value(sum(nums), sum(dens), descriptor.ratio_multiplier)

    logger.debug(f"Aggregated {len(keys)} keys over {len(dates)} days")
    return totals


def derive_daily_ratios(values: Dict[str, float], registry: MetricRegistry) -> None:
    """Recompute ratio keys of one day in place from that day's components."""
    for key in list(values):
        descriptor = registry.get(key)
        if descriptor and descriptor.components_for_average:
            num_key, den_key = descriptor.components_for_average
            values[key] = ratio_value(
                values.get(num_key, 0.0),
                values.get(den_key, 0.0),
                descriptor.ratio_multiplier,
            )
