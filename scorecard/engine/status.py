"""Scorecard — Goal Status."""

from typing import Optional

AT_RISK_TOLERANCE_PCT = 20.0


def metric_status(
    current: float, goal: Optional[float], operator: Optional[str]
) -> str:
    """Classify a value against its goal: on_track, at_risk, off_track or none."""
    if not goal or not operator:
        return "none"

    if operator == "gt":
        on_track = current > goal
    elif operator == "lte":
        on_track = current <= goal
    elif operator == "lt":
        on_track = current < goal
    elif operator == "eq":
        on_track = current == goal
    else:
        on_track = current >= goal

    if on_track:
        return "on_track"

    pct_off = abs((current - goal) / goal) * 100
    return "off_track" if pct_off > AT_RISK_TOLERANCE_PCT else "at_risk"
