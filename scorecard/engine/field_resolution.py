"""Scorecard — Insight Record Field Resolution.

The only place where a provider value is coerced to a number. Everything
here returns a finite float and never raises: a missing or malformed field
reads as ``0.0`` so that period totals are always defined.
"""

import math
import re
from typing import Any, Dict

from scorecard.core.metric_registry import ActionListField, MetricFieldDescriptor

# Leading decimal number, as accepted by JavaScript's parseFloat
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def safe_float(value: Any) -> float:
    """Parse a provider value into a finite float, falling back to 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return 0.0
        number = float(match.group(1))
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _find_action_value(entries: Any, action_type: str) -> float:
    if not isinstance(entries, list):
        return 0.0
    for entry in entries:
        if isinstance(entry, dict) and entry.get("action_type") == action_type:
            return safe_float(entry.get("value"))
    return 0.0


def extract_value(descriptor: MetricFieldDescriptor, record: Dict[str, Any]) -> float:
    """Resolve one metric from one daily insight record."""
    source = descriptor.source
    if isinstance(source, ActionListField):
        return _find_action_value(record.get(source.field), source.action_type)
    raw = record.get(source.field)
    if isinstance(raw, list):
        # e.g. ``conversions`` arrives as one entry per conversion event
        return sum(
            safe_float(entry.get("value")) for entry in raw if isinstance(entry, dict)
        )
    return safe_float(raw)
