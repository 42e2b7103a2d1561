"""Scorecard — Meta Name Filters & Config Hashing.

Translates scorecard name filters into the Graph API ``filtering`` expression
and derives the cache bucket (``metric_config_hash``) a configuration maps to.
"""

import hashlib
import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from scorecard.models.api_models import MetricConfigPayload, NameFilter

OPERATOR_MAP = {
    "contains": "CONTAIN",
    "not_contains": "NOT_CONTAIN",
    "starts_with": "STARTS_WITH",
    "ends_with": "ENDS_WITH",
    "equals": "EQUAL",
    "not_equals": "NOT_EQUAL",
}

# Only rows with delivery; Meta otherwise returns empty entity rows
BASE_FILTER: Dict[str, Any] = {
    "field": "impressions",
    "operator": "GREATER_THAN",
    "value": 0,
}


def _translate(filters: Iterable[NameFilter], field: str) -> List[Dict[str, Any]]:
    return [
        {"field": field, "operator": OPERATOR_MAP[f.operator], "value": f.value}
        for f in filters
        if f.value.strip()
    ]


def build_level_and_filters(
    config: MetricConfigPayload,
) -> Tuple[str, List[Dict[str, Any]]]:
    """Pick the insights level and filtering expression for a configuration.

    The most specific filtered level wins: ad, then ad set, then campaign.
    """
    level = "account"
    name_filters: List[Dict[str, Any]] = []

    if _translate(config.ad_name_filters, "ad.name"):
        level = "ad"
        name_filters = _translate(config.ad_name_filters, "ad.name")
    elif _translate(config.ad_set_name_filters, "adset.name"):
        level = "adset"
        name_filters = _translate(config.ad_set_name_filters, "adset.name")
    elif _translate(config.campaign_name_filters, "campaign.name"):
        level = "campaign"
        name_filters = _translate(config.campaign_name_filters, "campaign.name")

    return level, [dict(BASE_FILTER), *name_filters]


def _canonical(filters: Iterable[NameFilter]) -> List[Dict[str, Any]]:
    # Only what is sent to Meta identifies the bucket
    dumped = [f.model_dump(include={"operator", "value"}) for f in filters]
    return sorted(dumped, key=lambda f: json.dumps(f, sort_keys=True))


def metric_config_hash(
    config: MetricConfigPayload, metric_keys: Optional[Iterable[str]] = None
) -> str:
    """Stable md5 of the filter configuration, optionally with the metric keys.

    Filter order does not affect the hash, nor does key order.
    """
    relevant: Dict[str, Any] = {
        "campaign": _canonical(config.campaign_name_filters),
        "adset": _canonical(config.ad_set_name_filters),
        "ad": _canonical(config.ad_name_filters),
    }
    if metric_keys is not None:
        relevant["keys"] = sorted(set(metric_keys))
    stringified = json.dumps(relevant, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(stringified.encode("utf-8")).hexdigest()
