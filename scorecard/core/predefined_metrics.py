"""Scorecard — Predefined Metric Catalogue.

Starter metrics offered when a brand sets up its scorecard. Formula keys
must exist in the metric registry.
"""

from typing import Any, Dict, List


def _metric(key: str) -> List[Dict[str, str]]:
    return [{"type": "metric", "value": key}]


def _ratio(numerator: str, denominator: str) -> List[Dict[str, str]]:
    return [
        {"type": "metric", "value": numerator},
        {"type": "operator", "value": "/"},
        {"type": "metric", "value": denominator},
    ]


PREDEFINED_METRICS: List[Dict[str, Any]] = [
    # Core performance
    {
        "metric_key": "purchase_roas",
        "display_name": "Purchase ROAS",
        "description": "Return on ad spend from all purchase sources",
        "metric_type": "calculated",
        "formula": _ratio("purchase_value", "spend"),
        "decimal_places": 2,
        "goal_operator": "gte",
    },
    {
        "metric_key": "purchase_value",
        "display_name": "Purchase Value",
        "description": "Total value from all purchase sources",
        "metric_type": "meta_api",
        "formula": _metric("purchase_value"),
        "is_currency": True,
        "decimal_places": 2,
        "goal_operator": "gte",
    },
    {
        "metric_key": "revenue",
        "display_name": "Revenue",
        "description": "Total revenue from all purchase sources",
        "metric_type": "meta_api",
        "formula": _metric("revenue"),
        "is_currency": True,
        "decimal_places": 2,
        "goal_operator": "gte",
    },
    {
        "metric_key": "spend",
        "display_name": "Ad Spend",
        "description": "Total amount spent on ads",
        "metric_type": "meta_api",
        "formula": _metric("spend"),
        "is_currency": True,
        "decimal_places": 2,
        "goal_operator": "lte",
    },
    {
        "metric_key": "purchases",
        "display_name": "Purchases",
        "description": "Total number of purchases",
        "metric_type": "meta_api",
        "formula": _metric("purchases"),
        "decimal_places": 0,
        "goal_operator": "gte",
    },
    {
        "metric_key": "cost_per_purchase",
        "display_name": "Cost per Purchase",
        "description": "Average cost for each purchase",
        "metric_type": "calculated",
        "formula": _ratio("spend", "purchases"),
        "is_currency": True,
        "decimal_places": 2,
        "goal_operator": "lte",
    },
    # Engagement
    {
        "metric_key": "ctr",
        "display_name": "CTR (All)",
        "description": "Click-through rate for all clicks",
        "metric_type": "meta_api",
        "formula": _metric("ctr") + [
            {"type": "operator", "value": "*"},
            {"type": "number", "value": "100"},
        ],
        "is_percentage": True,
        "decimal_places": 2,
        "goal_operator": "gte",
    },
    {
        "metric_key": "link_ctr",
        "display_name": "Link CTR",
        "description": "Click-through rate for link clicks only",
        "metric_type": "calculated",
        "formula": _ratio("link_clicks", "impressions")
        + [
            {"type": "operator", "value": "*"},
            {"type": "number", "value": "100"},
        ],
        "is_percentage": True,
        "decimal_places": 2,
        "goal_operator": "gte",
    },
    {
        "metric_key": "cpm",
        "display_name": "CPM",
        "description": "Cost per 1,000 impressions",
        "metric_type": "meta_api",
        "formula": _metric("cpm"),
        "is_currency": True,
        "decimal_places": 2,
        "goal_operator": "lte",
    },
    {
        "metric_key": "cpc",
        "display_name": "CPC (All)",
        "description": "Cost per click (all clicks)",
        "metric_type": "meta_api",
        "formula": _metric("cpc"),
        "is_currency": True,
        "decimal_places": 2,
        "goal_operator": "lte",
    },
]
