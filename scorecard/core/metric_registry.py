"""Scorecard — Meta Metric Field Registry.

Maps scorecard metric keys to where their value lives in a Meta insights
record. A key is either a flat field (``spend``) or an entry inside an
action list (``actions`` / ``action_values`` / ``purchase_roas``), and may
declare the numerator/denominator pair it must be re-derived from when a
period is aggregated.

The registry is handed to the insights engine at construction time, so a
host application (or a test) can swap in its own table.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Union


class DirectField:
    """Metric read from a flat numeric-string field of the record."""

    def __init__(self, field: str):
        self.field = field

    def __repr__(self) -> str:
        return f"<DirectField {self.field}>"


class ActionListField:
    """Metric read from a ``[{action_type, value}]`` list field of the record."""

    def __init__(self, field: str, action_type: str):
        self.field = field
        self.action_type = action_type

    def __repr__(self) -> str:
        return f"<ActionListField {self.field}:{self.action_type}>"


FieldSource = Union[DirectField, ActionListField]


class MetricFieldDescriptor:
    """Static configuration for one metric key."""

    def __init__(
        self,
        key: str,
        source: FieldSource,
        components_for_average: Optional[Sequence[str]] = None,
        ratio_multiplier: float = 1.0,
    ):
        if components_for_average is not None and len(components_for_average) != 2:
            raise ValueError(
                f"{key}: components_for_average must be [numerator, denominator]"
            )
        self.key = key
        self.source = source
        self.components_for_average = (
            tuple(components_for_average) if components_for_average else None
        )
        self.ratio_multiplier = ratio_multiplier

    @property
    def provider_field(self) -> str:
        return self.source.field

    @property
    def is_standard_metric(self) -> bool:
        return isinstance(self.source, DirectField)

    @property
    def is_ratio(self) -> bool:
        return self.components_for_average is not None

    def __repr__(self) -> str:
        return f"<MetricField {self.key} ← {self.source!r}>"


class MetricRegistry:
    """Lookup table of metric descriptors keyed by metric key."""

    def __init__(self, descriptors: Iterable[MetricFieldDescriptor]):
        self._descriptors: Dict[str, MetricFieldDescriptor] = {
            d.key: d for d in descriptors
        }

    def __contains__(self, key: str) -> bool:
        return key in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, key: str) -> MetricFieldDescriptor | None:
        return self._descriptors.get(key)

    def keys(self) -> List[str]:
        return list(self._descriptors)

    def resolve_base_keys(self, requested: Iterable[str]) -> List[str]:
        """Return the known requested keys plus every component they depend on.

        Order is first-seen, components following the key that needs them.
        Unknown keys are dropped; callers report them as zero.
        """
        resolved: List[str] = []

        def visit(key: str) -> None:
            descriptor = self._descriptors.get(key)
            if descriptor is None or key in resolved:
                return
            resolved.append(key)
            for component in descriptor.components_for_average or ():
                visit(component)

        for key in requested:
            visit(key)
        return resolved

    def provider_fields(self, keys: Iterable[str]) -> List[str]:
        """Distinct Meta field names needed to resolve the given keys."""
        fields: List[str] = []
        for key in keys:
            descriptor = self._descriptors.get(key)
            if descriptor and descriptor.provider_field not in fields:
                fields.append(descriptor.provider_field)
        return fields


# ─────────────────────────────────────────────
# META FIELDS — Default Registry
# ─────────────────────────────────────────────

OMNI_PURCHASE = "omni_purchase"

DEFAULT_META_FIELDS: List[MetricFieldDescriptor] = [
    # Volume & cost
    MetricFieldDescriptor("spend", DirectField("spend")),
    MetricFieldDescriptor("impressions", DirectField("impressions")),
    MetricFieldDescriptor("clicks", DirectField("clicks")),
    MetricFieldDescriptor("link_clicks", DirectField("inline_link_clicks")),
    MetricFieldDescriptor(
        "unique_link_clicks", DirectField("unique_inline_link_clicks")
    ),
    MetricFieldDescriptor("reach", DirectField("reach")),
    MetricFieldDescriptor("frequency", DirectField("frequency")),
    # Rates, re-derived from summed components
    MetricFieldDescriptor(
        "cpc", DirectField("cpc"), components_for_average=["spend", "clicks"]
    ),
    MetricFieldDescriptor(
        "cpm",
        DirectField("cpm"),
        components_for_average=["spend", "impressions"],
        ratio_multiplier=1000.0,
    ),
    MetricFieldDescriptor(
        "ctr", DirectField("ctr"), components_for_average=["clicks", "impressions"]
    ),
    MetricFieldDescriptor(
        "cost_per_unique_link_click",
        DirectField("cost_per_unique_inline_link_click"),
        components_for_average=["spend", "unique_link_clicks"],
    ),
    MetricFieldDescriptor(
        "purchase_roas",
        ActionListField("purchase_roas", OMNI_PURCHASE),
        components_for_average=["revenue", "spend"],
    ),
    # Purchases
    MetricFieldDescriptor("revenue", ActionListField("action_values", OMNI_PURCHASE)),
    MetricFieldDescriptor(
        "purchase_value", ActionListField("action_values", OMNI_PURCHASE)
    ),
    MetricFieldDescriptor("purchases", ActionListField("actions", OMNI_PURCHASE)),
    MetricFieldDescriptor("conversions", DirectField("conversions")),
    # Video
    MetricFieldDescriptor(
        "video_thruplay_watched_actions",
        ActionListField("video_thruplay_watched_actions", "video_view"),
    ),
    MetricFieldDescriptor(
        "video_3s_watched_actions", ActionListField("actions", "video_view")
    ),
]


def default_registry() -> MetricRegistry:
    """Build a fresh registry from the default Meta field table."""
    return MetricRegistry(DEFAULT_META_FIELDS)
