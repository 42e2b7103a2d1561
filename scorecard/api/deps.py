"""Scorecard — Shared Route Dependencies."""

from typing import Callable

from fastapi import HTTPException
from sqlmodel import Session

from scorecard.config import settings
from scorecard.connectors.meta.client import MetaClient
from scorecard.connectors.meta.endpoints import MetaEndpoints
from scorecard.core.metric_registry import MetricRegistry, default_registry
from scorecard.engine.insights import MetaInsightsEngine
from scorecard.models.scorecard_models import Brand
from scorecard.storage.day_cache import SqlDayCacheStore

ProviderFactory = Callable[[Brand], MetaEndpoints]

_registry = default_registry()


def get_registry() -> MetricRegistry:
    return _registry


def meta_provider_for(brand: Brand) -> MetaEndpoints:
    return MetaEndpoints(MetaClient(brand.meta_access_token, brand.meta_ad_account_id))


def get_provider_factory() -> ProviderFactory:
    """Dependency — builds the insights provider for a brand."""
    return meta_provider_for


def load_brand(session: Session, brand_id: str) -> Brand:
    """Fetch a brand that has Meta connected, or raise the matching HTTP error."""
    brand = session.get(Brand, brand_id)
    if brand is None:
        raise HTTPException(status_code=404, detail="Brand not found")
    if not brand.meta_access_token or not brand.meta_ad_account_id:
        raise HTTPException(
            status_code=400, detail="Meta integration not configured for this brand"
        )
    return brand


def build_engine(
    session: Session, provider: MetaEndpoints, registry: MetricRegistry
) -> MetaInsightsEngine:
    return MetaInsightsEngine(
        registry,
        SqlDayCacheStore(session),
        provider,
        horizon_days=settings.freshness_horizon_days,
        hash_includes_keys=settings.cache_hash_includes_metric_keys,
    )
