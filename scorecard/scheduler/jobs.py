"""Scorecard — Scheduler Jobs.

APScheduler nightly job that refreshes every saved scorecard metric over
the last 7 complete days, so the day cache stays warm and data points exist
before anyone opens the scorecard.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import select

from scorecard.api.deps import build_engine, get_registry, meta_provider_for
from scorecard.config import settings
from scorecard.core.dates import resolve_period
from scorecard.database import get_session
from scorecard.engine.refresh import refresh_metrics
from scorecard.models.scorecard_models import Brand, ScorecardMetric
from scorecard.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def nightly_refresh_job(provider_factory=meta_provider_for, session=None):
    """Refresh all metrics of every Meta-connected brand for last_7d."""
    logger.info("Scheduled scorecard refresh starting...")
    session = session or next(get_session())
    period_start, period_end = resolve_period("last_7d")

    brands = session.exec(
        select(Brand).where(Brand.meta_access_token != "", Brand.meta_ad_account_id != "")
    ).all()

    refreshed = 0
    for brand in brands:
        metrics = session.exec(
            select(ScorecardMetric).where(ScorecardMetric.brand_id == brand.id)
        ).all()
        if not metrics:
            continue

        provider = provider_factory(brand)
        try:
            results = await refresh_metrics(
                build_engine(session, provider, get_registry()),
                session,
                brand.id,
                metrics,
                period_start,
                period_end,
            )
            refreshed += sum(1 for r in results if r.success)
        except Exception as e:
            logger.error(f"Scheduled refresh failed: {e}", extra={"brand_id": brand.id})
        finally:
            await provider.close()

    logger.info(f"Scheduled refresh complete. {refreshed} metrics updated")
    return refreshed


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        nightly_refresh_job,
        "cron",
        hour=settings.refresh_hour,
        minute=0,
        id="nightly_scorecard_refresh",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Nightly refresh at {settings.refresh_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
