"""Tests for metric refresh and the nightly scheduler job."""

import json
import math

import pytest
from sqlmodel import select

from scorecard.connectors.meta.client import MetaAPIError, MetaAuthError, RECONNECT_MESSAGE
from scorecard.core.dates import dates_in_range, parse_day, resolve_period
from scorecard.engine.insights import MetaInsightsEngine
from scorecard.engine.refresh import refresh_metrics, store_data_point
from scorecard.models.scorecard_models import Brand, ScorecardDataPoint, ScorecardMetric
from scorecard.scheduler.jobs import nightly_refresh_job
from scorecard.storage.day_cache import SqlDayCacheStore
from conftest import TODAY, FakeInsightsProvider, make_record

START, END = "2026-09-01", "2026-09-02"


def tokens(*parts):
    kinds = {"+": "operator", "-": "operator", "*": "operator", "/": "operator"}
    out = []
    for part in parts:
        if part in kinds:
            out.append({"type": "operator", "value": part})
        elif part.replace(".", "", 1).isdigit():
            out.append({"type": "number", "value": part})
        else:
            out.append({"type": "metric", "value": part})
    return json.dumps(out)


def add_metric(session, brand_id, key, formula_json, **fields):
    metric = ScorecardMetric(
        brand_id=brand_id, metric_key=key, display_name=key, formula_json=formula_json, **fields
    )
    session.add(metric)
    session.commit()
    session.refresh(metric)
    return metric


def engine_for(session, registry, provider):
    return MetaInsightsEngine(registry, SqlDayCacheStore(session), provider, today=TODAY)


class CampaignLevelFails(FakeInsightsProvider):
    """Serves account-level requests, rejects campaign-level ones."""

    def __init__(self, records, error):
        super().__init__(records)
        self.campaign_error = error

    async def fetch_daily_insights(self, fields, level, since, until, filtering):
        if level == "campaign":
            raise self.campaign_error
        return await super().fetch_daily_insights(fields, level, since, until, filtering)


RECORDS = [
    make_record("2026-09-01", spend=100, clicks=40, impressions=4000),
    make_record("2026-09-02", spend=60, clicks=40, impressions=6000),
]


@pytest.mark.asyncio
async def test_formula_result_is_stored(db_session, registry):
    metric = add_metric(
        db_session, "brand-1", "ctr_pct", tokens("clicks", "/", "impressions", "*", "100")
    )
    provider = FakeInsightsProvider(RECORDS)

    results = await refresh_metrics(
        engine_for(db_session, registry, provider), db_session, "brand-1", [metric], START, END
    )

    assert results[0].success
    assert math.isclose(results[0].value, 0.8)
    point = db_session.exec(select(ScorecardDataPoint)).one()
    assert point.metric_id == metric.id
    assert (point.period_start, point.period_end) == (START, END)
    assert math.isclose(point.value, 0.8)


@pytest.mark.asyncio
async def test_refresh_updates_existing_point(db_session, registry):
    metric = add_metric(db_session, "brand-1", "spend", tokens("spend"))
    store_data_point(db_session, metric.id, START, END, 1.0)

    await refresh_metrics(
        engine_for(db_session, registry, FakeInsightsProvider(RECORDS)),
        db_session,
        "brand-1",
        [metric],
        START,
        END,
    )

    points = db_session.exec(select(ScorecardDataPoint)).all()
    assert len(points) == 1
    assert points[0].value == 160.0


@pytest.mark.asyncio
async def test_formula_without_metrics_fails(db_session, registry):
    metric = add_metric(db_session, "brand-1", "const", tokens("2", "+", "2"))
    provider = FakeInsightsProvider(RECORDS)

    results = await refresh_metrics(
        engine_for(db_session, registry, provider), db_session, "brand-1", [metric], START, END
    )

    assert not results[0].success
    assert results[0].error == "No base metrics found in formula"
    assert provider.calls == []


@pytest.mark.asyncio
async def test_auth_failure_reports_reconnect_and_batch_continues(db_session, registry):
    filters = json.dumps([{"operator": "contains", "value": "prospecting"}])
    failing = add_metric(
        db_session, "brand-1", "prospecting_spend", tokens("spend"),
        campaign_name_filters_json=filters,
    )
    working = add_metric(db_session, "brand-1", "spend", tokens("spend"))
    provider = CampaignLevelFails(RECORDS, MetaAuthError("expired", 400, 190))

    results = await refresh_metrics(
        engine_for(db_session, registry, provider),
        db_session,
        "brand-1",
        [failing, working],
        START,
        END,
    )

    assert results[0].success is False
    assert results[0].error == RECONNECT_MESSAGE
    assert results[1].success is True
    assert results[1].value == 160.0


@pytest.mark.asyncio
async def test_api_failure_is_reported(db_session, registry):
    metric = add_metric(db_session, "brand-1", "spend", tokens("spend"))
    provider = FakeInsightsProvider(error=MetaAPIError("Service unavailable", 503))

    results = await refresh_metrics(
        engine_for(db_session, registry, provider), db_session, "brand-1", [metric], START, END
    )

    assert results[0].error == "Failed to fetch Meta data: Service unavailable"
    assert db_session.exec(select(ScorecardDataPoint)).all() == []


@pytest.mark.asyncio
async def test_goal_status_is_reported(db_session, registry):
    metric = add_metric(
        db_session,
        "brand-1",
        "cpc",
        tokens("cpc"),
        goal_value=2.0,
        goal_operator="lte",
    )

    results = await refresh_metrics(
        engine_for(db_session, registry, FakeInsightsProvider(RECORDS)),
        db_session,
        "brand-1",
        [metric],
        START,
        END,
    )

    assert results[0].value == 2.0
    assert results[0].status == "on_track"


@pytest.mark.asyncio
async def test_nightly_job_refreshes_connected_brands(db_session):
    connected = Brand(name="Acme", meta_access_token="tok", meta_ad_account_id="123")
    disconnected = Brand(name="Dormant")
    db_session.add(connected)
    db_session.add(disconnected)
    db_session.commit()
    add_metric(db_session, connected.id, "spend", tokens("spend"))
    add_metric(db_session, disconnected.id, "spend", tokens("spend"))

    start, end = resolve_period("last_7d")
    records = [
        make_record(day, spend=10) for day in dates_in_range(parse_day(start), parse_day(end))
    ]
    providers = []

    def factory(brand):
        provider = FakeInsightsProvider(records)
        providers.append((brand.id, provider))
        return provider

    refreshed = await nightly_refresh_job(provider_factory=factory, session=db_session)

    assert refreshed == 1
    assert [brand_id for brand_id, _ in providers] == [connected.id]
    assert providers[0][1].closed
    point = db_session.exec(select(ScorecardDataPoint)).one()
    assert (point.period_start, point.period_end) == (start, end)
    assert point.value == 70.0


@pytest.mark.asyncio
async def test_period_bounds_are_normalised_before_storing(db_session, registry):
    metric = add_metric(db_session, "brand-1", "spend", tokens("spend"))
    engine = engine_for(db_session, registry, FakeInsightsProvider(RECORDS))

    for start, end in [
        ("2026-09-01", "2026-09-02"),
        ("2026-9-1", "2026-9-2"),
        ("2026-09-01T00:00:00Z", "2026-09-02T12:00:00+00:00"),
    ]:
        await refresh_metrics(engine, db_session, "brand-1", [metric], start, end)

    points = db_session.exec(select(ScorecardDataPoint)).all()
    assert [(p.period_start, p.period_end) for p in points] == [(START, END)]
    assert points[0].value == 160.0


@pytest.mark.asyncio
async def test_unparsable_period_raises(db_session, registry):
    metric = add_metric(db_session, "brand-1", "spend", tokens("spend"))
    provider = FakeInsightsProvider(RECORDS)

    with pytest.raises(ValueError):
        await refresh_metrics(
            engine_for(db_session, registry, provider),
            db_session,
            "brand-1",
            [metric],
            "someday",
            END,
        )
    assert provider.calls == []
