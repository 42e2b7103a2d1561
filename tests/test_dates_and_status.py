"""Tests for calendar helpers and goal status."""

from datetime import date, datetime, timezone

import pytest

from scorecard.core.dates import dates_in_range, normalize_range, parse_day, resolve_period
from scorecard.engine.status import metric_status

TODAY = date(2026, 10, 19)


class TestDates:
    def test_range_is_inclusive(self):
        assert dates_in_range(date(2026, 9, 29), date(2026, 10, 2)) == [
            "2026-09-29",
            "2026-09-30",
            "2026-10-01",
            "2026-10-02",
        ]

    def test_reversed_range_is_empty(self):
        assert dates_in_range(date(2026, 10, 2), date(2026, 10, 1)) == []

    def test_parse_plain_day(self):
        assert parse_day("2026-03-01") == date(2026, 3, 1)

    def test_parse_timestamp_normalises_to_utc_day(self):
        assert parse_day("2026-03-01T23:30:00-02:00") == date(2026, 3, 2)
        assert parse_day("2026-03-01T10:00:00Z") == date(2026, 3, 1)

    def test_parse_datetime_object(self):
        assert parse_day(datetime(2026, 3, 1, 5, tzinfo=timezone.utc)) == date(2026, 3, 1)

    def test_parse_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_day("not-a-date")

    @pytest.mark.parametrize(
        "preset, expected",
        [
            ("yesterday", ("2026-10-18", "2026-10-18")),
            ("last_7d", ("2026-10-12", "2026-10-18")),
            ("last_30d", ("2026-09-19", "2026-10-18")),
            ("this_month", ("2026-10-01", "2026-10-19")),
            (None, ("2026-10-12", "2026-10-18")),
            ("unknown", ("2026-10-12", "2026-10-18")),
        ],
    )
    def test_presets(self, preset, expected):
        assert resolve_period(preset, today=TODAY) == expected

    def test_explicit_bounds_win(self):
        assert resolve_period(
            "yesterday", "2026-01-01", "2026-01-31", today=TODAY
        ) == ("2026-01-01", "2026-01-31")


class TestMetricStatus:
    def test_no_goal(self):
        assert metric_status(10, None, "gte") == "none"
        assert metric_status(10, 5, None) == "none"

    def test_on_track(self):
        assert metric_status(3.2, 3.0, "gte") == "on_track"
        assert metric_status(8.0, 10.0, "lte") == "on_track"

    def test_at_risk_within_twenty_percent(self):
        assert metric_status(2.7, 3.0, "gte") == "at_risk"

    def test_off_track_beyond_twenty_percent(self):
        assert metric_status(2.0, 3.0, "gte") == "off_track"
        assert metric_status(15.0, 10.0, "lt") == "off_track"

    def test_eq_operator(self):
        assert metric_status(5.0, 5.0, "eq") == "on_track"


class TestNormalizeRange:
    @pytest.mark.parametrize("raw", ["2025-03-01", "2025-3-1", "2025-03-01T00:00:00Z"])
    def test_spellings_of_one_day_agree(self, raw):
        assert normalize_range(raw, raw) == ("2025-03-01", "2025-03-01")

    def test_unparsable_bound_raises(self):
        with pytest.raises(ValueError):
            normalize_range("2025-03-01", "next tuesday")
