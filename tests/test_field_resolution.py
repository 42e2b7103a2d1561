"""Tests for provider value parsing and per-key field extraction."""

import pytest

from scorecard.engine.field_resolution import extract_value, safe_float
from conftest import action, make_record


class TestSafeFloat:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("12.5", 12.5),
            ("  7", 7.0),
            ("1e3", 1000.0),
            ("-3.25", -3.25),
            (".5", 0.5),
            ("42px", 42.0),
            (3, 3.0),
            (2.5, 2.5),
        ],
    )
    def test_parses_numbers(self, raw, expected):
        assert safe_float(raw) == expected

    @pytest.mark.parametrize(
        "raw", [None, "", "abc", "NaN", "Infinity", float("nan"), float("inf"), True, {}, []]
    )
    def test_falls_back_to_zero(self, raw):
        assert safe_float(raw) == 0.0


class TestExtractValue:
    def test_direct_field(self, registry):
        record = make_record("2026-09-01", spend="19.99")
        assert extract_value(registry.get("spend"), record) == 19.99

    def test_direct_field_uses_provider_name(self, registry):
        record = make_record("2026-09-01", inline_link_clicks=14)
        assert extract_value(registry.get("link_clicks"), record) == 14

    def test_missing_direct_field_is_zero(self, registry):
        assert extract_value(registry.get("impressions"), make_record("2026-09-01")) == 0.0

    def test_action_list_match(self, registry):
        record = make_record(
            "2026-09-01",
            actions=[action("link_click", 40), action("omni_purchase", 3)],
        )
        assert extract_value(registry.get("purchases"), record) == 3

    def test_action_list_without_match_is_zero(self, registry):
        record = make_record("2026-09-01", actions=[action("link_click", 40)])
        assert extract_value(registry.get("purchases"), record) == 0.0

    def test_revenue_reads_action_values_not_actions(self, registry):
        record = make_record(
            "2026-09-01",
            actions=[action("omni_purchase", 3)],
            action_values=[action("omni_purchase", "250.50")],
        )
        assert extract_value(registry.get("revenue"), record) == 250.5

    def test_purchase_roas_list(self, registry):
        record = make_record("2026-09-01", purchase_roas=[action("omni_purchase", "2.4")])
        assert extract_value(registry.get("purchase_roas"), record) == 2.4

    def test_action_field_with_unexpected_shape_is_zero(self, registry):
        record = {"date_start": "2026-09-01", "actions": "not-a-list"}
        assert extract_value(registry.get("purchases"), record) == 0.0

    def test_action_entry_with_bad_value_is_zero(self, registry):
        record = make_record("2026-09-01", actions=[{"action_type": "omni_purchase"}])
        assert extract_value(registry.get("purchases"), record) == 0.0

    def test_conversions_list_is_summed(self, registry):
        record = make_record(
            "2026-09-01",
            conversions=[action("offsite_conversion.fb_pixel_lead", 4), action("lead", "2.5")],
        )
        assert extract_value(registry.get("conversions"), record) == 6.5

    def test_conversions_flat_value(self, registry):
        record = make_record("2026-09-01", conversions=7)
        assert extract_value(registry.get("conversions"), record) == 7.0

    def test_cost_per_unique_link_click_reads_inline_field(self, registry):
        record = make_record("2026-09-01", cost_per_unique_inline_link_click="0.84")
        assert extract_value(registry.get("cost_per_unique_link_click"), record) == 0.84
