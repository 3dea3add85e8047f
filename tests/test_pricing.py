"""Tests for cost and duration calculations."""

import pytest

from bookflow.tools.pricing import (
    compute_cost,
    format_minutes,
    format_money,
    get_duration_info,
)
from bookflow.tools.services import describe_services


class TestComputeCost:
    def test_mixed_flat_and_hourly_for_two_performers(self, example_catalog):
        cost = compute_cost(3, ["A", "B"], 2, catalog=example_catalog, deposit_percentage=0.30)
        assert cost.hourly_cost == pytest.approx(300)
        assert cost.flat_cost == pytest.approx(100)
        assert cost.total_cost == pytest.approx(400)
        assert cost.deposit_amount == pytest.approx(120)
        assert cost.balance_due == pytest.approx(280)

    def test_flat_rate_not_multiplied_by_performers(self, example_catalog):
        one = compute_cost(3, ["A"], 1, catalog=example_catalog)
        three = compute_cost(3, ["A"], 3, catalog=example_catalog)
        assert one.total_cost == three.total_cost == pytest.approx(100)

    def test_minimum_duration_applies(self, example_catalog):
        cost = compute_cost(1, ["B"], 1, catalog=example_catalog)
        assert cost.total_cost == pytest.approx(100)

    def test_no_services_is_zero(self, example_catalog):
        cost = compute_cost(3, [], 2, catalog=example_catalog)
        assert cost.total_cost == 0
        assert cost.deposit_amount == 0

    def test_zero_performers_is_zero(self, example_catalog):
        assert compute_cost(3, ["A", "B"], 0, catalog=example_catalog).total_cost == 0

    def test_unknown_service_ids_ignored(self, example_catalog):
        cost = compute_cost(3, ["A", "nope"], 1, catalog=example_catalog)
        assert cost.total_cost == pytest.approx(100)

    def test_duplicate_service_ids_counted_once(self, example_catalog):
        cost = compute_cost(3, ["A", "A"], 1, catalog=example_catalog)
        assert cost.total_cost == pytest.approx(100)

    @pytest.mark.parametrize("duration", [None, "abc", -4, float("nan")])
    def test_junk_duration_treated_as_zero(self, example_catalog, duration):
        # min_duration_hours still bills the 2 hour minimum
        cost = compute_cost(duration, ["B"], 1, catalog=example_catalog)
        assert cost.total_cost == pytest.approx(100)

    def test_never_negative(self, example_catalog):
        cost = compute_cost(-10, ["A", "B"], -3, catalog=example_catalog)
        assert cost.total_cost >= 0
        assert cost.deposit_amount >= 0

    def test_deposit_uses_given_percentage(self, example_catalog):
        cost = compute_cost(3, ["A"], 1, catalog=example_catalog, deposit_percentage=0.15)
        assert cost.deposit_amount == pytest.approx(15)

    def test_referral_fee_is_share_of_total(self, example_catalog):
        cost = compute_cost(3, ["A", "B"], 2, catalog=example_catalog,
                            referral_fee_percentage=0.10)
        assert cost.referral_fee == pytest.approx(40)

    def test_referral_fee_zero_without_services(self, example_catalog):
        assert compute_cost(3, [], 1, catalog=example_catalog).referral_fee == 0

    def test_default_catalog(self):
        cost = compute_cost(3, ["misc-promo-model", "show-pearl"], 2, deposit_percentage=0.30)
        assert cost.total_cost == pytest.approx(100 * 3 * 2 + 500)


class TestDurationInfo:
    def test_hourly_plus_show_minutes(self, example_catalog):
        info = get_duration_info(2, ["A", "B"], catalog=example_catalog)
        assert info.base_minutes == 120
        assert info.show_minutes == 15
        assert info.total_minutes == 135
        assert info.formatted == "2 hours 15 minutes"

    def test_shows_only_ignore_base_duration(self, example_catalog):
        info = get_duration_info(4, ["A"], catalog=example_catalog)
        assert not info.has_hourly_service
        assert info.total_minutes == 15

    def test_nothing_selected(self, example_catalog):
        assert get_duration_info(2, [], catalog=example_catalog).formatted == "N/A"


class TestFormatting:
    def test_format_minutes_singular(self):
        assert format_minutes(61) == "1 hour 1 minute"

    def test_format_minutes_zero(self):
        assert format_minutes(0) == "N/A"

    def test_format_money_has_two_decimals(self):
        assert format_money(1234.5).endswith("1,234.50")


class TestDescribeServices:
    def test_names_in_request_order(self, example_catalog):
        assert describe_services(["B", "A"], example_catalog) == "Hourly B, Show A"

    def test_nothing_known(self, example_catalog):
        assert describe_services(["nope"], example_catalog) == "No services selected"
