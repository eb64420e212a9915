"""Tests for GST calculations."""

from __future__ import annotations

import pytest

from aurelane.services.cart import CartItem
from aurelane.services.gst import (
    GSTCategory,
    calculate_gst,
    calculate_gst_for_item,
    calculate_gst_summary,
    calculate_price_with_gst,
    round_money,
)


def test_round_money_rounds_half_up():
    assert round_money(0.125) == 0.13
    assert round_money(10.004) == 10.0
    assert round_money(2.5) == 2.5


class TestCategory:
    def test_rates(self):
        assert GSTCategory.CUT_POLISHED.rate == 2.0
        assert GSTCategory.ROUGH_DIAMONDS.rate == 0.25
        assert GSTCategory.ROUGH_UNWORKED.rate == 0.0

    def test_lookup_tolerates_unknown_values(self):
        assert GSTCategory.lookup("cut_diamonds") is GSTCategory.CUT_DIAMONDS
        assert GSTCategory.lookup("synthetic") is None
        assert GSTCategory.lookup(None) is None


def test_calculate_gst_on_exclusive_price():
    assert calculate_gst(1000, 2.0) == 20.0
    assert calculate_gst(1000, 0) == 0.0
    assert calculate_gst(-10, 2.0) == 0.0
    assert calculate_price_with_gst(1000, 3.0) == 1030.0
    assert calculate_price_with_gst(0, 3.0) == 0.0


def test_item_gst_is_backed_out_of_discounted_price():
    item = CartItem(
        product_id="g1",
        name="Sapphire",
        unit_price=2240,
        quantity=2,
        discount=200,
        discount_type="fixed",
        gst_category="cut_polished",
    )

    result = calculate_gst_for_item(item)

    assert result.total_price == 4080
    assert result.base_price == pytest.approx(4000)
    assert result.gst_amount == pytest.approx(80)
    assert result.gst_rate == 2.0
    assert result.category_label.startswith("Cut & Polished")


def test_item_without_category_carries_no_gst():
    item = CartItem(product_id="g1", name="Quartz", unit_price=300)

    result = calculate_gst_for_item(item, quantity=3)

    assert result.total_price == 900
    assert result.gst_amount == 0
    assert result.category_label is None


def test_summary_groups_by_rate():
    items = [
        CartItem(product_id="a", name="Ruby", unit_price=1020, gst_category="cut_polished"),
        CartItem(product_id="b", name="Emerald", unit_price=2040, gst_category="cut_polished"),
        CartItem(product_id="c", name="Diamond", unit_price=10100, gst_category="cut_diamonds"),
    ]

    summary = calculate_gst_summary(items)

    rates = {group.rate: group for group in summary.breakdown}
    assert set(rates) == {2.0, 1.0}
    assert rates[2.0].amount == pytest.approx(60)
    assert [name for name, _, _ in rates[2.0].items] == ["Ruby", "Emerald"]
    assert rates[1.0].amount == pytest.approx(100)
    assert summary.total_gst == pytest.approx(160)
    assert summary.grand_total == pytest.approx(13160)


def test_empty_summary():
    summary = calculate_gst_summary([])

    assert summary.grand_total == 0
    assert summary.breakdown == []
