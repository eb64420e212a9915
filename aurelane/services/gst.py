"""
GST calculations for gemstones.

Indian GST rates by stone category. Catalogue prices already include GST,
so the tax portion is backed out of the discounted price rather than added.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aurelane.services.cart import CartItem


def round_money(value: float) -> float:
    """Round half up to 2 decimal places."""
    return math.floor(value * 100 + 0.5) / 100


class GSTCategory(str, Enum):
    ROUGH_UNWORKED = "rough_unworked"
    CUT_POLISHED = "cut_polished"
    ROUGH_DIAMONDS = "rough_diamonds"
    CUT_DIAMONDS = "cut_diamonds"

    @property
    def rate(self) -> float:
        return GST_RATES[self]

    @property
    def label(self) -> str:
        return GST_LABELS[self]

    @classmethod
    def lookup(cls, value: str | None) -> "GSTCategory | None":
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


GST_RATES: dict[GSTCategory, float] = {
    GSTCategory.ROUGH_UNWORKED: 0.0,
    GSTCategory.CUT_POLISHED: 2.0,
    GSTCategory.ROUGH_DIAMONDS: 0.25,
    GSTCategory.CUT_DIAMONDS: 1.0,
}

GST_LABELS: dict[GSTCategory, str] = {
    GSTCategory.ROUGH_UNWORKED: "Rough/Unworked Precious & Semi-precious Stones",
    GSTCategory.CUT_POLISHED: "Cut & Polished Loose Gemstones (excl. diamonds)",
    GSTCategory.ROUGH_DIAMONDS: "Rough/Unpolished Diamonds",
    GSTCategory.CUT_DIAMONDS: "Cut & Polished Loose Diamonds",
}


@dataclass(frozen=True)
class ItemGST:
    base_price: float
    gst_amount: float
    total_price: float
    gst_rate: float
    category_label: str | None = None


@dataclass
class GSTGroup:
    rate: float
    amount: float = 0.0
    items: list[tuple[str, int, float]] = field(default_factory=list)


@dataclass(frozen=True)
class GSTSummary:
    subtotal: float
    total_gst: float
    grand_total: float
    breakdown: list[GSTGroup]


def calculate_gst(price: float, rate: float) -> float:
    """GST on top of an exclusive ``price``."""
    if price <= 0 or rate <= 0:
        return 0.0
    return round_money(price * rate / 100)


def calculate_price_with_gst(price: float, rate: float) -> float:
    if price <= 0:
        return 0.0
    return round_money(price + calculate_gst(price, rate))


def calculate_gst_for_item(item: "CartItem", quantity: int | None = None) -> ItemGST:
    """Split an item's GST-inclusive line total into base price and tax."""
    quantity = item.quantity if quantity is None else quantity
    category = GSTCategory.lookup(item.gst_category)
    rate = category.rate if category else 0.0

    price_with_gst = item.effective_price
    base_price = price_with_gst / (1 + rate / 100) if rate > 0 else price_with_gst
    gst_amount = price_with_gst - base_price

    return ItemGST(
        base_price=round_money(base_price * quantity),
        gst_amount=round_money(gst_amount * quantity),
        total_price=round_money(price_with_gst * quantity),
        gst_rate=rate,
        category_label=category.label if category else None,
    )


def calculate_gst_summary(items: list["CartItem"]) -> GSTSummary:
    """Aggregate GST over cart items, grouped by rate."""
    subtotal = 0.0
    groups: dict[float, GSTGroup] = {}

    for item in items:
        item_gst = calculate_gst_for_item(item)
        subtotal += item_gst.base_price
        group = groups.setdefault(item_gst.gst_rate, GSTGroup(rate=item_gst.gst_rate))
        group.amount += item_gst.gst_amount
        group.items.append((item.name, item.quantity, item_gst.gst_amount))

    total_gst = sum(group.amount for group in groups.values())
    for group in groups.values():
        group.amount = round_money(group.amount)

    return GSTSummary(
        subtotal=round_money(subtotal),
        total_gst=round_money(total_gst),
        grand_total=round_money(subtotal + total_gst),
        breakdown=list(groups.values()),
    )


__all__ = [
    "GSTCategory",
    "GSTGroup",
    "GSTSummary",
    "ItemGST",
    "calculate_gst",
    "calculate_gst_for_item",
    "calculate_gst_summary",
    "calculate_price_with_gst",
    "round_money",
]
