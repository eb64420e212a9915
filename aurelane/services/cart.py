"""Client-side shopping cart and discount arithmetic."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from aurelane.models.gems import DiscountType, Gem
from aurelane.services.gst import GSTGroup, calculate_gst_summary, round_money

logger = logging.getLogger(__name__)


def discount_amount(
    unit_price: float, discount: float, discount_type: DiscountType
) -> float:
    """Per-unit discount, capped at the unit price."""
    if not discount or discount <= 0:
        return 0.0
    if discount_type == DiscountType.PERCENTAGE:
        amount = unit_price * discount / 100
    else:
        amount = discount
    return min(amount, unit_price)


def discounted_price(
    unit_price: float, discount: float, discount_type: DiscountType
) -> float:
    """Unit price after discount; never negative."""
    return max(0.0, unit_price - discount_amount(unit_price, discount, discount_type))


@dataclass
class CartItem:
    product_id: str
    name: str
    unit_price: float
    quantity: int = 1
    discount: float = 0.0
    discount_type: DiscountType = DiscountType.PERCENTAGE
    image_ref: str | None = None
    stock: int | None = None
    gst_category: str | None = None

    def __post_init__(self) -> None:
        self.discount_type = DiscountType(self.discount_type)
        _check_quantity(self.product_id, self.quantity, self.stock)

    @classmethod
    def from_gem(cls, gem: Gem, quantity: int = 1) -> "CartItem":
        return cls(
            product_id=gem.id,
            name=gem.name,
            unit_price=gem.price,
            quantity=quantity,
            discount=gem.discount,
            discount_type=gem.discount_type,
            image_ref=gem.primary_image,
            stock=gem.stock,
            gst_category=gem.gst_category,
        )

    @property
    def effective_price(self) -> float:
        return discounted_price(self.unit_price, self.discount, self.discount_type)

    @property
    def discount_amount(self) -> float:
        return discount_amount(self.unit_price, self.discount, self.discount_type)

    @property
    def line_total(self) -> float:
        return self.effective_price * self.quantity


def _check_quantity(product_id: str, quantity: int, stock: int | None) -> None:
    if quantity < 1:
        raise ValueError(f"Quantity for {product_id} must be at least 1, got {quantity}")
    if stock is not None and quantity > stock:
        raise ValueError(
            f"Only {stock} of {product_id} in stock, cannot hold {quantity}"
        )


@dataclass(frozen=True)
class CartSummary:
    item_count: int
    subtotal: float
    gst: float
    gst_breakdown: list[GSTGroup]
    discount: float
    total: float


@dataclass
class Cart:
    """Ordered collection of cart items keyed by product id."""

    items: list[CartItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def _find(self, product_id: str) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def add(self, item: CartItem) -> CartItem:
        """Add an item, merging quantities when the product is already present."""
        existing = self._find(item.product_id)
        if existing is None:
            self.items.append(item)
            return item

        quantity = existing.quantity + item.quantity
        _check_quantity(item.product_id, quantity, existing.stock)
        existing.quantity = quantity
        return existing

    def remove(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(product_id)
            return
        item = self._find(product_id)
        if item is None:
            raise KeyError(product_id)
        _check_quantity(product_id, quantity, item.stock)
        item.quantity = quantity

    def clear(self) -> None:
        logger.debug("Clearing cart with %d items", len(self.items))
        self.items = []

    def contains(self, product_id: str) -> bool:
        return self._find(product_id) is not None

    def quantity_of(self, product_id: str) -> int:
        item = self._find(product_id)
        return item.quantity if item else 0

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def total_discount(self) -> float:
        return sum(item.discount_amount * item.quantity for item in self.items)

    def summary(self) -> CartSummary:
        """Totals shown at checkout; ``total`` is the GST-inclusive grand total."""
        gst_summary = calculate_gst_summary(self.items)
        return CartSummary(
            item_count=self.item_count,
            subtotal=round_money(self.total_price),
            gst=gst_summary.total_gst,
            gst_breakdown=gst_summary.breakdown,
            discount=round_money(self.total_discount),
            total=gst_summary.grand_total,
        )


__all__ = ["Cart", "CartItem", "CartSummary", "discount_amount", "discounted_price"]
