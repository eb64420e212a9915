"""
Port for the third-party payment widget.

The widget itself runs outside this process (a hosted checkout modal). The
checkout workflow only needs to load it once, open it with an options
object and learn how the customer left it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Union


@dataclass(frozen=True)
class GatewayOptions:
    key: str
    amount: int
    currency: str
    name: str
    description: str
    order_id: str
    prefill: dict[str, str] = field(default_factory=dict)
    notes: dict[str, Any] = field(default_factory=dict)
    theme_color: str = "#059669"

    def to_payload(self) -> dict[str, Any]:
        """Options object in the widget's own format."""
        return {
            "key": self.key,
            "amount": self.amount,
            "currency": self.currency,
            "name": self.name,
            "description": self.description,
            "order_id": self.order_id,
            "prefill": dict(self.prefill),
            "notes": dict(self.notes),
            "theme": {"color": self.theme_color},
        }


@dataclass(frozen=True)
class GatewaySuccess:
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


@dataclass(frozen=True)
class GatewayFailure:
    description: str | None = None
    reason: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class GatewayDismissed:
    """The customer closed the widget without paying or failing."""


GatewayOutcome = Union[GatewaySuccess, GatewayFailure, GatewayDismissed]


class PaymentGateway(Protocol):
    @property
    def is_loaded(self) -> bool: ...

    async def load(self, script_url: str) -> None:
        """Fetch and initialise the widget; raises on failure."""
        ...

    async def open(self, options: GatewayOptions) -> GatewayOutcome:
        """Present the widget and wait for the customer to leave it."""
        ...


__all__ = [
    "GatewayDismissed",
    "GatewayFailure",
    "GatewayOptions",
    "GatewayOutcome",
    "GatewaySuccess",
    "PaymentGateway",
]
