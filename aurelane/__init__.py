"""
Aurelane storefront client.

Async client for the Aurelane gemstone marketplace API with a request
cache for catalogue reads and the checkout workflow that turns a cart
into an order.
"""

from aurelane.core.config import Settings, get_settings
from aurelane.services.api_client import AurelaneClient, GemQuery, create_client
from aurelane.services.cart import Cart, CartItem
from aurelane.services.checkout import CheckoutState, CheckoutWorkflow, PaymentMethod

__version__ = "0.1.0"

__all__ = [
    "AurelaneClient",
    "Cart",
    "CartItem",
    "CheckoutState",
    "CheckoutWorkflow",
    "GemQuery",
    "PaymentMethod",
    "Settings",
    "create_client",
    "get_settings",
]
