"""Pydantic models for Aurelane API payloads."""

from aurelane.models.gems import DiscountType, Gem, GemDetail, GemPage, Pagination
from aurelane.models.orders import (
    GatewayOrder,
    PaymentOrder,
    ShippingAddress,
    VerificationResult,
)

__all__ = [
    "DiscountType",
    "GatewayOrder",
    "Gem",
    "GemDetail",
    "GemPage",
    "Pagination",
    "PaymentOrder",
    "ShippingAddress",
    "VerificationResult",
]
