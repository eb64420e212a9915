"""Order and payment models exchanged with the Aurelane backend."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from aurelane.models.gems import CamelModel
from aurelane.services.api_mapping import (
    DataMapper,
    extract_message,
    extract_order_id,
    is_explicit_success,
    unwrap_envelope,
)

REQUIRED_ADDRESS_FIELDS = (
    "name",
    "email",
    "phone",
    "address_line1",
    "city",
    "state",
    "pincode",
)


class ShippingAddress(CamelModel):
    """Shipping address as collected at checkout."""

    name: str = ""
    email: str = ""
    phone: str = ""
    address_line1: str = Field("", alias="addressLine1")
    address_line2: str = Field("", alias="addressLine2")
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = ""

    @classmethod
    def from_user(cls, user: dict[str, Any] | None) -> "ShippingAddress":
        """Start an address from the stored profile's contact details."""
        user = user or {}
        return cls(
            name=user.get("name") or "",
            email=user.get("email") or "",
            phone=user.get("phoneNumber") or user.get("phone") or "",
        )

    def first_missing_field(self) -> str | None:
        """Name of the first required field that is blank after trimming."""
        for field_name in REQUIRED_ADDRESS_FIELDS:
            if not getattr(self, field_name).strip():
                return field_name
        return None

    def to_payload(self, default_country: str) -> dict[str, str]:
        """Wire form: email is not part of the order's address."""
        return {
            "name": self.name,
            "phone": self.phone,
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2 or "",
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "country": self.country or default_country,
        }


class GatewayOrder(BaseModel):
    """Payment-provider reservation; ``amount`` is in minor units."""

    id: str
    amount: int
    currency: str = "INR"
    receipt: str | None = None


class PaymentOrder(BaseModel):
    """Result of ``POST /payments/create-order``."""

    order_id: str | None
    gateway_order: GatewayOrder
    key_id: str

    @classmethod
    def from_payload(cls, payload: Any) -> "PaymentOrder | None":
        """Parse the create-order body, or None when the gateway data is missing."""
        data = unwrap_envelope(payload)
        if not isinstance(data, dict):
            return None

        descriptor = DataMapper.safe_get(data, "razorpayOrder")
        key_id = DataMapper.safe_get(data, "keyId")
        if not isinstance(descriptor, dict) or not descriptor.get("id") or not key_id:
            return None

        try:
            gateway_order = GatewayOrder.model_validate(descriptor)
        except ValidationError:
            return None

        return cls(
            order_id=extract_order_id(payload),
            gateway_order=gateway_order,
            key_id=str(key_id),
        )


class VerificationResult(BaseModel):
    success: bool
    message: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "VerificationResult":
        data = unwrap_envelope(payload)
        return cls(
            success=is_explicit_success(data) or is_explicit_success(payload),
            message=extract_message(data) or extract_message(payload),
        )


__all__ = [
    "GatewayOrder",
    "PaymentOrder",
    "REQUIRED_ADDRESS_FIELDS",
    "ShippingAddress",
    "VerificationResult",
]
