"""
Resource clients for the Aurelane REST API.

Each group wraps one area of the backend over a shared :class:`ApiTransport`.
Catalogue reads go through the request cache; catalogue writes invalidate the
cache prefixes they can affect. Everything else is a plain request.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from aurelane.core.config import Settings, get_settings
from aurelane.core.telemetry import configure_tracing
from aurelane.models.gems import Gem, GemDetail, GemPage
from aurelane.models.orders import PaymentOrder, VerificationResult
from aurelane.services.api_mapping import (
    extract_items,
    is_explicit_success,
    unwrap_envelope,
)
from aurelane.services.api_transport import ApiResponse, ApiTransport
from aurelane.services.request_cache import (
    RequestCache,
    ResourceKind,
    resource_key_prefix,
)
from aurelane.services.session_store import SessionStore

logger = logging.getLogger(__name__)

GEM_LIST_PREFIX = resource_key_prefix("/gems")
GEM_TAXONOMY_PREFIXES = (
    resource_key_prefix("/gems/categories"),
    "GET:/gems/category/",
    "GET:/gems/zodiac/",
)


# =============================================================================
# Catalogue
# =============================================================================


class GemQuery(BaseModel):
    """Filters for the gem listing."""

    page: int | None = Field(None, ge=1)
    limit: int | None = Field(None, ge=1)
    search: str | None = None
    categories: list[str] = Field(default_factory=list)
    min_price: float | None = Field(None, ge=0)
    max_price: float | None = Field(None, ge=0)
    sort: str | None = None
    birth_month: str | None = None

    def to_params(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "search": self.search.strip() if self.search else None,
            "category": self.categories,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "sort": self.sort,
            "birthMonth": self.birth_month,
        }


class GemAPI:
    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def list_gems(
        self,
        query: GemQuery | dict[str, Any] | None = None,
        *,
        force_refresh: bool = False,
        ttl: float | None = None,
    ) -> GemPage:
        if isinstance(query, GemQuery):
            params = query.to_params()
        else:
            params = dict(query or {})
        payload = await self._transport.cached_read(
            "/gems",
            params,
            ttl=ttl,
            kind=ResourceKind.LIST,
            force_refresh=force_refresh,
        )
        return GemPage.from_payload(payload)

    async def get_gem(
        self, gem_id: str, *, force_refresh: bool = False, ttl: float | None = None
    ) -> GemDetail:
        payload = await self._transport.cached_read(
            f"/gems/{gem_id}",
            ttl=ttl,
            kind=ResourceKind.DETAIL,
            force_refresh=force_refresh,
        )
        return GemDetail.from_payload(payload)

    async def get_categories(self) -> list[Any]:
        payload = await self._transport.cached_read(
            "/gems/categories", kind=ResourceKind.TAXONOMY
        )
        return extract_items(payload, "categories")

    async def get_by_category(self, category: str) -> list[Gem]:
        payload = await self._transport.cached_read(
            f"/gems/category/{category}", kind=ResourceKind.TAXONOMY
        )
        return [Gem.model_validate(item) for item in extract_items(payload, "gems")]

    async def get_by_zodiac(self, sign: str) -> list[Gem]:
        payload = await self._transport.cached_read(
            f"/gems/zodiac/{sign}", kind=ResourceKind.TAXONOMY
        )
        return [Gem.model_validate(item) for item in extract_items(payload, "gems")]

    async def search(self, params: dict[str, Any]) -> Any:
        return await self._transport.request("POST", "/gems/search", json=params)

    async def add_gem(self, gem_data: dict[str, Any]) -> Any:
        response = await self._transport.request("POST", "/gems", json=gem_data)
        self._transport.invalidate([GEM_LIST_PREFIX, *GEM_TAXONOMY_PREFIXES])
        return response

    async def update_gem(self, gem_id: str, gem_data: dict[str, Any]) -> Any:
        response = await self._transport.request("PUT", f"/gems/{gem_id}", json=gem_data)
        self._invalidate_gem(gem_id)
        return response

    async def delete_gem(self, gem_id: str) -> Any:
        response = await self._transport.request("DELETE", f"/gems/{gem_id}")
        self._invalidate_gem(gem_id)
        return response

    def _invalidate_gem(self, gem_id: str) -> None:
        self._transport.invalidate(
            [GEM_LIST_PREFIX, resource_key_prefix(f"/gems/{gem_id}"), *GEM_TAXONOMY_PREFIXES]
        )


# =============================================================================
# Orders and payments
# =============================================================================


class OrderAPI:
    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def create_order(self, order_data: dict[str, Any]) -> ApiResponse:
        """Submit an order; the status code decides success for bodies without a flag."""
        return await self._transport.request_response("POST", "/orders", json=order_data)

    async def list_orders(self) -> list[dict[str, Any]]:
        payload = await self._transport.request("GET", "/orders")
        return extract_items(payload, "orders")

    async def get_order(self, order_id: str) -> Any:
        return unwrap_envelope(await self._transport.request("GET", f"/orders/{order_id}"))

    async def cancel_order(self, order_id: str, reason: str | None = None) -> Any:
        return await self._transport.request(
            "PUT", f"/orders/{order_id}/cancel", json={"reason": reason}
        )

    async def update_status(self, order_id: str, status: str, **tracking: Any) -> Any:
        return await self._transport.request(
            "PUT", f"/orders/{order_id}/status", json={"status": status, **tracking}
        )

    async def track_order(self, order_id: str) -> Any:
        return unwrap_envelope(
            await self._transport.request("GET", f"/orders/{order_id}/track")
        )

    async def get_invoice(self, order_id: str) -> bytes:
        return await self._transport.request_bytes("GET", f"/orders/{order_id}/invoice")


class PaymentAPI:
    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def create_payment_order(self, order_data: dict[str, Any]) -> Any:
        """Create the internal order and its gateway reservation in one call.

        Returns the raw body; use :meth:`PaymentOrder.from_payload` to read it.
        """
        return await self._transport.request(
            "POST", "/payments/create-order", json=order_data
        )

    async def verify_payment(self, verification: dict[str, Any]) -> VerificationResult:
        payload = await self._transport.request(
            "POST", "/payments/verify-payment", json=verification
        )
        return VerificationResult.from_payload(payload)

    async def get_order_status(self, order_id: str) -> Any:
        return unwrap_envelope(
            await self._transport.request("GET", f"/payments/order-status/{order_id}")
        )


# =============================================================================
# Wishlist and reviews
# =============================================================================


class WishlistAPI:
    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def add(self, gem_id: str) -> Any:
        return await self._transport.request("POST", "/wishlist/add", json={"gemId": gem_id})

    async def list_items(self) -> list[Any]:
        payload = await self._transport.request("GET", "/wishlist")
        return extract_items(payload, "items", "wishlist", "gems")

    async def remove(self, gem_id: str) -> Any:
        return await self._transport.request("DELETE", f"/wishlist/remove/{gem_id}")

    async def clear(self) -> Any:
        return await self._transport.request("DELETE", "/wishlist/clear")

    async def contains(self, gem_id: str) -> bool:
        payload = await self._transport.request("GET", f"/wishlist/check/{gem_id}")
        data = unwrap_envelope(payload)
        if isinstance(data, dict):
            return bool(data.get("isInWishlist", data.get("inWishlist", False)))
        return False


class ReviewAPI:
    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def submit(self, gem_id: str, review: dict[str, Any]) -> Any:
        return await self._transport.request("POST", f"/reviews/{gem_id}", json=review)

    async def for_gem(self, gem_id: str, params: dict[str, Any] | None = None) -> list[Any]:
        payload = await self._transport.request(
            "GET", f"/reviews/gem/{gem_id}", params=params
        )
        return extract_items(payload, "reviews")

    async def mine(self) -> list[Any]:
        payload = await self._transport.request("GET", "/reviews/user")
        return extract_items(payload, "reviews")

    async def update(self, review_id: str, review: dict[str, Any]) -> Any:
        return await self._transport.request("PUT", f"/reviews/{review_id}", json=review)

    async def delete(self, review_id: str) -> Any:
        return await self._transport.request("DELETE", f"/reviews/{review_id}")

    async def has_reviewed(self, gem_id: str) -> bool:
        payload = await self._transport.request("GET", f"/reviews/check/{gem_id}")
        data = unwrap_envelope(payload)
        return isinstance(data, dict) and bool(data.get("hasReviewed"))


# =============================================================================
# Accounts
# =============================================================================


class AuthAPI:
    """Authentication; a successful login or signup is persisted to the session."""

    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    @property
    def session(self) -> SessionStore:
        return self._transport.session

    async def signup(self, user_data: dict[str, Any]) -> Any:
        payload = await self._transport.request("POST", "/auth/signup", json=user_data)
        self._remember(payload)
        return payload

    async def login(self, credentials: dict[str, Any]) -> Any:
        payload = await self._transport.request("POST", "/auth/login", json=credentials)
        self._remember(payload)
        return payload

    def _remember(self, payload: Any) -> None:
        if is_explicit_success(payload) and payload.get("token"):
            self.session.save(payload["token"], payload.get("user"))
            logger.info("Stored session for authenticated user")

    def logout(self) -> None:
        self.session.clear()

    def current_user(self) -> dict[str, Any] | None:
        return self.session.get_user()

    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    async def forgot_password(self, email: str) -> Any:
        return await self._transport.request(
            "POST", "/auth/forgot-password", json={"email": email}
        )

    async def reset_password(self, token: str, password: str) -> Any:
        return await self._transport.request(
            "PUT", f"/auth/reset-password/{token}", json={"password": password}
        )

    async def verify_reset_token(self, token: str) -> Any:
        return await self._transport.request("GET", f"/auth/reset-password/{token}")

    async def verify_email(self, token: str) -> Any:
        return await self._transport.request("GET", f"/auth/verify-email/{token}")


class AccountAPI:
    """Buyer profile and saved addresses."""

    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def get_profile(self) -> Any:
        return await self._transport.request("GET", "/user/profile")

    async def update_profile(self, profile: dict[str, Any]) -> Any:
        payload = await self._transport.request("PUT", "/user/profile", json=profile)
        if is_explicit_success(payload) and isinstance(payload.get("user"), dict):
            self._transport.session.update_user(**payload["user"])
        return payload

    async def list_addresses(self) -> list[Any]:
        payload = await self._transport.request("GET", "/user/addresses")
        return extract_items(payload, "addresses")

    async def add_address(self, address: dict[str, Any]) -> Any:
        return await self._transport.request("POST", "/user/addresses", json=address)

    async def update_address(self, address_id: str, address: dict[str, Any]) -> Any:
        return await self._transport.request(
            "PUT", f"/user/addresses/{address_id}", json=address
        )

    async def delete_address(self, address_id: str) -> Any:
        return await self._transport.request("DELETE", f"/user/addresses/{address_id}")

    async def set_primary_address(self, address_id: str) -> Any:
        return await self._transport.request(
            "PUT", f"/user/addresses/{address_id}/primary"
        )


class SellerAPI:
    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def get_profile(self) -> Any:
        return await self._transport.request("GET", "/seller/profile")

    async def update_profile(self, profile: dict[str, Any]) -> Any:
        payload = await self._transport.request("PUT", "/seller/profile", json=profile)
        seller = payload.get("seller") if is_explicit_success(payload) else None
        if isinstance(seller, dict) and self._transport.session.get_user() is not None:
            self._transport.session.update_user(
                name=seller.get("fullName"),
                email=seller.get("email"),
                role="seller",
            )
        return payload

    async def dashboard_stats(self) -> Any:
        return unwrap_envelope(
            await self._transport.request("GET", "/seller/dashboard/stats")
        )

    async def list_orders(self, params: dict[str, Any] | None = None) -> list[Any]:
        payload = await self._transport.request(
            "GET", "/orders/seller/orders", params=params
        )
        return extract_items(payload, "orders")

    async def get_order(self, order_id: str) -> Any:
        return unwrap_envelope(
            await self._transport.request("GET", f"/orders/seller/orders/{order_id}")
        )

    async def order_stats(self) -> Any:
        return unwrap_envelope(
            await self._transport.request("GET", "/orders/seller/orders/stats")
        )


class AdminAPI:
    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    async def dashboard_stats(self) -> Any:
        return unwrap_envelope(
            await self._transport.request("GET", "/admin/dashboard/stats")
        )

    # Sellers

    async def list_sellers(self, params: dict[str, Any] | None = None) -> Any:
        return await self._transport.request("GET", "/admin/sellers", params=params)

    async def get_seller(self, seller_id: str) -> Any:
        return await self._transport.request("GET", f"/admin/sellers/{seller_id}")

    async def update_seller_status(self, seller_id: str, status: str) -> Any:
        return await self._transport.request(
            "PUT", f"/admin/sellers/{seller_id}/status", json={"status": status}
        )

    async def block_seller(self, seller_id: str) -> Any:
        return await self._transport.request("PUT", f"/admin/sellers/{seller_id}/block")

    async def unblock_seller(self, seller_id: str) -> Any:
        return await self._transport.request("PUT", f"/admin/sellers/{seller_id}/unblock")

    async def delete_seller(self, seller_id: str) -> Any:
        return await self._transport.request("DELETE", f"/admin/sellers/{seller_id}")

    # Buyers

    async def list_buyers(self, params: dict[str, Any] | None = None) -> Any:
        return await self._transport.request("GET", "/admin/buyers", params=params)

    async def get_buyer(self, buyer_id: str) -> Any:
        return await self._transport.request("GET", f"/admin/buyers/{buyer_id}")

    async def block_buyer(self, buyer_id: str) -> Any:
        return await self._transport.request("PUT", f"/admin/buyers/{buyer_id}/block")

    async def unblock_buyer(self, buyer_id: str) -> Any:
        return await self._transport.request("PUT", f"/admin/buyers/{buyer_id}/unblock")

    # Products

    async def list_products(self, params: dict[str, Any] | None = None) -> Any:
        return await self._transport.request("GET", "/admin/products", params=params)

    async def get_product(self, product_id: str) -> Any:
        return await self._transport.request("GET", f"/admin/products/{product_id}")

    async def delete_product(self, product_id: str) -> Any:
        response = await self._transport.request(
            "DELETE", f"/admin/products/{product_id}"
        )
        # Admin deletes remove catalogue gems, so the public listing is stale too.
        self._transport.invalidate(
            [GEM_LIST_PREFIX, resource_key_prefix(f"/gems/{product_id}"), *GEM_TAXONOMY_PREFIXES]
        )
        return response

    # Orders

    async def list_orders(self, params: dict[str, Any] | None = None) -> Any:
        return await self._transport.request("GET", "/admin/orders", params=params)

    async def get_order(self, order_id: str) -> Any:
        return await self._transport.request("GET", f"/admin/orders/{order_id}")

    async def update_order_status(
        self, order_id: str, status: str, **tracking: Any
    ) -> Any:
        return await self._transport.request(
            "PUT", f"/admin/orders/{order_id}/status", json={"status": status, **tracking}
        )


# =============================================================================
# Facade
# =============================================================================


class AurelaneClient:
    """All resource clients over one transport."""

    def __init__(self, transport: ApiTransport) -> None:
        self.transport = transport
        self.gems = GemAPI(transport)
        self.orders = OrderAPI(transport)
        self.payments = PaymentAPI(transport)
        self.wishlist = WishlistAPI(transport)
        self.reviews = ReviewAPI(transport)
        self.auth = AuthAPI(transport)
        self.account = AccountAPI(transport)
        self.seller = SellerAPI(transport)
        self.admin = AdminAPI(transport)

    @property
    def cache(self) -> RequestCache:
        return self.transport.cache

    async def __aenter__(self) -> "AurelaneClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()


def create_client(
    settings: Settings | None = None,
    *,
    session: SessionStore | None = None,
    cache: RequestCache | None = None,
    transport: ApiTransport | None = None,
) -> AurelaneClient:
    """Build a client, enabling tracing when the settings ask for it."""
    settings = settings or get_settings()

    configure_tracing(settings)

    if transport is None:
        transport = ApiTransport(settings, session=session, cache=cache)
    logger.info("Aurelane client targeting %s", settings.api_base_url)
    return AurelaneClient(transport)


__all__ = [
    "AccountAPI",
    "AdminAPI",
    "AuthAPI",
    "AurelaneClient",
    "GEM_LIST_PREFIX",
    "GEM_TAXONOMY_PREFIXES",
    "GemAPI",
    "GemQuery",
    "OrderAPI",
    "PaymentAPI",
    "PaymentOrder",
    "ReviewAPI",
    "SellerAPI",
    "WishlistAPI",
    "create_client",
]
