"""
Checkout workflow.

Turns the cart into a persisted order. The customer fills in a shipping
address, confirms it, and the order is submitted either as cash on delivery
or through the hosted payment widget followed by server-side verification.

State machine::

    COLLECTING_ADDRESS -> AWAITING_CONFIRMATION -> SUBMITTING
        SUBMITTING -> COMPLETED                         (cod)
        SUBMITTING -> AWAITING_GATEWAY -> VERIFYING_PAYMENT
            VERIFYING_PAYMENT -> COMPLETED | PAYMENT_FAILED
        AWAITING_GATEWAY -> PAYMENT_FAILED              (gateway failure)
        AWAITING_GATEWAY -> CANCELLED                   (widget dismissed)
        AWAITING_CONFIRMATION -> CANCELLED
        SUBMITTING -> SUBMISSION_FAILED

CANCELLED and SUBMISSION_FAILED are transient and fall straight back to
COLLECTING_ADDRESS with the cart untouched.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from aurelane.core.config import Settings, get_settings
from aurelane.core.metrics import record_checkout_transition
from aurelane.models.orders import PaymentOrder, ShippingAddress
from aurelane.services.api_client import OrderAPI, PaymentAPI
from aurelane.services.api_errors import APIError, ValidationFailedError
from aurelane.services.api_mapping import (
    extract_message,
    extract_order_id,
    is_explicit_failure,
    is_explicit_success,
    unwrap_envelope,
)
from aurelane.services.cart import Cart
from aurelane.services.gst import round_money
from aurelane.services.payment_gateway import (
    GatewayFailure,
    GatewayOptions,
    GatewaySuccess,
    PaymentGateway,
)

logger = logging.getLogger(__name__)

ORDER_FAILED_MESSAGE = "Failed to place order. Please try again."
ORDER_NUMBER_FAILED_MESSAGE = (
    "Backend error: Order number generation failed. Please contact support."
)
PAYMENT_ORDER_FAILED_MESSAGE = "Failed to create payment order. Please try again."
INVALID_GATEWAY_RESPONSE_MESSAGE = "Invalid response from payment server. Please try again."
GATEWAY_NOT_LOADED_MESSAGE = "Payment gateway not loaded. Please refresh the page."
VERIFICATION_FAILED_MESSAGE = "Payment verification failed"
VERIFICATION_ERROR_MESSAGE = "Error verifying payment. Please contact support."
PAYMENT_FAILED_MESSAGE = "Payment failed"
PAYMENT_CANCELLED_MESSAGE = "Payment cancelled by user"

FIELD_LABELS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "address_line1": "address",
    "city": "city",
    "state": "state",
    "pincode": "pincode",
}


class CheckoutState(str, Enum):
    COLLECTING_ADDRESS = "collecting_address"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTING = "submitting"
    AWAITING_GATEWAY = "awaiting_gateway"
    VERIFYING_PAYMENT = "verifying_payment"
    COMPLETED = "completed"
    PAYMENT_FAILED = "payment_failed"
    SUBMISSION_FAILED = "submission_failed"
    CANCELLED = "cancelled"


S = CheckoutState

ALLOWED_TRANSITIONS: dict[CheckoutState, frozenset[CheckoutState]] = {
    S.COLLECTING_ADDRESS: frozenset({S.AWAITING_CONFIRMATION}),
    S.AWAITING_CONFIRMATION: frozenset({S.SUBMITTING, S.CANCELLED}),
    S.SUBMITTING: frozenset({S.AWAITING_GATEWAY, S.COMPLETED, S.SUBMISSION_FAILED}),
    S.AWAITING_GATEWAY: frozenset({S.VERIFYING_PAYMENT, S.PAYMENT_FAILED, S.CANCELLED}),
    S.VERIFYING_PAYMENT: frozenset({S.COMPLETED, S.PAYMENT_FAILED}),
    S.SUBMISSION_FAILED: frozenset({S.COLLECTING_ADDRESS}),
    S.CANCELLED: frozenset({S.COLLECTING_ADDRESS}),
    S.PAYMENT_FAILED: frozenset({S.COLLECTING_ADDRESS}),
    S.COMPLETED: frozenset(),
}

TRANSIENT_STATES = frozenset({S.SUBMISSION_FAILED, S.CANCELLED})
BUSY_STATES = frozenset({S.SUBMITTING, S.AWAITING_GATEWAY, S.VERIFYING_PAYMENT})


class PaymentMethod(str, Enum):
    COD = "cod"
    ONLINE = "online"


class CheckoutView(str, Enum):
    CART = "cart"
    ORDER_SUCCESS = "order_success"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILURE = "payment_failure"


VIEW_PATHS = {
    CheckoutView.CART: "/cart",
    CheckoutView.ORDER_SUCCESS: "/payment-success",
    CheckoutView.PAYMENT_SUCCESS: "/payment-success",
    CheckoutView.PAYMENT_FAILURE: "/payment-failure",
}


@dataclass(frozen=True)
class Navigation:
    view: CheckoutView
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> str:
        path = VIEW_PATHS[self.view]
        query = {name: value for name, value in self.params.items() if value is not None}
        if not query:
            return path
        return f"{path}?{urlencode(query)}"


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    field: str | None = None


class CheckoutError(Exception):
    """Raised when the workflow is driven out of order."""


class InvalidTransitionError(CheckoutError):
    def __init__(self, current: CheckoutState, target: CheckoutState) -> None:
        super().__init__(f"Cannot move checkout from {current.value} to {target.value}")
        self.current = current
        self.target = target


class CheckoutWorkflow:
    """
    Explicit checkout state machine.

    Collaborators are injected so the workflow can run against any cart,
    backend client and payment widget. ``navigate`` and ``notify`` are how
    it talks back to the UI.
    """

    def __init__(
        self,
        cart: Cart,
        orders: OrderAPI,
        payments: PaymentAPI,
        gateway: PaymentGateway,
        *,
        navigate: Callable[[Navigation], None],
        notify: Callable[[Notice], None],
        settings: Settings | None = None,
        address: ShippingAddress | None = None,
        payment_method: PaymentMethod | str = PaymentMethod.COD,
    ) -> None:
        self.settings = settings or get_settings()
        self.cart = cart
        self.orders = orders
        self.payments = payments
        self.gateway = gateway
        self._navigate = navigate
        self._notify = notify

        self.address = address or ShippingAddress()
        self.payment_method = PaymentMethod(payment_method)
        self.order_notes = ""
        self.order_id: str | None = None
        self.field_errors: dict[str, str] = {}

        self._state = CheckoutState.COLLECTING_ADDRESS
        self._history = [self._state]

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def history(self) -> list[CheckoutState]:
        return list(self._history)

    @property
    def is_busy(self) -> bool:
        """True while an order or payment is in flight; place-order is disabled."""
        return self._state in BUSY_STATES

    def _transition(self, target: CheckoutState) -> None:
        if target not in ALLOWED_TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state, target)

        logger.debug("Checkout %s -> %s", self._state.value, target.value)
        self._state = target
        self._history.append(target)
        record_checkout_transition(target.value)

        if target in TRANSIENT_STATES:
            self._transition(CheckoutState.COLLECTING_ADDRESS)

    def _require_collecting(self, action: str) -> None:
        if self._state is not CheckoutState.COLLECTING_ADDRESS:
            raise CheckoutError(f"Cannot {action} while checkout is {self._state.value}")

    # ------------------------------------------------------------------
    # Address stage
    # ------------------------------------------------------------------

    async def enter(self) -> bool:
        """Entry guard; returns False when the customer was sent back to the cart."""
        if self.cart.is_empty:
            logger.info("Checkout entered with an empty cart")
            self._navigate(Navigation(CheckoutView.CART))
            return False

        if not self.gateway.is_loaded:
            try:
                await self.gateway.load(self.settings.payment_gateway_script_url)
            except Exception as exc:
                # Only the online branch needs the widget; it reports the gap itself.
                logger.warning("Failed to load payment gateway: %s", exc)
        return True

    def update_address(self, **fields: str) -> ShippingAddress:
        self._require_collecting("edit the address")
        unknown = set(fields) - set(ShippingAddress.model_fields)
        if unknown:
            raise ValueError(f"Unknown address fields: {sorted(unknown)}")

        self.address = ShippingAddress.model_validate(
            {**self.address.model_dump(), **fields}
        )
        return self.address

    def select_payment_method(self, method: PaymentMethod | str) -> None:
        self._require_collecting("change the payment method")
        self.payment_method = PaymentMethod(method)

    def set_order_notes(self, notes: str) -> None:
        self._require_collecting("edit order notes")
        self.order_notes = notes

    def place_order(self) -> bool:
        """Validate the address and open the confirmation step."""
        if self.is_busy or self._state is not CheckoutState.COLLECTING_ADDRESS:
            logger.debug("Ignoring place order while %s", self._state.value)
            return False

        if self.cart.is_empty:
            self._navigate(Navigation(CheckoutView.CART))
            return False

        missing = self.address.first_missing_field()
        if missing is not None:
            self._notify(
                Notice(
                    NoticeLevel.WARNING,
                    f"Please fill in {FIELD_LABELS[missing]}",
                    field=missing,
                )
            )
            return False

        self._transition(CheckoutState.AWAITING_CONFIRMATION)
        return True

    def cancel_confirmation(self) -> None:
        self._transition(CheckoutState.CANCELLED)

    def restart(self) -> None:
        """Return to the address stage after a failed payment."""
        self._transition(CheckoutState.COLLECTING_ADDRESS)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def confirm_address(self) -> None:
        """Submit the order with the confirmed address."""
        if self.is_busy:
            logger.debug("Ignoring confirm while %s", self._state.value)
            return

        self._transition(CheckoutState.SUBMITTING)
        self.field_errors = {}
        try:
            if self.payment_method is PaymentMethod.ONLINE:
                await self._submit_online()
            else:
                await self._submit_cod()
        except asyncio.CancelledError:
            self._recover()
            raise
        except Exception:
            logger.exception("Unexpected error during checkout submission")
            self._recover()
            raise

    def _recover(self) -> None:
        if self._state is CheckoutState.SUBMITTING:
            self._transition(CheckoutState.SUBMISSION_FAILED)
        elif self._state is CheckoutState.AWAITING_GATEWAY:
            self._transition(CheckoutState.CANCELLED)
        elif self._state is CheckoutState.VERIFYING_PAYMENT:
            self._transition(CheckoutState.PAYMENT_FAILED)

    def _order_items(self, id_key: str) -> list[dict[str, Any]]:
        return [
            {
                id_key: item.product_id,
                "quantity": item.quantity,
                "price": round_money(item.effective_price),
                "image": item.image_ref,
                "name": item.name or None,
            }
            for item in self.cart
        ]

    def _submission_failed(self, message: str, error: APIError | None = None) -> None:
        if isinstance(error, ValidationFailedError):
            self.field_errors = dict(error.field_errors)
        self._notify(Notice(NoticeLevel.ERROR, message))
        self._transition(CheckoutState.SUBMISSION_FAILED)

    @staticmethod
    def _error_message(error: APIError, fallback: str) -> str:
        if error.status_code is None:
            # No response at all: the transport's own message says why.
            message = error.message
        else:
            message = extract_message(error.payload) or fallback
        if "orderNumber" in message:
            return ORDER_NUMBER_FAILED_MESSAGE
        return message

    async def _submit_cod(self) -> None:
        summary = self.cart.summary()
        order_data = {
            "items": self._order_items("gemId"),
            "shippingAddress": self.address.to_payload(self.settings.default_country),
            "paymentMethod": self.payment_method.value,
            "orderNotes": self.order_notes,
            "totalAmount": round_money(summary.total),
        }

        try:
            response = await self.orders.create_order(order_data)
        except APIError as exc:
            self._submission_failed(self._error_message(exc, ORDER_FAILED_MESSAGE), exc)
            return

        body = response.body
        data = unwrap_envelope(body)
        explicit_failure = is_explicit_failure(body) or is_explicit_failure(data)
        if is_explicit_success(data) or is_explicit_success(body) or (
            not explicit_failure and response.status_code in (200, 201)
        ):
            self.order_id = extract_order_id(body)
            logger.info("Placed cash-on-delivery order %s", self.order_id)
            self.cart.clear()
            self._transition(CheckoutState.COMPLETED)
            self._navigate(
                Navigation(
                    CheckoutView.ORDER_SUCCESS,
                    {"orderId": self.order_id, "amount": summary.total},
                )
            )
            return

        self._submission_failed(
            extract_message(data) or extract_message(body) or ORDER_FAILED_MESSAGE
        )

    async def _submit_online(self) -> None:
        summary = self.cart.summary()
        order_data = {
            "items": self._order_items("gem"),
            "shippingAddress": self.address.to_payload(self.settings.default_country),
            "totalPrice": round_money(summary.total),
        }

        try:
            payload = await self.payments.create_payment_order(order_data)
        except APIError as exc:
            self._submission_failed(self._error_message(exc, ORDER_FAILED_MESSAGE), exc)
            return

        data = unwrap_envelope(payload)
        if not (is_explicit_success(data) or is_explicit_success(payload)):
            self._submission_failed(
                extract_message(data)
                or extract_message(payload)
                or PAYMENT_ORDER_FAILED_MESSAGE
            )
            return

        payment_order = PaymentOrder.from_payload(payload)
        if payment_order is None:
            self._submission_failed(INVALID_GATEWAY_RESPONSE_MESSAGE)
            return
        if not self.gateway.is_loaded:
            self._submission_failed(GATEWAY_NOT_LOADED_MESSAGE)
            return

        self.order_id = payment_order.order_id
        self._transition(CheckoutState.AWAITING_GATEWAY)
        outcome = await self.gateway.open(self._gateway_options(payment_order))

        if isinstance(outcome, GatewaySuccess):
            await self._verify(outcome, summary.total)
        elif isinstance(outcome, GatewayFailure):
            logger.info("Gateway reported failure for order %s", self.order_id)
            self._transition(CheckoutState.PAYMENT_FAILED)
            self._navigate(
                Navigation(
                    CheckoutView.PAYMENT_FAILURE,
                    {
                        "orderId": self.order_id,
                        "message": outcome.description or PAYMENT_FAILED_MESSAGE,
                        "reason": outcome.reason or "unknown",
                    },
                )
            )
        else:
            self._notify(Notice(NoticeLevel.INFO, PAYMENT_CANCELLED_MESSAGE))
            self._transition(CheckoutState.CANCELLED)

    def _gateway_options(self, payment_order: PaymentOrder) -> GatewayOptions:
        gateway_order = payment_order.gateway_order
        return GatewayOptions(
            key=payment_order.key_id,
            amount=gateway_order.amount,
            currency=gateway_order.currency,
            name=self.settings.store_name,
            description=f"Order {gateway_order.receipt or payment_order.order_id}",
            order_id=gateway_order.id,
            prefill={
                "name": self.address.name,
                "email": self.address.email,
                "contact": self.address.phone,
            },
            notes={"orderId": payment_order.order_id, "orderNotes": self.order_notes},
            theme_color=self.settings.payment_gateway_theme_color,
        )

    async def _verify(self, outcome: GatewaySuccess, amount: float) -> None:
        self._transition(CheckoutState.VERIFYING_PAYMENT)
        try:
            result = await self.payments.verify_payment(
                {
                    "razorpay_order_id": outcome.razorpay_order_id,
                    "razorpay_payment_id": outcome.razorpay_payment_id,
                    "razorpay_signature": outcome.razorpay_signature,
                    "orderId": self.order_id,
                }
            )
        except APIError as exc:
            logger.warning("Payment verification errored for %s: %s", self.order_id, exc)
            self._payment_failed(extract_message(exc.payload) or VERIFICATION_ERROR_MESSAGE)
            return

        if not result.success:
            self._payment_failed(result.message or VERIFICATION_FAILED_MESSAGE)
            return

        logger.info("Payment verified for order %s", self.order_id)
        self.cart.clear()
        self._transition(CheckoutState.COMPLETED)
        self._navigate(
            Navigation(
                CheckoutView.PAYMENT_SUCCESS,
                {
                    "orderId": self.order_id,
                    "paymentId": outcome.razorpay_payment_id,
                    "amount": amount,
                },
            )
        )

    def _payment_failed(self, message: str) -> None:
        self._notify(Notice(NoticeLevel.ERROR, message))
        self._transition(CheckoutState.PAYMENT_FAILED)
        self._navigate(
            Navigation(
                CheckoutView.PAYMENT_FAILURE,
                {"orderId": self.order_id, "message": message},
            )
        )


__all__ = [
    "ALLOWED_TRANSITIONS",
    "CheckoutError",
    "CheckoutState",
    "CheckoutView",
    "CheckoutWorkflow",
    "InvalidTransitionError",
    "Navigation",
    "Notice",
    "NoticeLevel",
    "PaymentMethod",
]
