"""
Checkout orchestration.

A CheckoutSession walks CollectingDelivery -> CollectingPayment ->
Processing -> Confirmed. A failure while processing returns the session to
CollectingPayment with the cart untouched; there is no automatic retry.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, Dict, Mapping, Optional

from state.cart import CartSynchronizer
from state.identity import IdentityStore
from store import local
from store.models import Authenticated, DeliveryAddress, Order, OrderItem
from store.remote import RemoteStore
from utils.constants import (
    DELIVERY_DAYS,
    DELIVERY_FIELDS,
    FLAT_SHIPPING_FEE,
    FREE_SHIPPING_THRESHOLD,
    PAYMENT_FIELDS,
    TAX_RATE,
    address_key,
    orders_key,
)
from utils.errors import LocalStorageError, RemoteUnavailable, ValidationFailed
from utils.logger import get_logger
from utils.pure import generate_order_id
from utils.validators import validate_delivery, validate_payment

_logger = get_logger(__name__)

ORDERS = "orders"

PaymentProcessor = Callable[[Order], Awaitable[None]]


class CheckoutStage(enum.Enum):
    COLLECTING_DELIVERY = "collecting_delivery"
    COLLECTING_PAYMENT = "collecting_payment"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"


class CheckoutStatus(enum.Enum):
    CONFIRMED = "confirmed"
    INVALID = "invalid"
    EMPTY_CART = "empty_cart"
    LOGIN_REQUIRED = "login_required"
    PAYMENT_FAILED = "payment_failed"


@dataclass(frozen=True)
class OrderTotals:
    subtotal: float
    shipping: float
    tax: float
    total: float


def compute_totals(subtotal: float) -> OrderTotals:
    """Free shipping strictly above the threshold; tax on the subtotal only."""
    shipping = 0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE
    tax = round(subtotal * TAX_RATE, 2)
    return OrderTotals(subtotal, shipping, tax, subtotal + shipping + tax)


@dataclass(frozen=True)
class CheckoutOutcome:
    status: CheckoutStatus
    message: str = ""
    errors: Dict[str, str] = field(default_factory=dict)
    order: Optional[Order] = None
    saved_remotely: bool = False

    @property
    def success(self) -> bool:
        return self.status is CheckoutStatus.CONFIRMED


@dataclass(frozen=True)
class StepStatus:
    complete: bool
    valid: bool


async def simulate_payment(order: Order, delay: float = 2.0) -> None:
    """Stand-in for a payment gateway: waits, then accepts."""
    _logger.info(f"Processing {order.payment_method} payment for {order.id}...")
    await asyncio.sleep(delay)


class CheckoutSession:
    """
    One pass through the checkout flow for the current identity's cart.

    The form is a flat {field: value} mapping using the wire field names
    (fullName, pincode, upiId, cardNumber, ...).
    """

    def __init__(
        self,
        identity_store: IdentityStore,
        cart: CartSynchronizer,
        remote: RemoteStore,
        payment_processor: Optional[PaymentProcessor] = None,
        reachability_timeout: float = 3.0,
        processing_delay: float = 2.0,
    ) -> None:
        self._identity_store = identity_store
        self._cart = cart
        self._remote = remote
        self._reachability_timeout = reachability_timeout
        self._payment_processor = payment_processor or (
            lambda order: simulate_payment(order, processing_delay)
        )

        self.stage = CheckoutStage.COLLECTING_DELIVERY
        self.payment_method = "upi"
        self.form: Dict[str, str] = {f: "" for f in DELIVERY_FIELDS}
        self.form.update({"addressLine2": "", "country": "India"})
        for fields in PAYMENT_FIELDS.values():
            self.form.update({f: "" for f in fields})
        self.errors: Dict[str, str] = {}

    # ---------------------------
    # Form handling
    # ---------------------------

    async def prefill(self) -> Dict[str, str]:
        """Fill name/email from the identity, then any saved delivery address."""
        user = self._identity_store.current
        if user.is_guest:
            return self.form
        self.form["fullName"] = user.username or ""
        self.form["email"] = user.email or ""
        try:
            saved = await local.get_json(address_key(user.id))
        except LocalStorageError as e:
            _logger.warning(f"Could not load saved address: {e}")
            saved = None
        if isinstance(saved, dict):
            self.form.update({k: str(v) for k, v in saved.items() if v is not None})
        return self.form

    def update(self, values: Mapping[str, str]) -> None:
        self.form.update({k: "" if v is None else str(v) for k, v in values.items()})

    def select_payment_method(self, method: str) -> None:
        if method not in PAYMENT_FIELDS:
            raise ValueError(f"Unsupported payment method: {method}")
        self.payment_method = method

    def delivery_errors(self) -> Dict[str, str]:
        return validate_delivery(self.form)

    def payment_errors(self, today: Optional[date] = None) -> Dict[str, str]:
        return validate_payment(self.payment_method, self.form, today)

    def validate(self, today: Optional[date] = None) -> None:
        """Raise ValidationFailed with every failing delivery and payment field."""
        self.errors = {**self.delivery_errors(), **self.payment_errors(today)}
        if self.errors:
            raise ValidationFailed(self.errors)

    def completion_status(self) -> Dict[str, StepStatus]:
        payment_fields = PAYMENT_FIELDS[self.payment_method]
        return {
            "delivery": StepStatus(
                complete=all(self.form.get(f, "").strip() for f in DELIVERY_FIELDS),
                valid=not self.delivery_errors(),
            ),
            "payment": StepStatus(
                complete=all(self.form.get(f, "").strip() for f in payment_fields),
                valid=not self.payment_errors(),
            ),
        }

    def submit_delivery(self) -> Dict[str, str]:
        """Validate delivery fields; advance to payment when they all pass."""
        self.errors = self.delivery_errors()
        if not self.errors:
            self.stage = CheckoutStage.COLLECTING_PAYMENT
        return self.errors

    def back_to_delivery(self) -> None:
        if self.stage is CheckoutStage.COLLECTING_PAYMENT:
            self.stage = CheckoutStage.COLLECTING_DELIVERY

    # ---------------------------
    # Totals & order building
    # ---------------------------

    def totals(self) -> OrderTotals:
        return compute_totals(self._cart.total())

    def build_order(self, user: Authenticated, now: Optional[datetime] = None) -> Order:
        now = now or datetime.now()
        items = tuple(OrderItem.from_line_item(i) for i in self._cart.current_items())
        totals = compute_totals(sum(i.total for i in items))
        if self.payment_method == "upi":
            details = {"upiId": self.form["upiId"]}
        else:
            card = self.form["cardNumber"].replace(" ", "")
            details = {"cardLast4": card[-4:], "cardHolder": self.form["cardHolder"]}
        return Order(
            id=generate_order_id(now),
            user_id=user.id,
            user_name=user.username,
            user_email=user.email,
            delivery_address=DeliveryAddress.from_json(self.form),
            items=items,
            subtotal=totals.subtotal,
            shipping=totals.shipping,
            tax=totals.tax,
            total=totals.total,
            payment_method=self.payment_method,
            payment_details=details,
            status="confirmed",
            order_date=now.isoformat(),
            estimated_delivery=(now + timedelta(days=DELIVERY_DAYS)).isoformat(),
        )

    # ---------------------------
    # Submission
    # ---------------------------

    async def place_order(self, today: Optional[date] = None) -> CheckoutOutcome:
        if not self._cart.current_items():
            return CheckoutOutcome(CheckoutStatus.EMPTY_CART, "Your cart is empty")
        user = self._identity_store.current
        if user.is_guest:
            return CheckoutOutcome(
                CheckoutStatus.LOGIN_REQUIRED, "Please log in to complete your purchase"
            )

        try:
            self.validate(today)
        except ValidationFailed as e:
            return CheckoutOutcome(
                CheckoutStatus.INVALID,
                "Please fix all errors before proceeding",
                errors=e.errors,
            )

        self.stage = CheckoutStage.PROCESSING
        order = self.build_order(user)
        try:
            await self._payment_processor(order)
        except Exception:
            _logger.exception(f"Payment processing failed for {order.id}")
            self.stage = CheckoutStage.COLLECTING_PAYMENT
            return CheckoutOutcome(
                CheckoutStatus.PAYMENT_FAILED, "Payment failed. Please try again."
            )

        saved_remotely = await self._save_remote(order)
        saved_locally = await self._save_local(user, order)
        if not (saved_remotely or saved_locally):
            self.stage = CheckoutStage.COLLECTING_PAYMENT
            return CheckoutOutcome(
                CheckoutStatus.PAYMENT_FAILED,
                "Your order could not be saved. Please try again.",
            )

        cleared = await self._cart.clear()
        if cleared.failed:
            _logger.warning(f"Cart cleared locally, {len(cleared.failed)} remote record(s) remain")
        self.stage = CheckoutStage.CONFIRMED
        _logger.info(f"Order {order.id} confirmed, total {order.total}")
        return CheckoutOutcome(
            CheckoutStatus.CONFIRMED,
            "Payment successful! Order placed.",
            order=order,
            saved_remotely=saved_remotely,
        )

    async def _save_remote(self, order: Order) -> bool:
        if not await self._remote.is_reachable(ORDERS, self._reachability_timeout):
            return False
        try:
            await self._remote.create(ORDERS, order.to_json())
        except RemoteUnavailable as e:
            _logger.warning(f"Failed to save order {order.id} remotely: {e}")
            return False
        return True

    async def _save_local(self, user: Authenticated, order: Order) -> bool:
        try:
            await local.append_json(orders_key(user.id), order.to_json())
        except LocalStorageError as e:
            _logger.error(f"Failed to save order {order.id} locally: {e}")
            return False

        try:
            await local.set_json(address_key(user.id), order.delivery_address.to_json())
        except LocalStorageError as e:
            _logger.warning(f"Order {order.id} saved but delivery address was not: {e}")
        return True
