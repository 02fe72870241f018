"""Domain models, ports and service for payment orders.

This module contains the dataclasses used as DTOs for orders, the error
taxonomy shared by views and adapters, protocol definitions (ports) for the
payment gateway and the order store, and the domain service that owns the
order lifecycle::

    PENDING --(vendor confirms)--> SUCCESS
       |
       +----(vendor declines / initiate or verification fails)--> FAILED

SUCCESS and FAILED are terminal: once an order reaches one of them no
later call can move it again.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


# ---- Enums ----
class OrderStatus(str, Enum):
    """Possible order statuses.

    Vendor-specific intermediate states are mapped onto these three by
    the gateway adapters.
    """

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class GatewayReason(str, Enum):
    """Why a gateway call failed."""

    INVALID_RESPONSE = "INVALID_RESPONSE"
    HTTP_ERROR = "HTTP_ERROR"
    TIMEOUT = "TIMEOUT"


# ---- Errors ----
class PaymentError(Exception):
    """Base class for order and gateway errors.

    Every error carries a short machine-readable ``code`` that views put
    in JSON bodies and in failure redirect query strings.
    """

    code = "PAYMENT_ERROR"

    def __init__(self, message: str = "", code: str | None = None):
        if code:
            self.code = code
        super().__init__(message or self.code)


class ValidationError(PaymentError):
    """The create-order request is malformed. Nothing was persisted."""

    code = "VALIDATION_ERROR"


class GatewayError(PaymentError):
    """The vendor call failed or returned malformed data."""

    code = "GATEWAY_ERROR"

    def __init__(self, reason: GatewayReason, message: str = "", order_id: Optional[str] = None):
        self.reason = reason
        self.order_id = order_id
        super().__init__(message or reason.value)


class StoreError(PaymentError):
    """The order store could not be read or written."""

    code = "STORE_ERROR"


class SignatureError(PaymentError):
    """An inbound webhook signature did not match."""

    code = "INVALID_SIGNATURE"


class MissingIdentifier(PaymentError):
    """A callback arrived without an order identifier."""

    code = "MISSING_ORDER_ID"


class OrderNotFound(PaymentError):
    """No order exists for the given identifier."""

    code = "ORDER_NOT_FOUND"


# ---- Helpers ----
MINOR_UNITS = Decimal("100")
# Upper bound for stored amounts; fits a signed 64-bit column.
MAX_AMOUNT_MINOR = 10**17


def to_minor_units(amount) -> int:
    """Convert a major-unit amount to integer minor units.

    Rounds half up, so ``10.005`` rupees becomes ``1001`` paise.

    Args:
        amount: Amount in major units (int, str, float or Decimal).

    Returns:
        int: Amount in minor units.

    Raises:
        ValidationError: If ``amount`` is not a finite number.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError("amount must be a number", code="INVALID_AMOUNT") from e
    if not value.is_finite():
        raise ValidationError("amount must be a number", code="INVALID_AMOUNT")
    return int((value * MINOR_UNITS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_units(amount_minor: int) -> Decimal:
    """Convert minor units back to a two-decimal major-unit amount."""
    return (Decimal(amount_minor) / MINOR_UNITS).quantize(Decimal("0.01"))


def new_order_id() -> str:
    """Return a fresh random 128-bit order identifier (32 hex chars)."""
    return uuid.uuid4().hex


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class Customer:
    """Customer details attached to an order.

    The values are passed to the gateway and stored, never interpreted.
    """

    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    service: Optional[str] = None


@dataclass
class Order:
    """Container for order data.

    Attributes:
        order_id: Unique identifier, also the vendor-facing transaction id.
        customer: Customer details.
        amount_minor: Amount in integer minor units (paise for INR).
        currency: ISO currency code.
        status: Current OrderStatus.
        gateway: Name of the gateway that handles the order.
        transaction_id: Vendor transaction id, set once the vendor confirms.
        payment_method: Instrument reported by the vendor (UPI, CARD, ...).
        failure_reason: Short code recorded when the order fails.
    """

    order_id: str
    customer: Customer
    amount_minor: int
    currency: str = "INR"
    status: OrderStatus = OrderStatus.PENDING
    gateway: str = ""
    transaction_id: Optional[str] = None
    payment_method: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def amount_major(self) -> Decimal:
        return to_major_units(self.amount_minor)


@dataclass(frozen=True)
class InitiateResult:
    """Outcome of a successful payment initiation."""

    redirect_url: str
    vendor_txn_id: Optional[str] = None


@dataclass(frozen=True)
class StatusResult:
    """Payment state reported by the vendor.

    Attributes:
        state: Vendor state mapped onto OrderStatus.
        vendor_txn_id: Vendor transaction id, when reported.
        payment_method: Instrument type, when reported.
        code: Raw vendor status code, kept as the failure reason.
    """

    state: OrderStatus
    vendor_txn_id: Optional[str] = None
    payment_method: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class CreatedOrder:
    """What the create endpoint hands back to the browser."""

    order_id: str
    redirect_url: str
    vendor_txn_id: Optional[str] = field(default=None, compare=False)


# ---- Ports (DIP) ----
class GatewayPort(Protocol):
    """Port describing the payment gateway operations used by the domain.

    Implementations make exactly one attempt per call and raise
    ``GatewayError`` on transport errors, timeouts and malformed replies.
    """

    name: str

    def initiate(self, order: Order) -> InitiateResult:
        """Register the order with the vendor and return the pay-page URL."""
        raise NotImplementedError()

    def check_status(self, order_id: str) -> StatusResult:
        """Query the vendor for the current payment state of an order."""
        raise NotImplementedError()


class OrderStorePort(Protocol):
    """Port describing order persistence.

    Implementations raise ``StoreError`` when the backing store fails.
    """

    def add(self, order: Order) -> Order:
        raise NotImplementedError()

    def get(self, order_id: str) -> Optional[Order]:
        raise NotImplementedError()

    def finalize(
        self,
        order_id: str,
        status: OrderStatus,
        transaction_id: Optional[str] = None,
        payment_method: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> tuple[Optional[Order], bool]:
        """Move a PENDING order to ``status``.

        Returns:
            tuple: ``(order, changed)`` where ``order`` is the stored record
            after the call (None if unknown) and ``changed`` is False when the
            order was already terminal.
        """
        raise NotImplementedError()


# ---- Domain service ----
class OrderService:
    """Domain service that owns the order lifecycle.

    It is the only component that creates orders and moves them out of
    PENDING. Views and callback handlers call into it; adapters never
    touch order status themselves.
    """

    def __init__(
        self,
        gateway: GatewayPort,
        store: OrderStorePort,
        currency: str = "INR",
        min_amount: Decimal = Decimal("1"),
    ):
        """Initialize the service with required dependencies.

        Args:
            gateway: GatewayPort used to initiate and verify payments.
            store: OrderStorePort holding order records.
            currency: Currency for new orders.
            min_amount: Smallest accepted amount in major units.
        """
        self.gateway = gateway
        self.store = store
        self.currency = currency
        self.min_amount = Decimal(str(min_amount))

    def validate(self, customer: Customer, amount) -> int:
        """Check a create request and return the amount in minor units.

        Raises:
            ValidationError: 'MISSING_FIELDS' when name or phone is blank,
                'INVALID_AMOUNT' when the amount is not a number or is below
                the configured minimum or above ``MAX_AMOUNT_MINOR``.
        """
        missing = [k for k, v in (("name", customer.name), ("mobileNumber", customer.phone)) if not (v or "").strip()]
        if amount is None or amount == "":
            missing.append("amount")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", code="MISSING_FIELDS")

        amount_minor = to_minor_units(amount)
        if amount_minor < to_minor_units(self.min_amount):
            raise ValidationError(
                f"amount must be at least {self.min_amount}", code="INVALID_AMOUNT"
            )
        if amount_minor > MAX_AMOUNT_MINOR:
            raise ValidationError("amount is too large", code="INVALID_AMOUNT")
        return amount_minor

    def create_order(self, customer: Customer, amount) -> CreatedOrder:
        """Create an order and start the payment with the gateway.

        The order is persisted as PENDING before the vendor call so a
        record always exists for support. If initiation fails the order is
        moved to FAILED with the gateway reason and the error is re-raised;
        there is no retry.

        Args:
            customer: Customer details.
            amount: Amount in major units.

        Returns:
            CreatedOrder: order id and vendor redirect URL.

        Raises:
            ValidationError: Invalid request; nothing persisted, no vendor call.
            StoreError: The PENDING record could not be written.
            GatewayError: The vendor call failed; the order is now FAILED.
        """
        amount_minor = self.validate(customer, amount)
        order = Order(
            order_id=new_order_id(),
            customer=customer,
            amount_minor=amount_minor,
            currency=self.currency,
            gateway=self.gateway.name,
        )
        self.store.add(order)
        logger.info(
            "order created",
            extra={"order_id": order.order_id, "amount_minor": amount_minor, "gateway": order.gateway},
        )

        try:
            result = self.gateway.initiate(order)
        except GatewayError as e:
            logger.warning(
                "payment initiation failed",
                extra={"order_id": order.order_id, "reason": e.reason.value},
            )
            try:
                self.finalize(order.order_id, OrderStatus.FAILED, failure_reason=e.reason.value)
            except StoreError:
                logger.exception("could not mark order failed", extra={"order_id": order.order_id})
            e.order_id = order.order_id
            raise

        return CreatedOrder(order.order_id, result.redirect_url, result.vendor_txn_id)

    def get_order(self, order_id: str) -> Order:
        """Return the stored order.

        Raises:
            OrderNotFound: If no order has this id.
        """
        order = self.store.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def confirm_payment(self, order_id: str) -> Order:
        """Finalize an order after the browser returns from the vendor.

        The callback payload is not trusted; the vendor is queried
        independently. A terminal order is returned as-is without calling
        the vendor again. A vendor that still reports PENDING leaves the
        order untouched. A verification error counts as a failed payment.
        If the terminal status cannot be written the verified outcome is
        still returned so the browser redirect can happen.

        Raises:
            OrderNotFound: If no order has this id.
            StoreError: If the order could not be loaded.
        """
        order = self.get_order(order_id)
        if order.status.is_terminal:
            logger.info("order already finalized", extra={"order_id": order_id, "status": order.status.value})
            return order

        try:
            result = self.gateway.check_status(order_id)
        except GatewayError as e:
            logger.warning("status verification failed", extra={"order_id": order_id, "reason": e.reason.value})
            result = StatusResult(state=OrderStatus.FAILED, code=e.reason.value)

        return self._apply(order, result, best_effort=True)

    def apply_webhook_event(self, order_id: str, result: StatusResult) -> Order:
        """Finalize an order from a signature-verified webhook payload.

        Raises:
            OrderNotFound: If no order has this id.
            StoreError: If the terminal status could not be written.
        """
        return self._apply(self.get_order(order_id), result)

    def _apply(self, order: Order, result: StatusResult, best_effort: bool = False) -> Order:
        if result.state is OrderStatus.PENDING:
            logger.info("payment still pending", extra={"order_id": order.order_id})
            return order
        changes = {
            "status": result.state,
            "transaction_id": result.vendor_txn_id,
            "payment_method": result.payment_method,
            "failure_reason": None if result.state is OrderStatus.SUCCESS else (result.code or "PAYMENT_FAILED"),
        }
        try:
            return self.finalize(order.order_id, **changes)
        except StoreError:
            if not best_effort:
                raise
            # The browser still gets the verified outcome; the row stays
            # PENDING until a later callback writes it.
            logger.exception("could not store order status", extra={"order_id": order.order_id})
            return replace(order, **changes)

    def finalize(
        self,
        order_id: str,
        status: OrderStatus,
        transaction_id: Optional[str] = None,
        payment_method: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> Order:
        """Latch an order into a terminal status.

        Repeating the call, with the same or a different terminal status,
        leaves the stored record unchanged and returns it.

        Raises:
            ValueError: If ``status`` is not terminal.
            OrderNotFound: If no order has this id.
        """
        if not status.is_terminal:
            raise ValueError("finalize requires a terminal status")
        order, changed = self.store.finalize(
            order_id,
            status,
            transaction_id=transaction_id,
            payment_method=payment_method,
            failure_reason=failure_reason,
        )
        if order is None:
            raise OrderNotFound(order_id)
        if changed:
            logger.info("order finalized", extra={"order_id": order_id, "status": status.value})
        else:
            logger.info(
                "duplicate finalization ignored",
                extra={"order_id": order_id, "requested": status.value, "status": order.status.value},
            )
        return order
