"""In-process stub adapters for the orders domain ports.

These stubs implement ``GatewayPort`` and ``OrderStorePort`` without any
network or database calls. They are intended for unit tests and local
development where deterministic behavior is useful and the real vendor
sandbox is not reachable.
"""

from dataclasses import replace
from typing import Dict, Optional

from django.utils import timezone

from .domain import GatewayPort, InitiateResult, Order, OrderStatus, OrderStorePort, StatusResult


class GatewayStub(GatewayPort):
    """Stub implementation of ``GatewayPort``.

    Every initiation succeeds with a fake pay-page URL and every status
    query reports ``state`` (SUCCESS unless told otherwise).
    """

    name = "stub"

    def __init__(self, state: OrderStatus = OrderStatus.SUCCESS, payment_method: str = "UPI"):
        self.state = state
        self.payment_method = payment_method

    def initiate(self, order: Order) -> InitiateResult:
        """Return a deterministic pay-page URL for ``order``."""
        return InitiateResult(
            redirect_url=f"https://pay.stub.local/checkout/{order.order_id}",
            vendor_txn_id=order.order_id,
        )

    def check_status(self, order_id: str) -> StatusResult:
        """Report the configured state with a transaction id derived from the order id."""
        return StatusResult(
            state=self.state,
            vendor_txn_id=f"STUB{order_id[:16].upper()}",
            payment_method=self.payment_method,
            code="PAYMENT_SUCCESS" if self.state is OrderStatus.SUCCESS else "PAYMENT_ERROR",
        )


class InMemoryOrderStore(OrderStorePort):
    """Dict-backed ``OrderStorePort`` with the same latch rule as the ORM store."""

    def __init__(self):
        self.orders: Dict[str, Order] = {}
        self.writes = 0

    def add(self, order: Order) -> Order:
        now = timezone.now()
        order.created_at = order.updated_at = now
        self.orders[order.order_id] = replace(order)
        self.writes += 1
        return order

    def get(self, order_id: str) -> Optional[Order]:
        order = self.orders.get(order_id)
        return replace(order) if order else None

    def finalize(self, order_id, status, transaction_id=None, payment_method=None, failure_reason=None):
        order = self.orders.get(order_id)
        if order is None:
            return None, False
        if order.status is not OrderStatus.PENDING:
            return replace(order), False
        order.status = status
        order.transaction_id = transaction_id
        order.payment_method = payment_method
        order.failure_reason = failure_reason
        order.updated_at = timezone.now()
        self.writes += 1
        return replace(order), True
