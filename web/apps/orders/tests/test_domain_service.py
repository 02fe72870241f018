"""Unit tests for the OrderService lifecycle.

These tests validate order creation, payment confirmation and the
terminal-state latch using the in-memory store and a recording gateway,
so no database or network is involved.
"""

from decimal import Decimal

import pytest

from apps.orders.adapters import InMemoryOrderStore
from apps.orders.domain import (
    Customer,
    GatewayError,
    GatewayReason,
    InitiateResult,
    OrderNotFound,
    OrderService,
    OrderStatus,
    StatusResult,
    StoreError,
    ValidationError,
    to_minor_units,
)


class RecordingGateway:
    """Gateway stub that records calls and returns a configurable state."""

    name = "recording"

    def __init__(self, state=OrderStatus.SUCCESS, initiate_error=None, status_error=None):
        self.state = state
        self.initiate_error = initiate_error
        self.status_error = status_error
        self.initiate_calls = []
        self.status_calls = []

    def initiate(self, order):
        self.initiate_calls.append(order.order_id)
        if self.initiate_error:
            raise self.initiate_error
        return InitiateResult(f"https://pay.test/{order.order_id}", "VTX1")

    def check_status(self, order_id):
        self.status_calls.append(order_id)
        if self.status_error:
            raise self.status_error
        code = {OrderStatus.SUCCESS: "PAYMENT_SUCCESS", OrderStatus.PENDING: "PAYMENT_PENDING"}.get(
            self.state, "PAYMENT_DECLINED"
        )
        return StatusResult(self.state, vendor_txn_id="T2401", payment_method="UPI", code=code)


class FailingFinalizeStore(InMemoryOrderStore):
    def finalize(self, *args, **kwargs):
        raise StoreError("db down")


CUSTOMER = Customer(name="A", phone="9999999999")


def make_service(gateway=None, store=None):
    return OrderService(gateway or RecordingGateway(), store or InMemoryOrderStore())


def test_create_order_persists_pending_with_minor_units():
    """Example flow: amount 100 -> PENDING order with amount_minor 10000."""
    store = InMemoryOrderStore()
    service = make_service(store=store)
    created = service.create_order(CUSTOMER, 100)
    stored = store.get(created.order_id)
    assert stored.status == OrderStatus.PENDING
    assert stored.amount_minor == 10000
    assert stored.gateway == "recording"
    assert created.redirect_url == f"https://pay.test/{created.order_id}"
    assert len(created.order_id) == 32


def test_order_ids_are_unique():
    service = make_service()
    ids = {service.create_order(CUSTOMER, 10).order_id for _ in range(20)}
    assert len(ids) == 20


@pytest.mark.parametrize(
    "amount,expected",
    [(100, 10000), ("49.99", 4999), ("10.005", 1001), (Decimal("1"), 100), (0.29, 29)],
)
def test_amount_minor_is_rounded_major_times_hundred(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.mark.parametrize(
    "customer,amount,code",
    [
        (CUSTOMER, 0, "INVALID_AMOUNT"),
        (CUSTOMER, -5, "INVALID_AMOUNT"),
        (CUSTOMER, "0.50", "INVALID_AMOUNT"),
        (CUSTOMER, "abc", "INVALID_AMOUNT"),
        (CUSTOMER, 10**20, "INVALID_AMOUNT"),
        (Customer(name="", phone="9999999999"), 100, "MISSING_FIELDS"),
        (Customer(name="A", phone=" "), 100, "MISSING_FIELDS"),
        (CUSTOMER, None, "MISSING_FIELDS"),
    ],
)
def test_invalid_create_writes_nothing_and_skips_gateway(customer, amount, code):
    gateway = RecordingGateway()
    store = InMemoryOrderStore()
    service = make_service(gateway, store)
    with pytest.raises(ValidationError) as e:
        service.create_order(customer, amount)
    assert e.value.code == code
    assert store.writes == 0
    assert gateway.initiate_calls == []


def test_initiate_failure_marks_order_failed():
    """A gateway timeout leaves the order explicitly FAILED, not PENDING."""
    store = InMemoryOrderStore()
    gateway = RecordingGateway(initiate_error=GatewayError(GatewayReason.TIMEOUT))
    service = make_service(gateway, store)
    with pytest.raises(GatewayError) as e:
        service.create_order(CUSTOMER, 100)
    assert e.value.reason == GatewayReason.TIMEOUT
    stored = store.get(e.value.order_id)
    assert stored.status == OrderStatus.FAILED
    assert stored.failure_reason == "TIMEOUT"
    assert len(gateway.initiate_calls) == 1


def test_confirm_payment_success_sets_transaction_details():
    store = InMemoryOrderStore()
    service = make_service(store=store)
    oid = service.create_order(CUSTOMER, 100).order_id
    order = service.confirm_payment(oid)
    assert order.status == OrderStatus.SUCCESS
    assert order.transaction_id == "T2401"
    assert order.payment_method == "UPI"
    assert store.get(oid).status == OrderStatus.SUCCESS


def test_confirm_payment_twice_is_a_noop():
    gateway = RecordingGateway()
    store = InMemoryOrderStore()
    service = make_service(gateway, store)
    oid = service.create_order(CUSTOMER, 100).order_id
    service.confirm_payment(oid)
    writes = store.writes
    service.confirm_payment(oid)
    assert store.writes == writes
    assert gateway.status_calls == [oid]


def test_success_is_never_downgraded():
    gateway = RecordingGateway()
    service = make_service(gateway)
    oid = service.create_order(CUSTOMER, 100).order_id
    service.confirm_payment(oid)
    order = service.apply_webhook_event(oid, StatusResult(OrderStatus.FAILED, code="FAILED"))
    assert order.status == OrderStatus.SUCCESS
    assert order.transaction_id == "T2401"


def test_failed_is_never_upgraded():
    gateway = RecordingGateway(state=OrderStatus.FAILED)
    service = make_service(gateway)
    oid = service.create_order(CUSTOMER, 100).order_id
    assert service.confirm_payment(oid).failure_reason == "PAYMENT_DECLINED"
    order = service.apply_webhook_event(oid, StatusResult(OrderStatus.SUCCESS, vendor_txn_id="late"))
    assert order.status == OrderStatus.FAILED
    assert order.transaction_id == "T2401"


def test_pending_vendor_state_leaves_order_pending():
    service = make_service(RecordingGateway(state=OrderStatus.PENDING))
    oid = service.create_order(CUSTOMER, 100).order_id
    assert service.confirm_payment(oid).status == OrderStatus.PENDING


def test_verification_error_fails_order():
    gateway = RecordingGateway(status_error=GatewayError(GatewayReason.HTTP_ERROR))
    service = make_service(gateway)
    oid = service.create_order(CUSTOMER, 100).order_id
    order = service.confirm_payment(oid)
    assert order.status == OrderStatus.FAILED
    assert order.failure_reason == "HTTP_ERROR"


def test_store_failure_on_confirm_still_returns_verified_outcome():
    store = FailingFinalizeStore()
    service = make_service(store=store)
    oid = service.create_order(CUSTOMER, 100).order_id
    order = service.confirm_payment(oid)
    assert order.status == OrderStatus.SUCCESS
    assert store.get(oid).status == OrderStatus.PENDING


def test_store_failure_on_webhook_propagates():
    store = FailingFinalizeStore()
    service = make_service(store=store)
    oid = service.create_order(CUSTOMER, 100).order_id
    with pytest.raises(StoreError):
        service.apply_webhook_event(oid, StatusResult(OrderStatus.SUCCESS))


def test_unknown_order_raises_not_found():
    service = make_service()
    with pytest.raises(OrderNotFound):
        service.confirm_payment("missing")
    with pytest.raises(OrderNotFound):
        service.get_order("missing")


def test_finalize_rejects_pending():
    service = make_service()
    oid = service.create_order(CUSTOMER, 100).order_id
    with pytest.raises(ValueError):
        service.finalize(oid, OrderStatus.PENDING)
