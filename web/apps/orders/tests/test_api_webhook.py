"""API tests for the signed payment webhook."""

import json

import pytest

from apps.orders.checksum import webhook_digest
from apps.orders.domain import StoreError, new_order_id
from apps.orders.models import OrderModel
from apps.orders.repository import OrderRepository

WEBHOOK_URL = "/payment-webhook"
WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def pending_order(db):
    return OrderModel.objects.create(
        order_id=new_order_id(),
        status="PENDING",
        amount_minor=10000,
        currency="INR",
        gateway="cashfree",
        customer_name="Asha Rao",
        customer_phone="9876543210",
    )


def event(order_id, payment_status="SUCCESS", cf_payment_id=885301, group="upi"):
    return json.dumps(
        {
            "type": "PAYMENT_SUCCESS_WEBHOOK",
            "event_time": "2024-03-01T12:00:00+05:30",
            "data": {
                "order": {"order_id": order_id, "order_amount": 100.0, "order_currency": "INR"},
                "payment": {
                    "cf_payment_id": cf_payment_id,
                    "payment_status": payment_status,
                    "payment_amount": 100.0,
                    "payment_group": group,
                },
            },
        }
    ).encode()


def post(client, raw, signature=None):
    headers = {}
    if signature is not None:
        headers["HTTP_X_WEBHOOK_SIGNATURE"] = signature
    return client.post(WEBHOOK_URL, data=raw, content_type="application/json", **headers)


def signed(client, raw):
    return post(client, raw, webhook_digest(raw, WEBHOOK_SECRET))


@pytest.mark.django_db
def test_signed_success_webhook_finalizes_order(client, pending_order):
    r = signed(client, event(pending_order.order_id))
    assert r.status_code == 200
    assert r.json() == {"ok": True, "orderId": pending_order.order_id, "status": "SUCCESS"}
    pending_order.refresh_from_db()
    assert pending_order.status == "SUCCESS"
    assert pending_order.transaction_id == "885301"
    assert pending_order.payment_method == "upi"


@pytest.mark.django_db
def test_signed_failed_webhook_records_reason(client, pending_order):
    r = signed(client, event(pending_order.order_id, payment_status="FAILED"))
    assert r.json()["status"] == "FAILED"
    pending_order.refresh_from_db()
    assert pending_order.status == "FAILED"
    assert pending_order.failure_reason == "FAILED"


@pytest.mark.django_db
def test_pending_webhook_leaves_order_pending(client, pending_order):
    r = signed(client, event(pending_order.order_id, payment_status="NOT_ATTEMPTED"))
    assert r.status_code == 200
    assert r.json()["status"] == "PENDING"
    pending_order.refresh_from_db()
    assert pending_order.status == "PENDING"


@pytest.mark.django_db
@pytest.mark.parametrize("signature", [None, "", "deadbeef", webhook_digest(b"other body", WEBHOOK_SECRET)])
def test_bad_signature_is_rejected_without_mutation(client, pending_order, signature):
    r = post(client, event(pending_order.order_id), signature)
    assert r.status_code == 403
    assert r.json()["error"] == "INVALID_SIGNATURE"
    pending_order.refresh_from_db()
    assert pending_order.status == "PENDING"
    assert pending_order.transaction_id is None


@pytest.mark.django_db
def test_signature_with_wrong_secret_is_rejected(client, pending_order):
    raw = event(pending_order.order_id)
    r = post(client, raw, webhook_digest(raw, "test-salt-key"))
    assert r.status_code == 403


@pytest.mark.django_db
def test_duplicate_and_conflicting_webhooks_keep_first_status(client, pending_order):
    signed(client, event(pending_order.order_id))
    r = signed(client, event(pending_order.order_id, payment_status="FAILED", cf_payment_id=999))
    assert r.status_code == 200
    assert r.json()["status"] == "SUCCESS"
    pending_order.refresh_from_db()
    assert pending_order.status == "SUCCESS"
    assert pending_order.transaction_id == "885301"


@pytest.mark.django_db
def test_unknown_order_is_acknowledged(client):
    r = signed(client, event(new_order_id()))
    assert r.status_code == 202
    assert r.json()["error"] == "ORDER_NOT_FOUND"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "raw",
    [b"not json", b'{"foo": 1}', b'{"data": {"order": {"order_id": ""}, "payment": {"payment_status": "SUCCESS"}}}'],
)
def test_malformed_payload_is_rejected(client, raw):
    r = signed(client, raw)
    assert r.status_code == 400
    assert r.json()["error"] == "INVALID_PAYLOAD"


@pytest.mark.django_db
def test_store_failure_asks_vendor_to_retry(client, pending_order, monkeypatch):
    def broken(self, *args, **kwargs):
        raise StoreError("db down")

    monkeypatch.setattr(OrderRepository, "finalize", broken)
    r = signed(client, event(pending_order.order_id))
    assert r.status_code == 500
    assert r.json()["error"] == "STORE_ERROR"
