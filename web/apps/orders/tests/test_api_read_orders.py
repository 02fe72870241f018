import pytest

from apps.orders.domain import new_order_id
from apps.orders.models import OrderModel

DETAIL_URL = "/order/{oid}"


def seed(**kw):
    values = dict(
        order_id=new_order_id(),
        status="PENDING",
        amount_minor=10000,
        currency="INR",
        gateway="phonepe",
        customer_name="Asha Rao",
        customer_phone="9876543210",
    )
    values.update(kw)
    return OrderModel.objects.create(**values)


@pytest.mark.django_db
def test_get_order_by_id_returns_200_and_payload(client):
    o = seed(status="SUCCESS", amount_minor=4999, transaction_id="T2401", payment_method="UPI")
    r = client.get(DETAIL_URL.format(oid=o.order_id))
    assert r.status_code == 200
    body = r.json()
    assert body["orderId"] == o.order_id
    assert body["status"] == "SUCCESS"
    assert body["amount"] == 49.99
    assert body["amountMinor"] == 4999
    assert body["currency"] == "INR"
    assert body["transactionId"] == "T2401"
    assert body["paymentMethod"] == "UPI"
    assert body["failureReason"] is None
    assert body["createdAt"]


@pytest.mark.django_db
def test_get_failed_order_includes_reason(client):
    o = seed(status="FAILED", failure_reason="TIMEOUT")
    body = client.get(DETAIL_URL.format(oid=o.order_id)).json()
    assert body["status"] == "FAILED"
    assert body["failureReason"] == "TIMEOUT"
    assert body["amount"] == 100.0
    assert body["transactionId"] is None
    assert body["paymentMethod"] is None


@pytest.mark.django_db
def test_get_order_not_found_returns_404(client):
    r = client.get(DETAIL_URL.format(oid=new_order_id()))
    assert r.status_code == 404
    assert r.json()["error"] == "NOT_FOUND"


@pytest.mark.django_db
def test_ping(client):
    r = client.get("/ping")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
