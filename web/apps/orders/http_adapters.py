"""HTTP gateway clients for PhonePe and Cashfree.

This module implements ``GatewayPort`` for the two supported vendors using
``httpx``. Both clients:

- Propagate ``X-Request-ID`` from the ContextVar set by the request
  middleware, so vendor calls can be correlated with inbound requests.
- Make exactly one attempt per call with a bounded timeout. Retrying a
  payment initiation is an operator decision, never automatic.
- Map every failure onto ``GatewayError`` with a ``GatewayReason``:
  timeouts -> TIMEOUT, transport errors and non-2xx -> HTTP_ERROR,
  unparseable or incomplete bodies -> INVALID_RESPONSE.

The PhonePe client signs requests with ``checksum.sign``; Cashfree
authenticates with client id/secret headers.
"""

import logging
import re
from typing import Optional

import httpx
from django.utils.module_loading import import_string

from .checksum import b64, encode_payload, sign
from .config import PaymentsConfig
from .domain import (
    GatewayError,
    GatewayPort,
    GatewayReason,
    InitiateResult,
    Order,
    OrderStatus,
    StatusResult,
)

REQUEST_ID_CTX = import_string("checkout.middleware.REQUEST_ID_CTX")

logger = logging.getLogger(__name__)


# ---------------- Helpers ---------------- #

def _request_headers(extra: Optional[dict] = None) -> dict:
    """Build base headers including X-Request-ID and any extras.

    Args:
        extra: Optional dict of additional headers to include.

    Returns:
        dict: Final headers dictionary for the outgoing request.
    """
    headers: dict[str, str] = {"Accept": "application/json", "Content-Type": "application/json"}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _dig(data, *keys):
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _digits(value: str) -> str:
    return re.sub(r"[^0-9A-Za-z]", "", value or "")


class _HttpGatewayClient(GatewayPort):
    """Shared transport for the vendor clients."""

    name = ""

    def __init__(self, config: PaymentsConfig, timeout: float | None = None):
        self.config = config
        self.base_url = config.base_url
        self.timeout = timeout or config.timeout_secs

    def _call(self, method: str, path: str, **kwargs) -> dict:
        """Issue one HTTP request and return the decoded JSON object.

        Raises:
            GatewayError: TIMEOUT, HTTP_ERROR or INVALID_RESPONSE.
        """
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = getattr(client, method)(url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("gateway timeout", extra={"gateway": self.name, "path": path})
            raise GatewayError(GatewayReason.TIMEOUT, f"{self.name} timed out") from e
        except httpx.RequestError as e:
            logger.error("gateway transport error", extra={"gateway": self.name, "path": path, "error": str(e)})
            raise GatewayError(GatewayReason.HTTP_ERROR, f"{self.name} request failed") from e

        if not 200 <= resp.status_code < 300:
            logger.error(
                "gateway returned error status",
                extra={"gateway": self.name, "path": path, "status_code": resp.status_code},
            )
            raise GatewayError(GatewayReason.HTTP_ERROR, f"{self.name} returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise GatewayError(GatewayReason.INVALID_RESPONSE, f"{self.name} returned non-JSON body") from e
        if not isinstance(data, dict):
            raise GatewayError(GatewayReason.INVALID_RESPONSE, f"{self.name} returned unexpected body")
        return data


# ---------------- PhonePe ---------------- #

PHONEPE_PAY_PATH = "/pg/v1/pay"
PHONEPE_STATUS_PATH = "/pg/v1/status/{merchant_id}/{order_id}"

PHONEPE_SUCCESS_CODES = {"PAYMENT_SUCCESS"}
# Transaction still in flight at PhonePe; the order stays PENDING.
PHONEPE_PENDING_CODES = {"PAYMENT_PENDING", "INTERNAL_SERVER_ERROR"}


class PhonePeClient(_HttpGatewayClient):
    """PhonePe PG client (``/pg/v1/pay`` and ``/pg/v1/status``)."""

    name = "phonepe"

    def build_payload(self, order: Order) -> dict:
        """Return the pay request payload for ``order``.

        The order id doubles as ``merchantTransactionId`` so the status
        lookup and the browser redirect use the same key.
        """
        callback_base = self.config.callback_base_url
        return {
            "merchantId": self.config.merchant_id,
            "merchantTransactionId": order.order_id,
            "merchantUserId": f"MUID{_digits(order.customer.phone)}",
            "amount": order.amount_minor,
            "redirectUrl": f"{callback_base}/status/{order.order_id}",
            "redirectMode": "POST",
            "callbackUrl": f"{callback_base}/payment-callback",
            "mobileNumber": order.customer.phone,
            "paymentInstrument": {"type": self.config.instrument.value},
        }

    def initiate(self, order: Order) -> InitiateResult:
        """Create a PhonePe payment and return the pay-page URL.

        Success requires ``success: true`` and a redirect URL under
        ``data.instrumentResponse``; anything else is INVALID_RESPONSE.
        """
        body = encode_payload(self.build_payload(order))
        checksum = sign(body, PHONEPE_PAY_PATH, self.config.secret, self.config.key_index)
        data = self._call(
            "post",
            PHONEPE_PAY_PATH,
            json={"request": b64(body)},
            headers=_request_headers({"X-VERIFY": checksum}),
        )

        instrument = _dig(data, "data", "instrumentResponse")
        url = None
        if isinstance(instrument, dict):
            url = (
                _dig(instrument, "redirectInfo", "url")
                or instrument.get("intentUrl")
                or instrument.get("qrData")
            )
        if data.get("success") is not True or not url or not isinstance(url, str):
            logger.error(
                "phonepe initiation rejected",
                extra={"order_id": order.order_id, "code": data.get("code"), "vendor_message": data.get("message")},
            )
            raise GatewayError(GatewayReason.INVALID_RESPONSE, str(data.get("code") or "missing redirect url"))

        logger.info("phonepe payment initiated", extra={"order_id": order.order_id})
        return InitiateResult(redirect_url=url, vendor_txn_id=_dig(data, "data", "merchantTransactionId"))

    def check_status(self, order_id: str) -> StatusResult:
        """Query ``/pg/v1/status`` for ``order_id``.

        The checksum is computed over the route path and salt key only.
        """
        path = PHONEPE_STATUS_PATH.format(merchant_id=self.config.merchant_id, order_id=order_id)
        checksum = sign(b"", path, self.config.secret, self.config.key_index)
        data = self._call(
            "get",
            path,
            headers=_request_headers({"X-VERIFY": checksum, "X-MERCHANT-ID": self.config.merchant_id}),
        )

        code = data.get("code")
        if not code or not isinstance(code, str):
            raise GatewayError(GatewayReason.INVALID_RESPONSE, "status response without code")
        if code in PHONEPE_SUCCESS_CODES and data.get("success") is True:
            state = OrderStatus.SUCCESS
        elif code in PHONEPE_PENDING_CODES:
            state = OrderStatus.PENDING
        else:
            state = OrderStatus.FAILED

        return StatusResult(
            state=state,
            vendor_txn_id=_dig(data, "data", "transactionId"),
            payment_method=_dig(data, "data", "paymentInstrument", "type"),
            code=code,
        )


# ---------------- Cashfree ---------------- #

CASHFREE_ORDERS_PATH = "/orders"

CASHFREE_STATES = {
    "PAID": OrderStatus.SUCCESS,
    "ACTIVE": OrderStatus.PENDING,
}


class CashfreeClient(_HttpGatewayClient):
    """Cashfree PG client (``/orders``)."""

    name = "cashfree"

    def _auth_headers(self) -> dict:
        return _request_headers(
            {
                "x-client-id": self.config.app_id,
                "x-client-secret": self.config.secret,
                "x-api-version": self.config.api_version,
            }
        )

    def build_payload(self, order: Order) -> dict:
        callback_base = self.config.callback_base_url
        customer = {
            "customer_id": f"cust_{_digits(order.customer.phone)}",
            "customer_name": order.customer.name,
            "customer_phone": order.customer.phone,
        }
        if order.customer.email:
            customer["customer_email"] = order.customer.email
        payload = {
            "order_id": order.order_id,
            "order_amount": float(order.amount_major),
            "order_currency": order.currency,
            "customer_details": customer,
            "order_meta": {
                "return_url": f"{callback_base}/payment-success?order_id={order.order_id}",
                "notify_url": f"{callback_base}/payment-webhook",
            },
        }
        if order.customer.service:
            payload["order_note"] = order.customer.service
        return payload

    def initiate(self, order: Order) -> InitiateResult:
        """Create a Cashfree order and return its payment link.

        Success requires both ``cf_order_id`` and ``payment_link``.
        """
        data = self._call(
            "post",
            CASHFREE_ORDERS_PATH,
            content=encode_payload(self.build_payload(order)),
            headers=self._auth_headers(),
        )
        url = data.get("payment_link")
        if not data.get("cf_order_id") or not url or not isinstance(url, str):
            logger.error(
                "cashfree initiation rejected",
                extra={"order_id": order.order_id, "vendor_message": data.get("message")},
            )
            raise GatewayError(GatewayReason.INVALID_RESPONSE, "missing cf_order_id or payment_link")
        logger.info("cashfree payment initiated", extra={"order_id": order.order_id})
        return InitiateResult(redirect_url=url, vendor_txn_id=str(data["cf_order_id"]))

    def check_status(self, order_id: str) -> StatusResult:
        data = self._call("get", f"{CASHFREE_ORDERS_PATH}/{order_id}", headers=self._auth_headers())
        order_status = data.get("order_status")
        if not order_status or not isinstance(order_status, str):
            raise GatewayError(GatewayReason.INVALID_RESPONSE, "status response without order_status")
        return StatusResult(
            state=CASHFREE_STATES.get(order_status, OrderStatus.FAILED),
            vendor_txn_id=str(data["cf_order_id"]) if data.get("cf_order_id") else None,
            code=order_status,
        )
