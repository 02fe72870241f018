"""Gateway callback handling.

Two kinds of callbacks reach the service:

- Browser redirects (PhonePe ``redirectUrl``, Cashfree ``return_url``) and
  PhonePe server-to-server callbacks. Their payload is never trusted: the
  order id is extracted and the vendor is queried for the real status.
  The browser always ends on a frontend success or failure page.
- Signed webhooks (Cashfree ``notify_url``). The signature is checked
  against the raw body before the payload is looked at.
"""

import base64
import binascii
import json
import logging
from typing import Mapping, Optional
from urllib.parse import urlencode

from pydantic import ValidationError as PydanticValidationError

from .checksum import verify_webhook_signature
from .config import PaymentsConfig
from .domain import (
    MissingIdentifier,
    Order,
    OrderNotFound,
    OrderService,
    OrderStatus,
    PaymentError,
    SignatureError,
    StatusResult,
    ValidationError,
)
from .schemas import PaymentWebhookDTO

logger = logging.getLogger(__name__)

ORDER_ID_KEYS = ("orderId", "order_id", "merchantTransactionId", "transactionId", "id")

WEBHOOK_STATES = {
    "SUCCESS": OrderStatus.SUCCESS,
    "PENDING": OrderStatus.PENDING,
    "NOT_ATTEMPTED": OrderStatus.PENDING,
}


def _decode_s2s_response(encoded) -> Optional[str]:
    """Pull ``merchantTransactionId`` out of a base64 PhonePe callback body."""
    if not isinstance(encoded, str):
        return None
    try:
        decoded = json.loads(base64.b64decode(encoded, validate=True))
    except (binascii.Error, ValueError):
        return None
    data = decoded.get("data") if isinstance(decoded, dict) else None
    if isinstance(data, dict) and data.get("merchantTransactionId"):
        return str(data["merchantTransactionId"])
    return None


def extract_order_id(*sources: Optional[Mapping], path_id: Optional[str] = None) -> str:
    """Find the order id in a callback.

    The URL path segment wins, then each source (request body, then query
    string) is searched for the usual vendor keys, then for a base64
    ``response`` envelope.

    Raises:
        MissingIdentifier: If no source carries an id.
    """
    if path_id and path_id.strip():
        return path_id.strip()
    for source in sources:
        if not hasattr(source, "get"):
            continue
        for key in ORDER_ID_KEYS:
            value = source.get(key)
            if value is not None and str(value).strip():
                return str(value).strip()
        decoded = _decode_s2s_response(source.get("response"))
        if decoded:
            return decoded
    raise MissingIdentifier()


def _with_query(url: str, params: dict) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode(params)}"


def success_url(config: PaymentsConfig, order_id: str) -> str:
    return _with_query(config.success_url, {"orderId": order_id})


def failure_url(config: PaymentsConfig, reason: str, order_id: Optional[str] = None) -> str:
    params = {"orderId": order_id} if order_id else {}
    params["error"] = reason
    return _with_query(config.failure_url, params)


def redirect_for(config: PaymentsConfig, order: Order) -> str:
    """Pick the frontend page for an order after verification."""
    if order.status is OrderStatus.SUCCESS:
        return success_url(config, order.order_id)
    if order.status is OrderStatus.PENDING:
        return failure_url(config, "PAYMENT_PENDING", order.order_id)
    return failure_url(config, order.failure_reason or "PAYMENT_FAILED", order.order_id)


def handle_redirect_callback(service: OrderService, config: PaymentsConfig, order_id: str) -> str:
    """Verify the payment for ``order_id`` and return the browser redirect URL.

    Never raises: every error ends as a failure redirect carrying a short
    reason code.
    """
    try:
        order = service.confirm_payment(order_id)
    except OrderNotFound:
        logger.warning("callback for unknown order", extra={"order_id": order_id})
        return failure_url(config, OrderNotFound.code, order_id)
    except PaymentError as e:
        logger.exception("callback handling failed", extra={"order_id": order_id})
        return failure_url(config, e.code, order_id)
    return redirect_for(config, order)


def parse_webhook(raw_body: bytes) -> tuple[str, StatusResult]:
    """Map a webhook body onto ``(order_id, StatusResult)``.

    Raises:
        ValidationError: If the body is not a payment webhook.
    """
    try:
        event = PaymentWebhookDTO.model_validate_json(raw_body)
    except PydanticValidationError as e:
        raise ValidationError("Malformed webhook payload", code="INVALID_PAYLOAD") from e
    payment = event.data.payment
    status = payment.payment_status.upper()
    return event.data.order.order_id, StatusResult(
        state=WEBHOOK_STATES.get(status, OrderStatus.FAILED),
        vendor_txn_id=str(payment.cf_payment_id) if payment.cf_payment_id is not None else None,
        payment_method=payment.payment_group,
        code=status,
    )


def handle_webhook(
    service: OrderService, config: PaymentsConfig, raw_body: bytes, signature: Optional[str]
) -> Order:
    """Verify and apply a signed payment webhook.

    Raises:
        SignatureError: Signature mismatch; nothing was read or written.
        ValidationError: Malformed payload.
        OrderNotFound: The webhook names an unknown order.
        StoreError: The status could not be written; the vendor should retry.
    """
    if not verify_webhook_signature(raw_body, signature, config.webhook_secret):
        logger.warning("webhook signature mismatch")
        raise SignatureError()
    order_id, result = parse_webhook(raw_body)
    logger.info("webhook received", extra={"order_id": order_id, "code": result.code})
    return service.apply_webhook_event(order_id, result)
