"""HTTP views for the orders app.

This module contains the DRF API views of the payment order service.
Views are kept intentionally small: they validate requests (via Pydantic),
map to domain DTOs, delegate to ``OrderService`` or the callback handlers,
and turn the outcome into an HTTP response.

The views obtain a configured ``OrderService`` from
``providers.get_order_service()``, which wires the PhonePe or Cashfree
HTTP client (or the in-process ``GatewayStub`` when
``USE_HTTP_ADAPTERS`` is off) with the ORM order repository.

Error mapping: validation -> 400, gateway failure -> 500 with the gateway
reason, unknown order -> 404, bad webhook signature -> 403. Browser
callbacks always answer with a 302 to a frontend page, never an error
page.
"""

import logging

from django.http import HttpResponseRedirect
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import ParseError
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import providers
from .callbacks import extract_order_id, failure_url, handle_redirect_callback, handle_webhook
from .config import get_payments_config
from .domain import (
    Customer,
    GatewayError,
    MissingIdentifier,
    OrderNotFound,
    SignatureError,
    StoreError,
    ValidationError,
)
from .schemas import CreateOrderDTO, OrderReadDTO

logger = logging.getLogger(__name__)

WEBHOOK_SIGNATURE_HEADER = "x-webhook-signature"


def _validation_details(exc: PydanticValidationError) -> list:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


class OrdersPingView(APIView):
    """Simple liveness endpoint used by smoke tests and load balancers."""

    def get(self, request):
        return Response({"ok": True})


class CreateOrderView(APIView):
    """Create an order and start the payment with the gateway.

    The body is validated with ``CreateOrderDTO``; the domain service then
    persists a PENDING order and calls the gateway once. The browser is
    expected to navigate to the returned ``url``.
    """

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_create"

    def post(self, request):
        """Create a new order.

        Returns:
            Response: One of the following responses.
            - 200 with {msg, url, orderId} when the vendor accepted the order.
            - 400 with {error, detail} for invalid input; nothing is stored.
            - 500 with {error: "GATEWAY_ERROR", reason, orderId} when the
              vendor call failed; the order is stored as FAILED.
            - 500 with {error: "STORE_ERROR"} when the order could not be
              stored.
        """
        try:
            dto = CreateOrderDTO.model_validate(request.data)
        except PydanticValidationError as e:
            return Response(
                {"error": ValidationError.code, "detail": _validation_details(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        customer = Customer(
            name=dto.name,
            phone=dto.mobile_number,
            email=dto.email,
            address=dto.address,
            service=dto.service,
        )
        service = providers.get_order_service()
        try:
            created = service.create_order(customer, dto.amount)
        except ValidationError as e:
            return Response({"error": e.code, "detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except GatewayError as e:
            return Response(
                {"error": GatewayError.code, "reason": e.reason.value, "orderId": e.order_id},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except StoreError:
            logger.exception("order could not be stored")
            return Response({"error": StoreError.code}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(
            {"msg": "OK", "url": created.redirect_url, "orderId": created.order_id},
            status=status.HTTP_200_OK,
        )


class RetrieveOrderView(APIView):
    """Return a stored order with its amount in major units."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, order_id: str):
        try:
            order = providers.get_order_service().get_order(order_id)
        except OrderNotFound:
            return Response({"error": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)
        except StoreError:
            logger.exception("order could not be loaded", extra={"order_id": order_id})
            return Response({"error": StoreError.code}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        dto = OrderReadDTO(
            order_id=order.order_id,
            status=order.status.value,
            amount=float(order.amount_major),
            amount_minor=order.amount_minor,
            currency=order.currency,
            transaction_id=order.transaction_id,
            payment_method=order.payment_method,
            failure_reason=order.failure_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        return Response(dto.model_dump(mode="json", by_alias=True), status=200)


class PaymentCallbackView(APIView):
    """Browser return / server callback from the gateway.

    Accepts GET and POST, with the order id in the path, the body or the
    query string. The vendor is re-queried for the payment status and the
    browser is redirected to the frontend success or failure page.
    """

    def _body(self, request):
        try:
            return request.data
        except ParseError:
            logger.warning("unparseable callback body")
            return None

    def _handle(self, request, order_id=None):
        config = get_payments_config()
        try:
            oid = extract_order_id(self._body(request), request.query_params, path_id=order_id)
        except MissingIdentifier:
            logger.warning("callback without order id")
            return HttpResponseRedirect(failure_url(config, MissingIdentifier.code))
        return HttpResponseRedirect(handle_redirect_callback(providers.get_order_service(), config, oid))

    def get(self, request, order_id=None):
        return self._handle(request, order_id)

    def post(self, request, order_id=None):
        return self._handle(request, order_id)


class PaymentWebhookView(APIView):
    """Signed server-to-server payment notification.

    The signature header is checked against the raw body before anything
    else; a mismatch is answered with 403 and the order is not touched.
    """

    def post(self, request):
        raw_body = request.body
        signature = request.headers.get(WEBHOOK_SIGNATURE_HEADER)
        try:
            order = handle_webhook(providers.get_order_service(), get_payments_config(), raw_body, signature)
        except SignatureError as e:
            return Response({"error": e.code}, status=status.HTTP_403_FORBIDDEN)
        except ValidationError as e:
            return Response({"error": e.code}, status=status.HTTP_400_BAD_REQUEST)
        except OrderNotFound as e:
            # Acknowledge so the vendor stops retrying an order we never created.
            return Response({"error": e.code}, status=status.HTTP_202_ACCEPTED)
        except StoreError as e:
            logger.exception("webhook status could not be stored")
            return Response({"error": e.code}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({"ok": True, "orderId": order.order_id, "status": order.status.value})
