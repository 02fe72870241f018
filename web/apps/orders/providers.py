"""Service provider helpers for wiring OrderService with ports.

``get_order_service`` returns an ``OrderService`` wired with the ORM order
repository and the gateway client selected by ``PAYMENTS["PROVIDER"]``.
When ``settings.USE_HTTP_ADAPTERS`` is false the in-process
``GatewayStub`` is used instead, which is what tests and local
development run against.
"""

from django.conf import settings

from .adapters import GatewayStub
from .config import GatewayProvider, PaymentsConfig, get_payments_config
from .domain import GatewayPort, OrderService
from .http_adapters import CashfreeClient, PhonePeClient
from .repository import OrderRepository

GATEWAY_CLIENTS = {
    GatewayProvider.PHONEPE: PhonePeClient,
    GatewayProvider.CASHFREE: CashfreeClient,
}


def get_gateway(config: PaymentsConfig) -> GatewayPort:
    """Return the gateway client for the configured provider."""
    if getattr(settings, "USE_HTTP_ADAPTERS", True):
        return GATEWAY_CLIENTS[config.provider](config)
    return GatewayStub()


def get_order_service() -> OrderService:
    """Return a configured OrderService instance.

    Returns:
        OrderService: A service instance with the gateway and store ports.
    """
    config = get_payments_config()
    return OrderService(
        gateway=get_gateway(config),
        store=OrderRepository(),
        currency=config.currency,
        min_amount=config.min_amount,
    )
