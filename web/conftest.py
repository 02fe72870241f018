import pytest

from apps.orders.adapters import GatewayStub


@pytest.fixture(autouse=True)
def use_stubs_for_tests(settings):
    settings.USE_HTTP_ADAPTERS = False


@pytest.fixture
def gateway_stub(monkeypatch):
    """Pin the gateway used by the views to a single inspectable stub."""
    stub = GatewayStub()
    monkeypatch.setattr("apps.orders.providers.get_gateway", lambda config: stub)
    return stub
