from django.apps import AppConfig


class OrdersConfig(AppConfig):
    name = "apps.orders"
    label = "orders"

    def ready(self):
        # Fail fast on missing gateway credentials or URLs.
        from .config import get_payments_config

        get_payments_config()
