from django.urls import path
from .views import OrdersPingView, CreateOrderView, RetrieveOrderView
from .views import PaymentCallbackView, PaymentWebhookView

app_name = "orders"

urlpatterns = [
    path("ping", OrdersPingView.as_view(), name="ping"),
    path("create-order", CreateOrderView.as_view(), name="create-order"),
    path("order/<str:order_id>", RetrieveOrderView.as_view(), name="order-detail"),
    # Browser returns and server callbacks: always answered with a redirect
    path("payment-success", PaymentCallbackView.as_view(), name="payment-success"),
    path("payment-callback", PaymentCallbackView.as_view(), name="payment-callback"),
    path("status/<str:order_id>", PaymentCallbackView.as_view(), name="payment-status"),
    path("payment-webhook", PaymentWebhookView.as_view(), name="payment-webhook"),
]
