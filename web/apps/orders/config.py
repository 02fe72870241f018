"""Validated gateway configuration.

``settings.PAYMENTS`` is populated from the environment by
``checkout.settings``. This module turns that dict into a typed, validated
``PaymentsConfig`` so the rest of the app never reads raw settings keys and
a misconfigured deployment fails at startup instead of on the first
payment.
"""

from decimal import Decimal
from enum import Enum

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class GatewayProvider(str, Enum):
    """Supported payment gateways."""

    PHONEPE = "phonepe"
    CASHFREE = "cashfree"


class PaymentInstrument(str, Enum):
    """Payment instrument requested from PhonePe.

    The value is passed through to the vendor and is not interpreted by
    the order lifecycle.
    """

    PAY_PAGE = "PAY_PAGE"
    UPI_QR = "UPI_QR"
    UPI_INTENT = "UPI_INTENT"


class PaymentsConfig(BaseModel):
    """Gateway and redirect configuration.

    Attributes:
        provider: Which gateway client to build.
        merchant_id: PhonePe merchant id (unused by Cashfree).
        app_id: Cashfree client/app id (unused by PhonePe).
        secret: PhonePe salt key or Cashfree client secret.
        key_index: PhonePe salt key index appended to the checksum.
        base_url: Vendor API base URL, without trailing slash.
        api_version: Cashfree ``x-api-version`` header value.
        instrument: PhonePe payment instrument type.
        webhook_secret: Secret used to verify inbound webhook signatures.
            Defaults to ``secret`` when not set.
        currency: ISO currency code for new orders.
        min_amount: Minimum accepted amount in major units.
        success_url: Frontend page the browser lands on after a payment.
        failure_url: Frontend page for failed or unverifiable payments.
        callback_base_url: Public base URL of this service, used to build
            the redirect and notify URLs handed to the vendor.
        timeout_secs: Timeout for every vendor HTTP call.
    """

    provider: GatewayProvider
    merchant_id: str = ""
    app_id: str = ""
    secret: str = Field(min_length=1)
    key_index: int = Field(default=1, ge=1)
    base_url: str = Field(min_length=1)
    api_version: str = "2022-01-01"
    instrument: PaymentInstrument = PaymentInstrument.PAY_PAGE
    webhook_secret: str = ""
    currency: str = Field(default="INR", min_length=3, max_length=3)
    min_amount: Decimal = Field(default=Decimal("1"), gt=0)
    success_url: str = Field(min_length=1)
    failure_url: str = Field(min_length=1)
    callback_base_url: str = Field(min_length=1)
    timeout_secs: float = Field(default=10.0, gt=0)

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("base_url", "callback_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("success_url", "failure_url")
    @classmethod
    def validate_frontend_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return v

    @model_validator(mode="after")
    def check_provider_credentials(self):
        if self.provider is GatewayProvider.PHONEPE and not self.merchant_id:
            raise ValueError("PhonePe requires MERCHANT_ID")
        if self.provider is GatewayProvider.CASHFREE and not self.app_id:
            raise ValueError("Cashfree requires APP_ID")
        if not self.webhook_secret:
            self.webhook_secret = self.secret
        return self


def get_payments_config() -> PaymentsConfig:
    """Build and validate ``PaymentsConfig`` from ``settings.PAYMENTS``.

    Raises:
        ImproperlyConfigured: When any option is missing or invalid.
    """
    raw = getattr(settings, "PAYMENTS", None) or {}
    try:
        return PaymentsConfig.model_validate({k.lower(): v for k, v in raw.items()})
    except ValidationError as e:
        raise ImproperlyConfigured(f"Invalid PAYMENTS settings: {e}") from e
