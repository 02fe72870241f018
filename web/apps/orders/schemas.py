"""Pydantic schemas for orders.

This module exposes the request/validation schemas used by the orders API
(create-order body, order read model) and the vendor webhook payload
accepted on ``/payment-webhook``.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


PHONE_RE = re.compile(r"^\+?[0-9]{10,15}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# Largest accepted amount in major units.
MAX_AMOUNT = Decimal("1000000000")


class CreateOrderDTO(BaseModel):
    """Schema for creating an order.

    Attributes:
        name: Customer name, required and non-blank.
        mobile_number: Customer phone (``mobileNumber`` in the payload),
            10-15 digits with an optional leading '+'.
        amount: Amount in major units; must be positive and at most
            ``MAX_AMOUNT``. The configured minimum is enforced by
            ``OrderService``.
        email: Optional customer email.
        address: Optional free-form address.
        service: Optional description of what is being paid for.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    mobile_number: str = Field(alias="mobileNumber")
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, allow_inf_nan=False)
    email: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=1000)
    service: Optional[str] = Field(default=None, max_length=200)

    @field_validator("mobile_number", mode="before")
    @classmethod
    def validate_mobile_number(cls, v) -> str:
        """Normalize and validate the phone number.

        Spaces and dashes are dropped; numbers may arrive as JSON ints.

        Raises:
            ValueError: When the result is not 10-15 digits.
        """
        v2 = re.sub(r"[\s-]", "", str(v))
        if not PHONE_RE.match(v2):
            raise ValueError("Invalid mobile number")
        return v2

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email")
        return v.lower()


class OrderReadDTO(BaseModel):
    """Read model returned by ``GET /order/<id>``.

    ``amount`` is the stored minor-unit amount converted back to major
    units.
    """

    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(alias="orderId")
    status: str
    amount: float
    amount_minor: int = Field(alias="amountMinor")
    currency: str
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    failure_reason: Optional[str] = Field(default=None, alias="failureReason")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class WebhookOrder(BaseModel):
    order_id: str = Field(min_length=1)


class WebhookPayment(BaseModel):
    cf_payment_id: Optional[Union[int, str]] = None
    payment_status: str
    payment_group: Optional[str] = None


class WebhookData(BaseModel):
    order: WebhookOrder
    payment: WebhookPayment


class PaymentWebhookDTO(BaseModel):
    """Cashfree payment webhook body.

    Only the fields the order lifecycle needs are declared; the rest of
    the vendor payload is ignored.
    """

    type: Optional[str] = None
    data: WebhookData
