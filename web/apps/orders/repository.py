"""Repository layer for persisting orders.

This module contains the Django ORM implementation of ``OrderStorePort``.
It keeps a thin interface that takes and returns domain ``Order`` objects
so the domain layer is not coupled to ORM details.

Terminal transitions are written as a single conditional point update
(``UPDATE orders SET ... WHERE order_id = %s AND status = 'PENDING'``); the
database's row atomicity is what makes the PENDING -> terminal latch safe
when a gateway delivers the same callback twice concurrently.
"""

from typing import Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from .domain import Customer, Order, OrderStatus, StoreError
from .models import OrderModel


def _to_domain(obj: OrderModel) -> Order:
    return Order(
        order_id=obj.order_id,
        customer=Customer(
            name=obj.customer_name,
            phone=obj.customer_phone,
            email=obj.customer_email,
            address=obj.customer_address,
            service=obj.service,
        ),
        amount_minor=obj.amount_minor,
        currency=obj.currency,
        status=OrderStatus(obj.status),
        gateway=obj.gateway,
        transaction_id=obj.transaction_id,
        payment_method=obj.payment_method,
        failure_reason=obj.failure_reason,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


class OrderRepository:
    """Repository that persists Order domain objects using Django ORM.

    Every database failure is re-raised as ``StoreError`` so callers deal
    with a single persistence error type.
    """

    def add(self, order: Order) -> Order:
        """Persist a new order record.

        Args:
            order: Domain ``Order`` instance to persist, normally PENDING.

        Returns:
            The same order with ``created_at``/``updated_at`` filled in.

        Raises:
            StoreError: If the insert fails.
        """
        try:
            obj = OrderModel.objects.create(
                order_id=order.order_id,
                status=order.status.value,
                amount_minor=order.amount_minor,
                currency=order.currency,
                gateway=order.gateway,
                customer_name=order.customer.name,
                customer_phone=order.customer.phone,
                customer_email=order.customer.email or None,
                customer_address=order.customer.address or None,
                service=order.customer.service or None,
            )
        except DatabaseError as e:
            raise StoreError(f"could not create order {order.order_id}") from e
        order.created_at = obj.created_at
        order.updated_at = obj.updated_at
        return order

    def get(self, order_id: str) -> Optional[Order]:
        """Return the order with ``order_id`` or None.

        Raises:
            StoreError: If the lookup fails.
        """
        try:
            obj = OrderModel.objects.filter(order_id=order_id).first()
        except DatabaseError as e:
            raise StoreError(f"could not load order {order_id}") from e
        return _to_domain(obj) if obj else None

    def finalize(
        self,
        order_id: str,
        status: OrderStatus,
        transaction_id: Optional[str] = None,
        payment_method: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> tuple[Optional[Order], bool]:
        """Move a PENDING order to a terminal status.

        Args:
            order_id: Order to update.
            status: Terminal status to store.
            transaction_id: Vendor transaction id.
            payment_method: Instrument reported by the vendor.
            failure_reason: Short code explaining a failure.

        Returns:
            tuple[Order | None, bool]: the stored order after the call and
            whether this call changed it.

        Raises:
            StoreError: If the update fails.
        """
        try:
            with transaction.atomic():
                changed = OrderModel.objects.filter(
                    order_id=order_id, status=OrderModel.Status.PENDING
                ).update(
                    status=status.value,
                    transaction_id=transaction_id,
                    payment_method=payment_method,
                    failure_reason=failure_reason,
                    updated_at=timezone.now(),
                )
                obj = OrderModel.objects.filter(order_id=order_id).first()
        except DatabaseError as e:
            raise StoreError(f"could not finalize order {order_id}") from e
        return (_to_domain(obj) if obj else None), bool(changed)
