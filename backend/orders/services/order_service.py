from typing import Dict, Iterable, List, Optional
import logging

from django.db import transaction

from core_backend.clock import resolve_clock
from core_backend.exceptions import (
    EntityNotFoundError,
    InvalidTransitionError,
    NotConfirmedError,
    RequestValidationError,
)
from users.models import User

from ..models import Order, OrderItem, OrderStatusHistory

logger = logging.getLogger(__name__)


class OrderService:
    """Order intake from checkout and the forward-only fulfilment lifecycle."""

    VALID_STATUS_TRANSITIONS = {
        Order.LifecycleStatus.PAID: [Order.LifecycleStatus.CONFIRMED],
        Order.LifecycleStatus.CONFIRMED: [Order.LifecycleStatus.PREPARING],
        Order.LifecycleStatus.PREPARING: [Order.LifecycleStatus.OUT_FOR_DELIVERY],
        Order.LifecycleStatus.OUT_FOR_DELIVERY: [Order.LifecycleStatus.DELIVERED],
        Order.LifecycleStatus.DELIVERED: [],
    }

    ITEM_FIELDS = (
        'cart_item_id',
        'item_type',
        'plan',
        'title',
        'quantity',
        'start_date',
        'delivery_time',
        'immediate_delivery',
    )

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.get(id=order_id)
        except Order.DoesNotExist:
            raise EntityNotFoundError('Order', order_id)

    @staticmethod
    @transaction.atomic
    def record_order(
        customer: User,
        items: Iterable[Dict],
        payment_status: str = Order.PaymentStatus.PAID,
        clock=None,
    ) -> Order:
        """
        Store an order and its resolved line items as handed over by checkout.

        Args:
            customer: ordering customer
            items: dicts with cart_item_id, item_type, plan, title, quantity,
                start_date, delivery_time, immediate_delivery
            payment_status: payment state reported by the payment collaborator
        """
        items = list(items)
        if not items:
            raise RequestValidationError("An order needs at least one line item")

        clock = resolve_clock(clock)
        order = Order.objects.create(customer=customer, payment_status=payment_status)
        OrderItem.objects.bulk_create([
            OrderItem(order=order, **{k: v for k, v in item.items() if k in OrderService.ITEM_FIELDS})
            for item in items
        ])

        if order.is_paid:
            OrderStatusHistory.objects.create(
                order=order,
                status=Order.LifecycleStatus.PAID,
                changed_at=clock.now(),
                changed_by=OrderStatusHistory.ChangedBy.SYSTEM,
            )

        logger.info(
            f"Recorded order {order.order_number} for {customer.email} "
            f"with {len(items)} items (payment {payment_status})"
        )
        return order

    @staticmethod
    @transaction.atomic
    def update_status(order_id, new_status: str, actor: Optional[User] = None, clock=None) -> Order:
        """
        Move an order one step forward in its lifecycle.

        Same status is a no-op. Anything past PAID requires a confirmed order.
        The write is conditional on the status read, so a concurrent change
        surfaces as InvalidTransitionError.
        """
        clock = resolve_clock(clock)
        order = OrderService.get_order(order_id)
        current = order.current_status

        if new_status == current:
            return order

        if new_status not in Order.LifecycleStatus.values:
            raise RequestValidationError(f"Invalid order status: {new_status}")

        if new_status not in OrderService.VALID_STATUS_TRANSITIONS.get(current, []):
            raise InvalidTransitionError(
                f"Cannot transition order from {current} to {new_status}.",
                current_status=current,
                target_status=new_status,
            )

        if order.acceptance_status != Order.AcceptanceStatus.CONFIRMED:
            raise NotConfirmedError(order.order_number, order.acceptance_status)

        now = clock.now()
        updated = Order.objects.filter(pk=order.pk, current_status=current).update(
            current_status=new_status,
            updated_at=now,
        )
        if not updated:
            raise InvalidTransitionError(
                "Order status changed concurrently. Please retry.",
                current_status=current,
                target_status=new_status,
            )

        OrderService._record(order, new_status, now, actor)
        order.refresh_from_db()
        logger.info(
            f"Order {order.order_number} {current} -> {new_status} "
            f"by {actor.email if actor else 'system'}"
        )
        return order

    @staticmethod
    def _record(order: Order, status: str, changed_at, actor: Optional[User] = None):
        return OrderStatusHistory.objects.create(
            order=order,
            status=status,
            changed_at=changed_at,
            changed_by=(
                OrderStatusHistory.ChangedBy.ADMIN if actor else OrderStatusHistory.ChangedBy.SYSTEM
            ),
            actor=actor,
        )

    @staticmethod
    def timeline(order_id) -> List[Dict]:
        """
        Merged, time-ordered history of the order and every delivery generated from it.
        """
        from deliveries.models import DeliveryStatusHistory

        order = OrderService.get_order(order_id)
        entries = [
            {
                'source': 'order',
                'status': h.status,
                'changed_at': h.changed_at,
                'changed_by': h.changed_by,
                'delivery_id': None,
                'delivery_date': None,
            }
            for h in order.status_history.all()
        ]
        delivery_history = DeliveryStatusHistory.objects.filter(
            delivery__order=order
        ).select_related('delivery')
        entries.extend(
            {
                'source': 'delivery',
                'status': h.status,
                'changed_at': h.changed_at,
                'changed_by': h.changed_by,
                'delivery_id': str(h.delivery_id),
                'delivery_date': h.delivery.date,
            }
            for h in delivery_history
        )
        entries.sort(key=lambda e: (e['changed_at'], e['source'] != 'order'))
        return entries
