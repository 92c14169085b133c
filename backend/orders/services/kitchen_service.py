from typing import Dict, List
import logging

from django.db import transaction

from core_backend.clock import resolve_clock
from core_backend.exceptions import (
    AlreadyMovedError,
    EligibilityReason,
    EntityNotFoundError,
    NotConfirmedError,
    NotEligibleError,
)
from deliveries.services import DeliveryService
from deliveries.slots import resolve_slot
from subscriptions.models import Subscription
from subscriptions.services import HorizonService
from users.models import User

from ..models import Order, OrderItem

logger = logging.getLogger(__name__)


class KitchenService:
    """Turns a confirmed order into its initial delivery records."""

    @staticmethod
    def _start_date(item: OrderItem, today):
        if item.immediate_delivery or item.start_date is None:
            return today
        return max(item.start_date, today)

    @staticmethod
    def _create_one_off_delivery(order: Order, items: List[OrderItem], clock):
        """All single/trial items travel together in one delivery."""
        today = clock.today()
        first = items[0]
        return DeliveryService.create_delivery(
            order=order,
            customer=order.customer,
            date=min(KitchenService._start_date(item, today) for item in items),
            scheduled_time=resolve_slot(first.delivery_time),
            items=[(item, item.title, item.quantity) for item in items],
            clock=clock,
        )

    @staticmethod
    def _create_subscription(order: Order, item: OrderItem, clock) -> Subscription:
        return Subscription.objects.create(
            customer=order.customer,
            order=order,
            order_item=item,
            kind=Subscription.kind_for_item_type(item.item_type),
            cadence=item.plan,
            title=item.title,
            quantity=item.quantity,
            start_date=KitchenService._start_date(item, clock.today()),
            delivery_time=resolve_slot(item.delivery_time),
            total_servings=Subscription.servings_for_cadence(item.plan),
        )

    @staticmethod
    @transaction.atomic
    def move_to_kitchen(order_id, actor: User = None, clock=None) -> Dict:
        """
        Generate deliveries for a confirmed order and stamp moved_to_kitchen_at.

        One-off items (single, trial) become a single delivery. Each recurring
        item (weekly, monthly) becomes a Subscription whose first serving and
        current horizon are materialized; later servings are promoted by the
        horizon job.

        Returns:
            dict with 'order' and 'deliveries_created'

        Raises:
            EntityNotFoundError, NotEligibleError (unpaid), AlreadyMovedError,
            NotConfirmedError
        """
        clock = resolve_clock(clock)
        try:
            order = Order.objects.select_for_update().get(id=order_id)
        except Order.DoesNotExist:
            raise EntityNotFoundError('Order', order_id)

        if not order.is_paid:
            raise NotEligibleError(
                EligibilityReason.ORDER_NOT_PAID,
                "Only paid orders can be moved to kitchen",
            )
        if order.is_moved_to_kitchen:
            raise AlreadyMovedError(order.order_number)
        if order.acceptance_status != Order.AcceptanceStatus.CONFIRMED:
            raise NotConfirmedError(order.order_number, order.acceptance_status)

        items = list(order.items.all())
        one_off = [item for item in items if not item.is_recurring]
        recurring = [item for item in items if item.is_recurring]

        created = 0
        if one_off:
            KitchenService._create_one_off_delivery(order, one_off, clock)
            created += 1

        for item in recurring:
            subscription = KitchenService._create_subscription(order, item, clock)
            created += len(HorizonService.extend(subscription, clock=clock, ensure_first=True))

        now = clock.now()
        updated = Order.objects.filter(pk=order.pk, moved_to_kitchen_at__isnull=True).update(
            moved_to_kitchen_at=now,
            updated_at=now,
        )
        if not updated:
            raise AlreadyMovedError(order.order_number)
        order.refresh_from_db()

        logger.info(
            f"Order {order.order_number} moved to kitchen by "
            f"{actor.email if actor else 'system'}: {created} deliveries, "
            f"{len(recurring)} subscriptions"
        )
        return {'order': order, 'deliveries_created': created}
