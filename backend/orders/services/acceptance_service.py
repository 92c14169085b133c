import logging

from django.db import transaction

from core_backend.clock import resolve_clock
from core_backend.exceptions import (
    AlreadyDecidedError,
    AlreadyMovedError,
    EligibilityReason,
    NotEligibleError,
    RequestValidationError,
)
from users.models import User

from ..models import Order
from .order_service import OrderService

logger = logging.getLogger(__name__)


class OrderAcceptanceService:
    """
    Admin review gate: PENDING_REVIEW -> CONFIRMED | DECLINED.

    Both outcomes are terminal, and nothing can change once the order has
    been moved to kitchen.
    """

    DECISIONS = (Order.AcceptanceStatus.CONFIRMED, Order.AcceptanceStatus.DECLINED)

    @staticmethod
    @transaction.atomic
    def set_acceptance(order_id, decision: str, admin: User, note: str = '', clock=None) -> Order:
        """
        Record the admin's accept/decline decision.

        Raises:
            EntityNotFoundError: unknown order
            RequestValidationError: PENDING_REVIEW or an unknown value requested
            NotEligibleError: order is not paid
            AlreadyMovedError: order already moved to kitchen
            AlreadyDecidedError: order already confirmed or declined
        """
        if decision == Order.AcceptanceStatus.PENDING_REVIEW:
            raise RequestValidationError("PENDING_REVIEW cannot be set manually")
        if decision not in OrderAcceptanceService.DECISIONS:
            raise RequestValidationError(f"Invalid acceptance status: {decision}")

        clock = resolve_clock(clock)
        order = OrderService.get_order(order_id)

        if not order.is_paid:
            raise NotEligibleError(
                EligibilityReason.ORDER_NOT_PAID,
                "Only paid orders can be accepted or declined",
            )
        if order.is_moved_to_kitchen:
            raise AlreadyMovedError(order.order_number)
        if order.acceptance_status != Order.AcceptanceStatus.PENDING_REVIEW:
            raise AlreadyDecidedError('Order', order.order_number, order.acceptance_status)

        now = clock.now()
        fields = {
            'acceptance_status': decision,
            'accepted_by': admin,
            'accepted_at': now,
            'updated_at': now,
        }
        if note:
            fields['admin_notes'] = note

        updated = Order.objects.filter(
            pk=order.pk,
            acceptance_status=Order.AcceptanceStatus.PENDING_REVIEW,
            moved_to_kitchen_at__isnull=True,
        ).update(**fields)
        order.refresh_from_db()

        if not updated:
            if order.is_moved_to_kitchen:
                raise AlreadyMovedError(order.order_number)
            raise AlreadyDecidedError('Order', order.order_number, order.acceptance_status)

        logger.info(f"Order {order.order_number} acceptance set to {decision} by {admin.email}")

        if decision == Order.AcceptanceStatus.CONFIRMED:
            order = OrderService.update_status(
                order.id, Order.LifecycleStatus.CONFIRMED, actor=admin, clock=clock
            )
        return order
