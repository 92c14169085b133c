from typing import Iterable, Optional
import logging

from django.db import transaction

from core_backend.clock import resolve_clock
from core_backend.exceptions import EntityNotFoundError, InvalidTransitionError
from pause_skip.services import RequestLedgerService
from users.models import User

from ..models import (
    ChangeSource,
    Delivery,
    DeliveryItem,
    DeliveryStatus,
    DeliveryStatusHistory,
)
from ..signals import delivery_status_changed

logger = logging.getLogger(__name__)


def change_source_for(actor: Optional[User]) -> str:
    if actor is None:
        return ChangeSource.SYSTEM
    if actor.role == User.Role.KITCHEN:
        return ChangeSource.KITCHEN
    return ChangeSource.ADMIN


class DeliveryService:
    """
    Delivery state machine.

    PENDING -> COOKING -> PACKED -> OUT_FOR_DELIVERY -> DELIVERED, one step at a
    time, only on the delivery's own date. PENDING -> SKIPPED only through an
    approved skip request. Writes are compare-and-set on the current status:
    a caller that lost a race gets InvalidTransitionError and may re-read.
    """

    @staticmethod
    def get_delivery(delivery_id) -> Delivery:
        try:
            return Delivery.objects.get(id=delivery_id)
        except Delivery.DoesNotExist:
            raise EntityNotFoundError('Delivery', delivery_id)

    @staticmethod
    def _record(delivery: Delivery, status: str, changed_at, changed_by: str, actor: Optional[User] = None):
        return DeliveryStatusHistory.objects.create(
            delivery=delivery,
            status=status,
            changed_at=changed_at,
            changed_by=changed_by,
            actor=actor,
        )

    @staticmethod
    def _compare_and_set(delivery: Delivery, expected: str, new_status: str, now, **extra) -> bool:
        updated = Delivery.objects.filter(pk=delivery.pk, status=expected).update(
            status=new_status,
            updated_at=now,
            **extra,
        )
        return updated == 1

    @staticmethod
    @transaction.atomic
    def create_delivery(
        *,
        order,
        customer,
        date,
        scheduled_time,
        items: Iterable,
        subscription=None,
        clock=None,
    ) -> Delivery:
        """
        Materialize a delivery row with its line items.

        ``items`` yields (order_item, title, quantity) tuples.
        """
        clock = resolve_clock(clock)
        delivery = Delivery.objects.create(
            order=order,
            customer=customer,
            subscription=subscription,
            date=date,
            scheduled_time=scheduled_time,
            status=DeliveryStatus.PENDING,
        )
        DeliveryItem.objects.bulk_create([
            DeliveryItem(delivery=delivery, order_item=order_item, title=title, quantity=quantity)
            for order_item, title, quantity in items
        ])
        DeliveryService._record(delivery, DeliveryStatus.PENDING, clock.now(), ChangeSource.SYSTEM)
        return delivery

    @staticmethod
    @transaction.atomic
    def advance(delivery_id, actor: Optional[User] = None, target_status: Optional[str] = None, clock=None) -> Delivery:
        """
        Move a delivery one step along the kitchen chain.

        Args:
            delivery_id: UUID of the delivery
            actor: admin or kitchen user performing the change
            target_status: optional status the caller expects to reach; the
                current status is a no-op, anything but the next step fails
            clock: injected clock (defaults to the system clock)

        Raises:
            EntityNotFoundError: unknown delivery
            InvalidTransitionError: terminal status, wrong operational date,
                date inside an effective pause, skipped stage, or a
                concurrent change
        """
        clock = resolve_clock(clock)
        delivery = DeliveryService.get_delivery(delivery_id)
        current = delivery.status

        if target_status is not None and target_status == current:
            return delivery

        if delivery.is_terminal:
            raise InvalidTransitionError(
                f"{delivery.get_status_display()} deliveries are final",
                current_status=current,
                target_status=target_status,
            )

        if delivery.date != clock.today():
            raise InvalidTransitionError(
                "Only today's deliveries can be updated",
                current_status=current,
                target_status=target_status,
            )

        if delivery.subscription_id is not None:
            pauses = RequestLedgerService.effective_pause_ranges(delivery.subscription_id)
            if any(pause.contains(delivery.date) for pause in pauses):
                raise InvalidTransitionError(
                    "Delivery falls inside an approved pause and cannot be prepared",
                    current_status=current,
                    target_status=target_status,
                )

        next_status = delivery.next_status
        if target_status is not None and target_status != next_status:
            raise InvalidTransitionError(
                f"Cannot move delivery from {current} to {target_status}; next status is {next_status}",
                current_status=current,
                target_status=target_status,
            )

        now = clock.now()
        if not DeliveryService._compare_and_set(delivery, current, next_status, now):
            logger.warning(f"Lost status race on delivery {delivery.id} (expected {current})")
            raise InvalidTransitionError(
                "Delivery status changed concurrently. Please retry.",
                current_status=current,
                target_status=next_status,
            )

        changed_by = change_source_for(actor)
        DeliveryService._record(delivery, next_status, now, changed_by, actor)
        delivery.refresh_from_db()

        logger.info(
            f"Delivery {delivery.id} ({delivery.date}) {current} -> {next_status} "
            f"by {actor.email if actor else 'system'}"
        )
        delivery_status_changed.send(
            sender=Delivery,
            instance=delivery,
            previous_status=current,
            changed_by=changed_by,
        )
        return delivery

    @staticmethod
    @transaction.atomic
    def mark_skipped(delivery_id, skip_request_id, actor: Optional[User] = None, clock=None) -> Delivery:
        """
        Mark a PENDING delivery SKIPPED as the effect of an approved skip request.

        Raises:
            EntityNotFoundError: unknown delivery
            InvalidTransitionError: delivery is no longer PENDING
        """
        clock = resolve_clock(clock)
        delivery = DeliveryService.get_delivery(delivery_id)
        now = clock.now()

        if not DeliveryService._compare_and_set(
            delivery,
            DeliveryStatus.PENDING,
            DeliveryStatus.SKIPPED,
            now,
            skip_request_id=skip_request_id,
        ):
            delivery.refresh_from_db()
            raise InvalidTransitionError(
                f"Only pending deliveries can be skipped (delivery is {delivery.status})",
                current_status=delivery.status,
                target_status=DeliveryStatus.SKIPPED,
            )

        changed_by = change_source_for(actor)
        DeliveryService._record(delivery, DeliveryStatus.SKIPPED, now, changed_by, actor)
        delivery.refresh_from_db()

        logger.info(f"Delivery {delivery.id} ({delivery.date}) skipped by request {skip_request_id}")
        delivery_status_changed.send(
            sender=Delivery,
            instance=delivery,
            previous_status=DeliveryStatus.PENDING,
            changed_by=changed_by,
        )
        return delivery
