from datetime import timedelta
from typing import Dict, List, Optional
import logging

from django.conf import settings
from django.db import transaction

from core_backend.clock import resolve_clock
from core_backend.exceptions import EntityNotFoundError, InvalidTransitionError
from deliveries.models import Delivery, DeliveryStatus
from deliveries.services import DeliveryService
from pause_skip.services import RequestLedgerService
from users.models import User

from .models import Subscription
from .schedule import (
    DeliverySnapshot,
    ScheduledDelivery,
    SubscriptionTerms,
    project_servings,
    project_upcoming,
)

logger = logging.getLogger(__name__)


def lookahead_days() -> int:
    return int(getattr(settings, 'PROJECTION_LOOKAHEAD_DAYS', 366))


class SubscriptionScheduleService:
    """
    Loads subscription state and feeds it to the calendar projector.

    Every call recomputes from current rows; nothing is cached.
    """

    @staticmethod
    def get_subscription(subscription_id) -> Subscription:
        try:
            return Subscription.objects.get(id=subscription_id)
        except Subscription.DoesNotExist:
            raise EntityNotFoundError('Subscription', subscription_id)

    @staticmethod
    def terms(subscription: Subscription) -> SubscriptionTerms:
        return SubscriptionTerms(
            start_date=subscription.start_date,
            delivery_time=subscription.delivery_time,
            total_servings=subscription.total_servings,
        )

    @staticmethod
    def snapshots(subscription: Subscription) -> List[DeliverySnapshot]:
        deliveries = subscription.deliveries.prefetch_related('items').order_by('date', 'scheduled_time')
        return [
            DeliverySnapshot(
                delivery_id=str(d.id),
                date=d.date,
                time=d.scheduled_time,
                status=d.status,
                items=tuple((item.title, item.quantity) for item in d.items.all()),
            )
            for d in deliveries
        ]

    @staticmethod
    def delivered_count(snapshots: List[DeliverySnapshot]) -> int:
        return sum(1 for s in snapshots if s.status == DeliveryStatus.DELIVERED)

    @classmethod
    def project(cls, subscription: Subscription, count: Optional[int], clock=None) -> List[ScheduledDelivery]:
        """
        Real and planned entries for an active subscription. A subscription
        paused as a whole has no upcoming deliveries until it is resumed.
        """
        if not subscription.is_active:
            return []

        clock = resolve_clock(clock)
        snapshots = cls.snapshots(subscription)
        return project_upcoming(
            cls.terms(subscription),
            delivered_count=cls.delivered_count(snapshots),
            pause_ranges=RequestLedgerService.effective_pause_ranges(subscription.id),
            real_deliveries=snapshots,
            count=count,
            today=clock.today(),
            lookahead_days=lookahead_days(),
        )

    @classmethod
    def project_upcoming_deliveries(cls, subscription_id, count: int, clock=None) -> List[ScheduledDelivery]:
        """Next ``count`` real or planned deliveries of a subscription."""
        subscription = cls.get_subscription(subscription_id)
        return cls.project(subscription, count, clock)

    @classmethod
    def summary(cls, subscription_id, clock=None) -> Dict:
        """
        Serving counters plus next and last serving dates.

        Skipped days are not servings: the next serving is the first day that
        is not SKIPPED, and the schedule end moves out by one weekday per skip.
        """
        clock = resolve_clock(clock)
        subscription = cls.get_subscription(subscription_id)
        snapshots = cls.snapshots(subscription)
        delivered = cls.delivered_count(snapshots)
        skipped = sum(1 for s in snapshots if s.status == DeliveryStatus.SKIPPED)
        pause_ranges = RequestLedgerService.effective_pause_ranges(subscription.id)

        servings = []
        if subscription.is_active:
            servings = project_servings(
                cls.terms(subscription),
                delivered_count=delivered,
                pause_ranges=pause_ranges,
                real_deliveries=snapshots,
                today=clock.today(),
                lookahead_days=lookahead_days(),
            )

        return {
            'subscription_id': str(subscription.id),
            'total_servings': subscription.total_servings,
            'delivered': delivered,
            'skipped': skipped,
            'remaining': max(0, subscription.total_servings - delivered),
            'scheduled': len(servings),
            'next_delivery_date': servings[0].date if servings else None,
            'schedule_end_date': servings[-1].date if servings else None,
            'effective_pauses': [
                {'start': p.start, 'end': p.end, 'pause_request_id': p.pause_request_id}
                for p in pause_ranges
            ],
        }


class SubscriptionAdminService:
    """Subscription-wide pause and resume. Day-level pauses use the request ledger."""

    @staticmethod
    @transaction.atomic
    def set_status(subscription_id, new_status: str, admin: User) -> Subscription:
        subscription = SubscriptionScheduleService.get_subscription(subscription_id)
        if subscription.status == new_status:
            raise InvalidTransitionError(
                f"Subscription is already {new_status}",
                current_status=subscription.status,
                target_status=new_status,
            )

        updated = Subscription.objects.filter(pk=subscription.pk, status=subscription.status).update(
            status=new_status,
        )
        if not updated:
            raise InvalidTransitionError(
                "Subscription status changed concurrently. Please retry.",
                current_status=subscription.status,
                target_status=new_status,
            )

        subscription.refresh_from_db()
        logger.info(f"Subscription {subscription.id} set to {new_status} by {admin.email}")

        if subscription.is_active:
            transaction.on_commit(lambda: _queue_horizon_extension(subscription.id))
        return subscription

    @classmethod
    def pause(cls, subscription_id, admin: User) -> Subscription:
        return cls.set_status(subscription_id, Subscription.Status.PAUSED, admin)

    @classmethod
    def resume(cls, subscription_id, admin: User) -> Subscription:
        return cls.set_status(subscription_id, Subscription.Status.ACTIVE, admin)


class HorizonService:
    """
    Promotes planned projector entries into real delivery rows.

    Everything dated up to ``today + DELIVERY_HORIZON_DAYS`` is materialized.
    The unique (subscription, date, slot) constraint keeps repeated runs from
    creating duplicates.
    """

    @staticmethod
    def horizon_days() -> int:
        return int(getattr(settings, 'DELIVERY_HORIZON_DAYS', 1))

    @classmethod
    @transaction.atomic
    def extend(cls, subscription: Subscription, clock=None, ensure_first: bool = False) -> List[Delivery]:
        """
        Materialize planned deliveries inside the horizon.

        Args:
            subscription: subscription to extend
            clock: injected clock
            ensure_first: also materialize the first planned entry when it lies
                beyond the horizon and nothing real is outstanding (kitchen hand-off)

        Returns:
            list of Delivery rows created by this call
        """
        clock = resolve_clock(clock)
        if not subscription.is_active:
            logger.info(f"Subscription {subscription.id} is paused; horizon not extended")
            return []

        horizon_end = clock.today() + timedelta(days=cls.horizon_days())
        projection = SubscriptionScheduleService.project(subscription, None, clock)
        has_real = any(not entry.is_planned for entry in projection)

        created = []
        for index, entry in enumerate(projection):
            if not entry.is_planned:
                continue
            first_needed = ensure_first and index == 0 and not has_real
            if entry.date > horizon_end and not first_needed:
                break

            exists = Delivery.objects.filter(
                subscription=subscription,
                date=entry.date,
                scheduled_time=entry.time,
            ).exists()
            if exists:
                continue

            delivery = DeliveryService.create_delivery(
                order=subscription.order,
                customer=subscription.customer,
                subscription=subscription,
                date=entry.date,
                scheduled_time=entry.time,
                items=[(subscription.order_item, subscription.title, subscription.quantity)],
                clock=clock,
            )
            created.append(delivery)

        if created:
            logger.info(
                f"Extended horizon of subscription {subscription.id}: "
                f"{len(created)} deliveries through {created[-1].date}"
            )
        return created


def _queue_horizon_extension(subscription_id):
    from .tasks import extend_subscription_horizon

    extend_subscription_horizon.delay(str(subscription_id))
