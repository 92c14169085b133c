from datetime import date
from typing import List, Optional
import logging

from django.conf import settings

from core_backend.exceptions import EntityNotFoundError, RequestValidationError
from pause_skip.services import RequestLedgerService
from subscriptions.models import Subscription

from ..models import Delivery, DeliveryStatus

logger = logging.getLogger(__name__)


class DeliveryQueryService:
    """Read side of the delivery record store."""

    @staticmethod
    def _base_queryset():
        return Delivery.objects.select_related('subscription', 'order').prefetch_related('items')

    @staticmethod
    def _paused(deliveries, pending_only: bool) -> set:
        """Ids of subscription deliveries that fall inside an effective pause range."""
        ranges = RequestLedgerService.effective_pause_ranges_for(
            {d.subscription_id for d in deliveries if d.subscription_id}
        )
        hidden = set()
        for delivery in deliveries:
            if delivery.subscription_id is None:
                continue
            if pending_only and delivery.status != DeliveryStatus.PENDING:
                continue
            pauses = ranges.get(str(delivery.subscription_id), [])
            if any(pause.contains(delivery.date) for pause in pauses):
                hidden.add(delivery.id)
        return hidden

    @staticmethod
    def list_deliveries(
        subscription_id=None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        viewer=None,
    ) -> List[Delivery]:
        """
        List deliveries for one subscription, or for an inclusive date range.

        Customers only see their own deliveries, and pending deliveries that
        fall inside an effective pause are hidden from them.
        """
        queryset = DeliveryQueryService._base_queryset()

        if subscription_id is not None:
            if not Subscription.objects.filter(id=subscription_id).exists():
                raise EntityNotFoundError('Subscription', subscription_id)
            queryset = queryset.filter(subscription_id=subscription_id)
            if date_from:
                queryset = queryset.filter(date__gte=date_from)
            if date_to:
                queryset = queryset.filter(date__lte=date_to)
        elif date_from and date_to:
            if date_to < date_from:
                raise RequestValidationError("date_to must be on or after date_from")
            max_days = getattr(settings, 'DELIVERY_LIST_MAX_RANGE_DAYS', 31)
            if (date_to - date_from).days + 1 > max_days:
                raise RequestValidationError(f"Date range cannot exceed {max_days} days")
            queryset = queryset.filter(date__gte=date_from, date__lte=date_to)
        else:
            raise RequestValidationError("Provide a subscription or both date_from and date_to")

        is_customer = viewer is not None and not viewer.is_staff_role
        if is_customer:
            queryset = queryset.filter(customer=viewer)

        deliveries = list(queryset.order_by('date', 'scheduled_time'))
        if is_customer:
            hidden = DeliveryQueryService._paused(deliveries, pending_only=True)
            deliveries = [d for d in deliveries if d.id not in hidden]
        return deliveries

    @staticmethod
    def list_kitchen_deliveries(day: date) -> List[Delivery]:
        """A day's deliveries for the kitchen board, minus paused subscription days."""
        deliveries = list(
            DeliveryQueryService._base_queryset()
            .select_related('customer')
            .filter(date=day)
            .order_by('scheduled_time', 'created_at')
        )
        hidden = DeliveryQueryService._paused(deliveries, pending_only=False)
        if hidden:
            logger.info(f"Kitchen board for {day}: hiding {len(hidden)} paused deliveries")
        return [d for d in deliveries if d.id not in hidden]
