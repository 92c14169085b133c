"""
Delivery status handlers.

A subscription delivery that reaches a final status frees a slot in the
projected schedule, so the horizon is topped up once the change commits.
"""

from django.db import transaction
from django.dispatch import receiver
import logging

from .models import Delivery, TERMINAL_STATUSES
from .signals import delivery_status_changed

logger = logging.getLogger(__name__)


@receiver(delivery_status_changed, sender=Delivery)
def handle_delivery_finalized(sender, instance, previous_status, **kwargs):
    if instance.subscription_id is None or instance.status not in TERMINAL_STATUSES:
        return

    from subscriptions.tasks import extend_subscription_horizon

    subscription_id = str(instance.subscription_id)
    transaction.on_commit(lambda: extend_subscription_horizon.delay(subscription_id))
    logger.debug(f"Delivery {instance.id} is {instance.status}; horizon refresh queued for {subscription_id}")
