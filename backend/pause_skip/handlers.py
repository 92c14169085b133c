"""
Request decision handlers.

Listen to request_decided and apply the effect of approved requests. They run
inside the deciding transaction, so a failing side effect rolls the decision
back with it.
"""

from django.db import transaction
from django.dispatch import receiver
import logging

from .models import PauseRequest, RequestStatus, SkipRequest, WithdrawPauseRequest
from .signals import request_decided

logger = logging.getLogger(__name__)


@receiver(request_decided, sender=SkipRequest)
def handle_skip_decision(sender, instance, decision, actor=None, **kwargs):
    """Approved skip marks its delivery SKIPPED and stamps the request id."""
    if decision != RequestStatus.APPROVED:
        return

    from deliveries.services import DeliveryService

    DeliveryService.mark_skipped(instance.delivery_id, instance.id, actor=actor)
    logger.info(f"Applied approved skip {instance.id} to delivery {instance.delivery_id}")


@receiver(request_decided, sender=PauseRequest)
@receiver(request_decided, sender=WithdrawPauseRequest)
def handle_pause_window_decision(sender, instance, decision, **kwargs):
    """
    Approved pause or withdraw moves the remaining servings, so the
    materialized horizon is refreshed once the decision commits.
    """
    if decision != RequestStatus.APPROVED:
        return

    from subscriptions.tasks import extend_subscription_horizon

    subscription_id = str(instance.subscription_id)
    transaction.on_commit(lambda: extend_subscription_horizon.delay(subscription_id))
    logger.info(
        f"{sender.__name__} {instance.id} approved; horizon refresh queued for subscription {subscription_id}"
    )
