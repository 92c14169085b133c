from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def extend_delivery_horizons():
    """
    Materialize tomorrow's (horizon) deliveries for every active subscription.

    Runs daily via Celery Beat. Subscriptions that fail are logged and the
    run continues with the rest; the task fails at the end if any did.

    Returns:
        str: Status message with counts
    """
    from .models import Subscription
    from .services import HorizonService

    subscriptions = Subscription.objects.filter(status=Subscription.Status.ACTIVE).select_related(
        'order', 'order_item', 'customer'
    )

    created = 0
    failed = []
    for subscription in subscriptions:
        try:
            created += len(HorizonService.extend(subscription))
        except Exception as e:
            logger.error(f"Error extending horizon for subscription {subscription.id}: {e}", exc_info=True)
            failed.append(str(subscription.id))

    message = f"Created {created} deliveries across {subscriptions.count()} active subscriptions"
    if failed:
        raise RuntimeError(f"{message}; {len(failed)} subscriptions failed: {', '.join(failed)}")

    logger.info(message)
    return message


@shared_task
def extend_subscription_horizon(subscription_id):
    """
    Re-run horizon extension for one subscription after its pause windows changed.

    Returns:
        str: Status message
    """
    from .models import Subscription
    from .services import HorizonService

    try:
        subscription = Subscription.objects.get(id=subscription_id)
    except Subscription.DoesNotExist:
        logger.warning(f"Subscription {subscription_id} not found for horizon extension")
        return f"Subscription {subscription_id} not found"

    created = HorizonService.extend(subscription)
    message = f"Created {len(created)} deliveries for subscription {subscription_id}"
    logger.info(message)
    return message
