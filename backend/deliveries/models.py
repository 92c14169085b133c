import uuid
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _

from core_backend.clock import local_datetime


class DeliveryStatus(models.TextChoices):
    PENDING = 'PENDING', _('Pending')
    COOKING = 'COOKING', _('Cooking')
    PACKED = 'PACKED', _('Packed')
    OUT_FOR_DELIVERY = 'OUT_FOR_DELIVERY', _('Out for Delivery')
    DELIVERED = 'DELIVERED', _('Delivered')
    SKIPPED = 'SKIPPED', _('Skipped')


class ChangeSource(models.TextChoices):
    """Who caused a status change"""
    SYSTEM = 'SYSTEM', _('System')
    ADMIN = 'ADMIN', _('Admin')
    KITCHEN = 'KITCHEN', _('Kitchen')


TERMINAL_STATUSES = (DeliveryStatus.DELIVERED, DeliveryStatus.SKIPPED)

# Linear kitchen chain; SKIPPED is reachable only through an approved skip request
NEXT_STATUS = {
    DeliveryStatus.PENDING: DeliveryStatus.COOKING,
    DeliveryStatus.COOKING: DeliveryStatus.PACKED,
    DeliveryStatus.PACKED: DeliveryStatus.OUT_FOR_DELIVERY,
    DeliveryStatus.OUT_FOR_DELIVERY: DeliveryStatus.DELIVERED,
}


class Delivery(models.Model):
    """
    A concrete delivery attempt: one per subscription per date per time slot.

    Rows are never deleted. DELIVERED and SKIPPED are terminal.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subscription = models.ForeignKey(
        'subscriptions.Subscription',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='deliveries',
        help_text=_("Null for one-off (single/trial) purchases"),
    )
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        related_name='deliveries',
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='deliveries',
    )
    date = models.DateField(db_index=True)
    scheduled_time = models.TimeField()
    status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
    )
    skip_request_id = models.UUIDField(
        null=True,
        blank=True,
        help_text=_("Approved skip request that caused SKIPPED"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date', 'scheduled_time']
        verbose_name_plural = 'deliveries'
        constraints = [
            models.UniqueConstraint(
                fields=['subscription', 'date', 'scheduled_time'],
                condition=models.Q(subscription__isnull=False),
                name='unique_subscription_delivery_slot',
            ),
        ]
        indexes = [
            models.Index(fields=['date', 'status']),
            models.Index(fields=['subscription', 'date']),
        ]

    def __str__(self):
        return f"Delivery {self.id} on {self.date} {self.scheduled_time} - {self.status}"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def next_status(self):
        return NEXT_STATUS.get(self.status)

    @property
    def scheduled_at(self):
        """Aware local datetime of the slot."""
        return local_datetime(self.date, self.scheduled_time)


class DeliveryItem(models.Model):
    delivery = models.ForeignKey(Delivery, on_delete=models.CASCADE, related_name='items')
    order_item = models.ForeignKey(
        'orders.OrderItem',
        on_delete=models.PROTECT,
        related_name='delivery_items',
    )
    title = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ['delivery', 'id']

    def __str__(self):
        return f"{self.quantity} x {self.title}"


class DeliveryStatusHistory(models.Model):
    """Append-only audit trail of delivery status changes."""

    delivery = models.ForeignKey(Delivery, on_delete=models.CASCADE, related_name='history')
    status = models.CharField(max_length=20, choices=DeliveryStatus.choices)
    changed_at = models.DateTimeField()
    changed_by = models.CharField(max_length=10, choices=ChangeSource.choices, default=ChangeSource.SYSTEM)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        ordering = ['changed_at', 'id']
        verbose_name_plural = 'delivery status history'

    def __str__(self):
        return f"{self.delivery_id} -> {self.status} ({self.changed_by})"
