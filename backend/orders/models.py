import uuid
import random
import string
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _


class Order(models.Model):
    """
    A paid customer order as handed over by the checkout/payment collaborators.

    The delivery engine only owns the acceptance decision, the kitchen hand-off
    stamp and the fulfilment lifecycle; pricing and payment capture live elsewhere.
    """

    class PaymentStatus(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        PAID = "PAID", _("Paid")
        FAILED = "FAILED", _("Failed")

    class AcceptanceStatus(models.TextChoices):
        PENDING_REVIEW = "PENDING_REVIEW", _("Pending Review")
        CONFIRMED = "CONFIRMED", _("Confirmed")
        DECLINED = "DECLINED", _("Declined")

    class LifecycleStatus(models.TextChoices):
        PAID = "PAID", _("Paid")
        CONFIRMED = "CONFIRMED", _("Confirmed")
        PREPARING = "PREPARING", _("Preparing")
        OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", _("Out for Delivery")
        DELIVERED = "DELIVERED", _("Delivered")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=20, unique=True, blank=True)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    acceptance_status = models.CharField(
        max_length=20,
        choices=AcceptanceStatus.choices,
        default=AcceptanceStatus.PENDING_REVIEW,
        help_text=_("Admin review decision. Locked once the order is moved to kitchen."),
    )
    accepted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accepted_orders",
    )
    accepted_at = models.DateTimeField(null=True, blank=True)
    current_status = models.CharField(
        max_length=20,
        choices=LifecycleStatus.choices,
        default=LifecycleStatus.PAID,
        help_text=_("Forward-only fulfilment lifecycle"),
    )
    moved_to_kitchen_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Set once deliveries have been generated; irreversible"),
    )
    admin_notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "order_number"]
        indexes = [
            models.Index(fields=["acceptance_status", "created_at"]),
            models.Index(fields=["customer", "created_at"]),
        ]

    def __str__(self):
        return f"Order {self.order_number or self.pk} - {self.acceptance_status}"

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = self._generate_order_number()
        super().save(*args, **kwargs)

    @staticmethod
    def _generate_order_number():
        suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=8))
        return f"ORD-{suffix}"

    @property
    def is_paid(self):
        return self.payment_status == self.PaymentStatus.PAID

    @property
    def is_moved_to_kitchen(self):
        return self.moved_to_kitchen_at is not None


class OrderItem(models.Model):
    """
    A resolved line item: title, quantity, plan and schedule as priced at checkout.
    """

    class ItemType(models.TextChoices):
        MEAL = "meal", _("Meal")
        ADDON = "addon", _("Add-on")
        BYO = "byo", _("Build Your Own")

    class Plan(models.TextChoices):
        SINGLE = "single", _("Single")
        TRIAL = "trial", _("Trial")
        WEEKLY = "weekly", _("Weekly")
        MONTHLY = "monthly", _("Monthly")

    RECURRING_PLANS = (Plan.WEEKLY, Plan.MONTHLY)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    cart_item_id = models.CharField(
        max_length=64,
        help_text=_("Identifier of the cart line this item was resolved from"),
    )
    item_type = models.CharField(max_length=10, choices=ItemType.choices, default=ItemType.MEAL)
    plan = models.CharField(max_length=10, choices=Plan.choices, default=Plan.SINGLE)
    title = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    start_date = models.DateField(null=True, blank=True)
    delivery_time = models.CharField(
        max_length=16,
        blank=True,
        default="",
        help_text=_("Requested slot as entered, e.g. '13:30' or '1:30 PM'"),
    )
    immediate_delivery = models.BooleanField(default=False)

    class Meta:
        ordering = ["order", "id"]

    def __str__(self):
        return f"{self.quantity} x {self.title} ({self.plan})"

    @property
    def is_recurring(self):
        return self.plan in self.RECURRING_PLANS


class OrderStatusHistory(models.Model):
    """Append-only record of every order lifecycle change."""

    class ChangedBy(models.TextChoices):
        SYSTEM = "SYSTEM", _("System")
        ADMIN = "ADMIN", _("Admin")

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_history")
    status = models.CharField(max_length=20, choices=Order.LifecycleStatus.choices)
    changed_at = models.DateTimeField()
    changed_by = models.CharField(max_length=10, choices=ChangedBy.choices, default=ChangedBy.SYSTEM)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["changed_at", "id"]
        verbose_name_plural = "order status history"

    def __str__(self):
        return f"{self.order_id} -> {self.status} @ {self.changed_at}"
