import uuid
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _


class Subscription(models.Model):
    """
    A recurring commitment created when an order is moved to kitchen.

    ``status`` is the rare subscription-wide admin switch. Day-level pausing
    goes through pause requests and never touches this row.
    """

    class Kind(models.TextChoices):
        MEAL_PACK = 'mealPack', _('Meal Pack')
        CUSTOM_MEAL = 'customMeal', _('Custom Meal')
        ADDON = 'addon', _('Add-on')

    class Cadence(models.TextChoices):
        WEEKLY = 'weekly', _('Weekly')
        MONTHLY = 'monthly', _('Monthly')

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        PAUSED = 'paused', _('Paused')

    KIND_BY_ITEM_TYPE = {
        'meal': Kind.MEAL_PACK,
        'byo': Kind.CUSTOM_MEAL,
        'addon': Kind.ADDON,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='subscriptions',
    )
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        related_name='subscriptions',
    )
    order_item = models.OneToOneField(
        'orders.OrderItem',
        on_delete=models.PROTECT,
        related_name='subscription',
    )
    kind = models.CharField(max_length=20, choices=Kind.choices)
    cadence = models.CharField(max_length=10, choices=Cadence.choices)
    title = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    start_date = models.DateField()
    delivery_time = models.TimeField()
    total_servings = models.PositiveIntegerField(
        help_text=_("Committed servings, derived from cadence at creation"),
    )
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', 'status']),
        ]

    def __str__(self):
        return f"{self.title} ({self.cadence}) - {self.status}"

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE

    @classmethod
    def servings_for_cadence(cls, cadence):
        mapping = getattr(settings, 'SUBSCRIPTION_SERVINGS_BY_CADENCE', {'weekly': 5, 'monthly': 20})
        try:
            return mapping[cadence]
        except KeyError:
            raise ValueError(f"No servings configured for cadence '{cadence}'")

    @classmethod
    def kind_for_item_type(cls, item_type):
        return cls.KIND_BY_ITEM_TYPE.get(item_type, cls.Kind.MEAL_PACK)
