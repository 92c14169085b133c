from django.contrib import admin
from .models import Subscription


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "customer", "kind", "cadence", "start_date", "total_servings", "status")
    list_filter = ("status", "kind", "cadence")
    search_fields = ("id", "title", "customer__email", "order__order_number")
    readonly_fields = (
        "id",
        "customer",
        "order",
        "order_item",
        "kind",
        "cadence",
        "start_date",
        "total_servings",
        "created_at",
        "updated_at",
    )
