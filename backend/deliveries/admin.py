from django.contrib import admin
from .models import Delivery, DeliveryItem, DeliveryStatusHistory


class DeliveryItemInline(admin.TabularInline):
    model = DeliveryItem
    extra = 0
    readonly_fields = ("order_item", "title", "quantity")


class DeliveryStatusHistoryInline(admin.TabularInline):
    model = DeliveryStatusHistory
    extra = 0
    readonly_fields = ("status", "changed_at", "changed_by", "actor")
    can_delete = False


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    """
    Read-only view of delivery records. Status changes go through the API so
    the state machine and its history are always applied.
    """

    list_display = ("id", "date", "scheduled_time", "status", "subscription", "order", "customer")
    list_filter = ("status", "date")
    search_fields = ("id", "order__order_number", "customer__email")
    date_hierarchy = "date"
    readonly_fields = (
        "id",
        "subscription",
        "order",
        "customer",
        "date",
        "scheduled_time",
        "status",
        "skip_request_id",
        "created_at",
        "updated_at",
    )
    inlines = [DeliveryItemInline, DeliveryStatusHistoryInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
