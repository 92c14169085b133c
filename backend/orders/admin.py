from django.contrib import admin
from .models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = (
        "cart_item_id",
        "item_type",
        "plan",
        "title",
        "quantity",
        "start_date",
        "delivery_time",
        "immediate_delivery",
    )


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ("status", "changed_at", "changed_by", "actor")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "customer",
        "payment_status",
        "acceptance_status",
        "current_status",
        "moved_to_kitchen_at",
        "created_at",
    )
    list_filter = ("payment_status", "acceptance_status", "current_status")
    search_fields = ("order_number", "customer__email")
    readonly_fields = (
        "id",
        "order_number",
        "acceptance_status",
        "accepted_by",
        "accepted_at",
        "current_status",
        "moved_to_kitchen_at",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline, OrderStatusHistoryInline]
