from django.contrib import admin
from .models import PauseRequest, SkipRequest, WithdrawPauseRequest

DECISION_FIELDS = ("status", "decided_by", "decided_at", "admin_note", "created_at", "updated_at")


class CustomerRequestAdmin(admin.ModelAdmin):
    """
    Read-only request history. Decisions go through the API so the
    decided-once rule and the approval side effects always apply.
    """

    list_filter = ("status", "created_at")
    search_fields = ("id", "customer__email", "reason")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PauseRequest)
class PauseRequestAdmin(CustomerRequestAdmin):
    list_display = ("id", "customer", "subscription", "pause_start_date", "pause_end_date", "status", "created_at")
    readonly_fields = ("id", "customer", "subscription", "pause_start_date", "pause_end_date", "reason") + DECISION_FIELDS


@admin.register(SkipRequest)
class SkipRequestAdmin(CustomerRequestAdmin):
    list_display = ("id", "customer", "delivery", "status", "created_at")
    readonly_fields = ("id", "customer", "delivery", "subscription", "reason") + DECISION_FIELDS


@admin.register(WithdrawPauseRequest)
class WithdrawPauseRequestAdmin(CustomerRequestAdmin):
    list_display = ("id", "customer", "pause_request", "status", "created_at")
    readonly_fields = ("id", "customer", "pause_request", "subscription", "reason") + DECISION_FIELDS
