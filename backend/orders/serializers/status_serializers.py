from rest_framework import serializers
from orders.models import Order


class OrderAcceptanceSerializer(serializers.Serializer):
    """
    Admin decision on a paid order. PENDING_REVIEW is accepted here so the
    service can reject it with a specific message.
    """

    acceptance_status = serializers.ChoiceField(choices=Order.AcceptanceStatus.choices)
    admin_notes = serializers.CharField(required=False, allow_blank=True, default='')


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.LifecycleStatus.choices)


class TimelineEntrySerializer(serializers.Serializer):
    source = serializers.CharField()
    status = serializers.CharField()
    changed_at = serializers.DateTimeField()
    changed_by = serializers.CharField()
    delivery_id = serializers.CharField(allow_null=True)
    delivery_date = serializers.DateField(allow_null=True)
