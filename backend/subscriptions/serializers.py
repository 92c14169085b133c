from rest_framework import serializers
from core_backend.base import BaseModelSerializer, FieldsetMixin
from .models import Subscription


class SubscriptionSerializer(FieldsetMixin, BaseModelSerializer):
    """
    Subscription representation.

    View modes via ?view=:
    - list: lightweight rows for the customer dashboard
    - detail: everything
    """

    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = Subscription
        fields = [
            'id',
            'customer',
            'order',
            'order_number',
            'order_item',
            'kind',
            'cadence',
            'title',
            'quantity',
            'start_date',
            'delivery_time',
            'total_servings',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
        select_related_fields = ['order']
        fieldsets = {
            'list': ['id', 'kind', 'cadence', 'title', 'start_date', 'total_servings', 'status'],
            'detail': '__all__',
        }


class ScheduledDeliverySerializer(serializers.Serializer):
    """Serializes subscriptions.schedule.ScheduledDelivery entries."""

    date = serializers.DateField()
    time = serializers.TimeField()
    status = serializers.CharField()
    delivery_id = serializers.CharField(allow_null=True)
    is_planned = serializers.BooleanField()
    items = serializers.SerializerMethodField()

    def get_items(self, obj):
        return [{'title': title, 'quantity': quantity} for title, quantity in obj.items]


class UpcomingQuerySerializer(serializers.Serializer):
    count = serializers.IntegerField(required=False, min_value=1, max_value=100, default=5)


class PauseWindowSerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()
    pause_request_id = serializers.CharField()


class ScheduleSummarySerializer(serializers.Serializer):
    subscription_id = serializers.CharField()
    total_servings = serializers.IntegerField()
    delivered = serializers.IntegerField()
    skipped = serializers.IntegerField()
    remaining = serializers.IntegerField()
    scheduled = serializers.IntegerField()
    next_delivery_date = serializers.DateField(allow_null=True)
    schedule_end_date = serializers.DateField(allow_null=True)
    effective_pauses = PauseWindowSerializer(many=True)
