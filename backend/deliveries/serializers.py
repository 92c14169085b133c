from rest_framework import serializers
from core_backend.base import BaseModelSerializer, FieldsetMixin
from .models import Delivery, DeliveryItem, DeliveryStatus, DeliveryStatusHistory


class DeliveryItemSerializer(BaseModelSerializer):
    class Meta:
        model = DeliveryItem
        fields = ['id', 'order_item', 'title', 'quantity']
        read_only_fields = fields


class DeliverySerializer(FieldsetMixin, BaseModelSerializer):
    """
    Delivery representation with fieldset support.

    View modes via ?view=:
    - list: calendar rows
    - kitchen: what the kitchen board needs to cook and pack
    - detail: everything
    """

    order_number = serializers.CharField(source='order.order_number', read_only=True)
    customer_email = serializers.EmailField(source='customer.email', read_only=True)
    items = DeliveryItemSerializer(many=True, read_only=True)
    next_status = serializers.CharField(read_only=True)
    is_terminal = serializers.BooleanField(read_only=True)

    class Meta:
        model = Delivery
        fields = [
            'id',
            'subscription',
            'order',
            'order_number',
            'customer',
            'customer_email',
            'date',
            'scheduled_time',
            'status',
            'next_status',
            'is_terminal',
            'skip_request_id',
            'items',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
        select_related_fields = ['order', 'customer', 'subscription']
        prefetch_related_fields = ['items']
        fieldsets = {
            'list': ['id', 'subscription', 'order_number', 'date', 'scheduled_time', 'status', 'items'],
            'kitchen': [
                'id', 'order_number', 'customer_email', 'scheduled_time',
                'status', 'next_status', 'items',
            ],
            'detail': '__all__',
        }


class DeliveryStatusHistorySerializer(BaseModelSerializer):
    actor_email = serializers.EmailField(source='actor.email', read_only=True, default=None)

    class Meta:
        model = DeliveryStatusHistory
        fields = ['id', 'status', 'changed_at', 'changed_by', 'actor_email']
        read_only_fields = fields


class AdvanceDeliverySerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=DeliveryStatus.choices,
        required=False,
        help_text="Status the caller expects to reach; omitted means the next step",
    )


class DeliveryListQuerySerializer(serializers.Serializer):
    subscription = serializers.UUIDField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class KitchenBoardQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
