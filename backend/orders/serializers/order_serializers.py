from rest_framework import serializers
from core_backend.base import BaseModelSerializer, FieldsetMixin
from orders.models import Order, OrderItem


class OrderItemSerializer(BaseModelSerializer):
    is_recurring = serializers.BooleanField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id',
            'cart_item_id',
            'item_type',
            'plan',
            'title',
            'quantity',
            'start_date',
            'delivery_time',
            'immediate_delivery',
            'is_recurring',
        ]
        read_only_fields = ['id', 'is_recurring']


class UnifiedOrderSerializer(FieldsetMixin, BaseModelSerializer):
    """
    Order representation with fieldset support.

    View modes via ?view=:
    - list: admin review queue rows
    - detail: full order with items
    """

    customer_email = serializers.EmailField(source='customer.email', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    is_moved_to_kitchen = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'order_number',
            'customer',
            'customer_email',
            'payment_status',
            'acceptance_status',
            'accepted_by',
            'accepted_at',
            'current_status',
            'moved_to_kitchen_at',
            'is_moved_to_kitchen',
            'admin_notes',
            'items',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
        select_related_fields = ['customer', 'accepted_by']
        prefetch_related_fields = ['items']
        fieldsets = {
            'list': [
                'id', 'order_number', 'customer_email', 'payment_status',
                'acceptance_status', 'current_status', 'is_moved_to_kitchen', 'created_at',
            ],
            'detail': '__all__',
        }


class OrderItemInputSerializer(serializers.Serializer):
    cart_item_id = serializers.CharField(max_length=64)
    item_type = serializers.ChoiceField(choices=OrderItem.ItemType.choices, default=OrderItem.ItemType.MEAL)
    plan = serializers.ChoiceField(choices=OrderItem.Plan.choices, default=OrderItem.Plan.SINGLE)
    title = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1, default=1)
    start_date = serializers.DateField(required=False, allow_null=True)
    delivery_time = serializers.CharField(max_length=16, required=False, allow_blank=True, default='')
    immediate_delivery = serializers.BooleanField(default=False)


class OrderCreateSerializer(serializers.Serializer):
    """Order hand-over from checkout: the resolved line items plus payment state."""

    customer = serializers.IntegerField()
    payment_status = serializers.ChoiceField(choices=Order.PaymentStatus.choices, default=Order.PaymentStatus.PAID)
    items = OrderItemInputSerializer(many=True, allow_empty=False)
