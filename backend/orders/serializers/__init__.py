"""
Orders serializers package - modular serializer layer.
"""

from .order_serializers import (
    OrderItemSerializer,
    UnifiedOrderSerializer,
    OrderItemInputSerializer,
    OrderCreateSerializer,
)

from .status_serializers import (
    OrderAcceptanceSerializer,
    UpdateOrderStatusSerializer,
    TimelineEntrySerializer,
)

__all__ = [
    'OrderItemSerializer',
    'UnifiedOrderSerializer',
    'OrderItemInputSerializer',
    'OrderCreateSerializer',
    'OrderAcceptanceSerializer',
    'UpdateOrderStatusSerializer',
    'TimelineEntrySerializer',
]
