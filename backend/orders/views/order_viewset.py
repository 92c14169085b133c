from rest_framework import mixins, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.contrib.auth import get_user_model
import logging

from core_backend.base import ReadOnlyBaseViewSet, FieldsetQueryParamsMixin, CustomerScopedQuerysetMixin
from core_backend.exceptions import EntityNotFoundError
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import UnifiedOrderSerializer, OrderCreateSerializer
from orders.services import OrderService
from users.permissions import IsAdminOrHigher

from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)
User = get_user_model()


class OrderViewSet(
    StatusActionsMixin,
    CustomerScopedQuerysetMixin,
    FieldsetQueryParamsMixin,
    mixins.CreateModelMixin,
    ReadOnlyBaseViewSet,
):
    """
    Orders as seen by the delivery engine.

    Features:
    - Admin review queue with filtering (StatusActionsMixin for decisions)
    - Customers see only their own orders
    - POST /api/orders/ records an order handed over by checkout (admin)
    """

    queryset = Order.objects.all()
    serializer_class = UnifiedOrderSerializer
    filterset_class = OrderFilter
    permission_classes = [IsAuthenticated]
    search_fields = ["order_number", "customer__email"]
    ordering_fields = ["created_at", "order_number"]

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticated(), IsAdminOrHigher()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            customer = User.objects.get(pk=serializer.validated_data["customer"])
        except User.DoesNotExist:
            raise EntityNotFoundError("User", serializer.validated_data["customer"])

        order = OrderService.record_order(
            customer,
            serializer.validated_data["items"],
            payment_status=serializer.validated_data["payment_status"],
        )
        return Response(self.get_serializer(order).data, status=status.HTTP_201_CREATED)
