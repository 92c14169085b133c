from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
import logging

from orders.serializers import (
    OrderAcceptanceSerializer,
    UpdateOrderStatusSerializer,
    TimelineEntrySerializer,
)
from orders.services import OrderService, OrderAcceptanceService, KitchenService
from users.permissions import IsAdminOrHigher

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order acceptance, kitchen hand-off and lifecycle actions.

    This mixin provides action methods for OrderViewSet.
    """

    @action(
        detail=True,
        methods=["post"],
        url_path="acceptance",
        permission_classes=[IsAuthenticated, IsAdminOrHigher],
    )
    def acceptance(self, request: Request, pk=None) -> Response:
        """
        Confirm or decline a paid order.

        Request body:
        {
            "acceptance_status": "CONFIRMED" | "DECLINED",
            "admin_notes": "optional"
        }
        """
        serializer = OrderAcceptanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderAcceptanceService.set_acceptance(
            pk,
            serializer.validated_data["acceptance_status"],
            admin=request.user,
            note=serializer.validated_data["admin_notes"],
        )
        return Response(self.get_serializer(order).data)

    @action(
        detail=True,
        methods=["post"],
        url_path="move-to-kitchen",
        permission_classes=[IsAuthenticated, IsAdminOrHigher],
    )
    def move_to_kitchen(self, request: Request, pk=None) -> Response:
        """
        Generate deliveries for a confirmed order. One-shot: a second call
        returns 409 ALREADY_MOVED.
        """
        result = KitchenService.move_to_kitchen(pk, actor=request.user)
        return Response(
            {
                "order": self.get_serializer(result["order"]).data,
                "deliveries_created": result["deliveries_created"],
            },
            status=status.HTTP_200_OK,
        )

    @action(
        detail=True,
        methods=["post"],
        url_path="status",
        permission_classes=[IsAuthenticated, IsAdminOrHigher],
    )
    def update_status(self, request: Request, pk=None) -> Response:
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.update_status(pk, serializer.validated_data["status"], actor=request.user)
        return Response(self.get_serializer(order).data)

    @action(detail=True, methods=["get"], url_path="timeline")
    def timeline(self, request: Request, pk=None) -> Response:
        order = self.get_object()
        entries = OrderService.timeline(order.id)
        return Response(TimelineEntrySerializer(entries, many=True).data)
