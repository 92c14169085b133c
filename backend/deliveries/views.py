from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView
from core_backend.base import ReadOnlyBaseViewSet, FieldsetQueryParamsMixin, CustomerScopedQuerysetMixin
from core_backend.clock import system_clock
from users.permissions import IsKitchenOrHigher
import logging

from .models import Delivery
from .serializers import (
    DeliverySerializer,
    DeliveryStatusHistorySerializer,
    AdvanceDeliverySerializer,
    DeliveryListQuerySerializer,
    KitchenBoardQuerySerializer,
)
from .services import DeliveryService, DeliveryQueryService

logger = logging.getLogger(__name__)


class DeliveryViewSet(CustomerScopedQuerysetMixin, FieldsetQueryParamsMixin, ReadOnlyBaseViewSet):
    """
    Delivery records.

    Endpoints:
    - GET /api/deliveries/?subscription=<uuid> - deliveries of a subscription
    - GET /api/deliveries/?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD - deliveries in a range
    - GET /api/deliveries/<id>/ - delivery detail
    - POST /api/deliveries/<id>/advance/ - next kitchen step (admin/kitchen)
    - GET /api/deliveries/<id>/history/ - status history
    """

    queryset = Delivery.objects.all()
    serializer_class = DeliverySerializer
    permission_classes = [IsAuthenticated]
    ordering = ['date', 'scheduled_time']

    def list(self, request, *args, **kwargs):
        params = DeliveryListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        deliveries = DeliveryQueryService.list_deliveries(
            subscription_id=params.validated_data.get('subscription'),
            date_from=params.validated_data.get('date_from'),
            date_to=params.validated_data.get('date_to'),
            viewer=request.user,
        )

        page = self.paginate_queryset(deliveries)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(self.get_serializer(deliveries, many=True).data)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsKitchenOrHigher])
    def advance(self, request, pk=None):
        """
        Advance the delivery one step: PENDING -> COOKING -> PACKED ->
        OUT_FOR_DELIVERY -> DELIVERED. Only today's deliveries can move.

        Request body (optional):
        {
            "status": "COOKING"
        }

        Returns:
        - 200: updated delivery
        - 404: unknown delivery
        - 409: invalid transition or concurrent change
        """
        input_serializer = AdvanceDeliverySerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        delivery = DeliveryService.advance(
            pk,
            actor=request.user,
            target_status=input_serializer.validated_data.get('status'),
        )
        return Response(
            DeliverySerializer(delivery, context=self.get_serializer_context()).data,
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        delivery = self.get_object()
        serializer = DeliveryStatusHistorySerializer(delivery.history.select_related('actor'), many=True)
        return Response(serializer.data)


class KitchenBoardView(APIView):
    """
    GET /api/kitchen/deliveries/?date=YYYY-MM-DD

    The day's deliveries ordered by slot; subscription days inside an
    effective pause are left out. Defaults to today.
    """

    permission_classes = [IsAuthenticated, IsKitchenOrHigher]

    def get(self, request):
        params = KitchenBoardQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        day = params.validated_data.get('date') or system_clock.today()

        deliveries = DeliveryQueryService.list_kitchen_deliveries(day)
        serializer = DeliverySerializer(
            deliveries,
            many=True,
            context={'request': request, 'view_mode': 'kitchen'},
        )
        return Response({'date': day, 'count': len(deliveries), 'deliveries': serializer.data})
