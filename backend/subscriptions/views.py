from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from core_backend.base import ReadOnlyBaseViewSet, FieldsetQueryParamsMixin, CustomerScopedQuerysetMixin
from users.permissions import IsAdminOrHigher

from .filters import SubscriptionFilter
from .models import Subscription
from .serializers import (
    SubscriptionSerializer,
    ScheduledDeliverySerializer,
    ScheduleSummarySerializer,
    UpcomingQuerySerializer,
)
from .services import SubscriptionScheduleService, SubscriptionAdminService


class SubscriptionViewSet(CustomerScopedQuerysetMixin, FieldsetQueryParamsMixin, ReadOnlyBaseViewSet):
    """
    Subscriptions created by move-to-kitchen.

    Endpoints:
    - GET /api/subscriptions/ - list (customers see their own)
    - GET /api/subscriptions/<id>/ - detail
    - GET /api/subscriptions/<id>/upcoming/?count=N - next N real or planned deliveries
    - GET /api/subscriptions/<id>/summary/ - serving counters and schedule end
    - POST /api/subscriptions/<id>/pause/ - subscription-wide pause (admin)
    - POST /api/subscriptions/<id>/resume/ - resume (admin)
    """

    queryset = Subscription.objects.all()
    serializer_class = SubscriptionSerializer
    filterset_class = SubscriptionFilter
    permission_classes = [IsAuthenticated]
    search_fields = ['title', 'order__order_number', 'customer__email']

    @action(detail=True, methods=['get'])
    def upcoming(self, request, pk=None):
        subscription = self.get_object()
        params = UpcomingQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        upcoming = SubscriptionScheduleService.project_upcoming_deliveries(
            subscription.id, params.validated_data['count']
        )
        return Response(ScheduledDeliverySerializer(upcoming, many=True).data)

    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        subscription = self.get_object()
        summary = SubscriptionScheduleService.summary(subscription.id)
        return Response(ScheduleSummarySerializer(summary).data)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsAdminOrHigher])
    def pause(self, request, pk=None):
        subscription = SubscriptionAdminService.pause(pk, request.user)
        return Response(self.get_serializer(subscription).data)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsAdminOrHigher])
    def resume(self, request, pk=None):
        subscription = SubscriptionAdminService.resume(pk, request.user)
        return Response(self.get_serializer(subscription).data)
