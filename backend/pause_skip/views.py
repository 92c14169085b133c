from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from core_backend.base import ReadOnlyBaseViewSet, FieldsetQueryParamsMixin, CustomerScopedQuerysetMixin
from users.permissions import IsAdminOrHigher
import logging

from .filters import PauseRequestFilter, SkipRequestFilter, WithdrawPauseRequestFilter
from .models import PauseRequest, SkipRequest, WithdrawPauseRequest
from .serializers import (
    PauseRequestSerializer,
    SkipRequestSerializer,
    WithdrawPauseRequestSerializer,
    PauseRequestCreateSerializer,
    SkipRequestCreateSerializer,
    WithdrawPauseRequestCreateSerializer,
    DecideRequestSerializer,
)
from .services import RequestLedgerService

logger = logging.getLogger(__name__)


class CustomerRequestViewSet(
    CustomerScopedQuerysetMixin,
    FieldsetQueryParamsMixin,
    mixins.CreateModelMixin,
    ReadOnlyBaseViewSet,
):
    """
    Shared behaviour of the request queues.

    Endpoints (per request type):
    - GET / - list (customers see their own, admins the whole queue)
    - POST / - submit (customer)
    - GET /<id>/ - detail
    - POST /<id>/decide/ - approve or decline (admin)
    - POST /<id>/cancel/ - customer withdraws their own pending request

    Query params:
    - ?status=PENDING (filter by status, repeatable)
    - ?view=list|detail (fieldset selection)
    """

    permission_classes = [IsAuthenticated]
    create_serializer_class = None

    def submit(self, validated_data):
        raise NotImplementedError

    def create(self, request, *args, **kwargs):
        input_serializer = self.create_serializer_class(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        instance = self.submit(input_serializer.validated_data)
        output = self.get_serializer(instance)
        return Response(output.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsAdminOrHigher])
    def decide(self, request, pk=None):
        """
        Request body:
        {
            "decision": "APPROVED" | "DECLINED",
            "admin_note": "optional"
        }

        Returns:
        - 200: decided request
        - 404: unknown request
        - 409: already decided, or the approval could not be applied
        """
        input_serializer = DecideRequestSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        instance = self.get_object()
        decided = RequestLedgerService.decide(
            instance.id,
            input_serializer.validated_data['decision'],
            admin=request.user,
            note=input_serializer.validated_data['admin_note'],
        )
        return Response(self.get_serializer(decided).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        instance = self.get_object()
        cancelled = RequestLedgerService.cancel(instance.id, request.user, model=type(instance))
        return Response(self.get_serializer(cancelled).data)


class PauseRequestViewSet(CustomerRequestViewSet):
    queryset = PauseRequest.objects.all()
    serializer_class = PauseRequestSerializer
    create_serializer_class = PauseRequestCreateSerializer
    filterset_class = PauseRequestFilter

    def submit(self, validated_data):
        return RequestLedgerService.submit_pause_request(
            validated_data['subscription'],
            self.request.user,
            validated_data['pause_start_date'],
            validated_data['pause_end_date'],
            reason=validated_data['reason'],
        )


class SkipRequestViewSet(CustomerRequestViewSet):
    queryset = SkipRequest.objects.all()
    serializer_class = SkipRequestSerializer
    create_serializer_class = SkipRequestCreateSerializer
    filterset_class = SkipRequestFilter

    def submit(self, validated_data):
        return RequestLedgerService.submit_skip_request(
            validated_data['delivery'],
            self.request.user,
            reason=validated_data['reason'],
        )


class WithdrawPauseRequestViewSet(CustomerRequestViewSet):
    queryset = WithdrawPauseRequest.objects.all()
    serializer_class = WithdrawPauseRequestSerializer
    create_serializer_class = WithdrawPauseRequestCreateSerializer
    filterset_class = WithdrawPauseRequestFilter

    def submit(self, validated_data):
        return RequestLedgerService.submit_withdraw_pause_request(
            validated_data['pause_request'],
            self.request.user,
            reason=validated_data['reason'],
        )
