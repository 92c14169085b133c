from rest_framework import serializers
from core_backend.base import BaseModelSerializer, FieldsetMixin
from .models import PauseRequest, SkipRequest, WithdrawPauseRequest, DECISION_STATUSES

REQUEST_FIELDS = [
    'id',
    'request_type',
    'customer',
    'status',
    'reason',
    'admin_note',
    'decided_by',
    'decided_at',
    'created_at',
]


class RequestSerializerMixin(serializers.Serializer):
    request_type = serializers.SerializerMethodField()

    def get_request_type(self, obj):
        return obj.request_type


class PauseRequestSerializer(RequestSerializerMixin, FieldsetMixin, BaseModelSerializer):
    class Meta:
        model = PauseRequest
        fields = REQUEST_FIELDS + ['subscription', 'pause_start_date', 'pause_end_date']
        read_only_fields = fields
        select_related_fields = ['customer', 'decided_by']
        fieldsets = {
            'list': ['id', 'request_type', 'status', 'subscription', 'pause_start_date', 'pause_end_date', 'created_at'],
            'detail': '__all__',
        }


class SkipRequestSerializer(RequestSerializerMixin, FieldsetMixin, BaseModelSerializer):
    delivery_date = serializers.DateField(source='delivery.date', read_only=True)

    class Meta:
        model = SkipRequest
        fields = REQUEST_FIELDS + ['delivery', 'delivery_date', 'subscription']
        read_only_fields = fields
        select_related_fields = ['customer', 'decided_by', 'delivery']
        fieldsets = {
            'list': ['id', 'request_type', 'status', 'delivery', 'delivery_date', 'created_at'],
            'detail': '__all__',
        }


class WithdrawPauseRequestSerializer(RequestSerializerMixin, FieldsetMixin, BaseModelSerializer):
    class Meta:
        model = WithdrawPauseRequest
        fields = REQUEST_FIELDS + ['pause_request', 'subscription']
        read_only_fields = fields
        select_related_fields = ['customer', 'decided_by']
        fieldsets = {
            'list': ['id', 'request_type', 'status', 'pause_request', 'created_at'],
            'detail': '__all__',
        }


class PauseRequestCreateSerializer(serializers.Serializer):
    subscription = serializers.UUIDField()
    pause_start_date = serializers.DateField()
    pause_end_date = serializers.DateField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class SkipRequestCreateSerializer(serializers.Serializer):
    delivery = serializers.UUIDField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class WithdrawPauseRequestCreateSerializer(serializers.Serializer):
    pause_request = serializers.UUIDField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class DecideRequestSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=[(s.value, s.label) for s in DECISION_STATUSES])
    admin_note = serializers.CharField(required=False, allow_blank=True, default='')
