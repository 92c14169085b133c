from django_filters import rest_framework as filters
from .models import PauseRequest, SkipRequest, WithdrawPauseRequest, RequestStatus


class CustomerRequestFilter(filters.FilterSet):
    """
    Shared filters for the admin request queues.

    Supports filtering by:
    - status (exact or multiple)
    - customer (exact)
    - subscription (exact)
    - created_at (date range)
    """

    status = filters.MultipleChoiceFilter(
        choices=RequestStatus.choices,
        help_text="Filter by status. Can specify multiple: ?status=PENDING&status=APPROVED"
    )
    customer = filters.NumberFilter(field_name='customer__id')
    subscription = filters.UUIDFilter(field_name='subscription__id')
    created_after = filters.DateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = filters.DateTimeFilter(field_name='created_at', lookup_expr='lte')


class PauseRequestFilter(CustomerRequestFilter):
    overlaps_date = filters.DateFilter(
        method='filter_overlaps_date',
        help_text="Pauses whose range contains this date"
    )

    class Meta:
        model = PauseRequest
        fields = ['status', 'customer', 'subscription']

    def filter_overlaps_date(self, queryset, name, value):
        return queryset.filter(pause_start_date__lte=value, pause_end_date__gte=value)


class SkipRequestFilter(CustomerRequestFilter):
    delivery = filters.UUIDFilter(field_name='delivery__id')
    delivery_date = filters.DateFilter(field_name='delivery__date')

    class Meta:
        model = SkipRequest
        fields = ['status', 'customer', 'subscription', 'delivery']


class WithdrawPauseRequestFilter(CustomerRequestFilter):
    pause_request = filters.UUIDFilter(field_name='pause_request__id')

    class Meta:
        model = WithdrawPauseRequest
        fields = ['status', 'customer', 'subscription', 'pause_request']
