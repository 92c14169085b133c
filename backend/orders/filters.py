import django_filters
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """
    Filter for the admin order queue.

    Supports filtering by:
    - acceptance_status, current_status, payment_status (exact or multiple)
    - moved_to_kitchen (boolean)
    - created_at (date range)
    """

    acceptance_status = django_filters.MultipleChoiceFilter(choices=Order.AcceptanceStatus.choices)
    current_status = django_filters.MultipleChoiceFilter(choices=Order.LifecycleStatus.choices)
    payment_status = django_filters.MultipleChoiceFilter(choices=Order.PaymentStatus.choices)
    moved_to_kitchen = django_filters.BooleanFilter(
        field_name='moved_to_kitchen_at',
        lookup_expr='isnull',
        exclude=True,
    )
    created_at__gte = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_at__lte = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Order
        fields = ['acceptance_status', 'current_status', 'payment_status', 'customer']
