from django_filters import rest_framework as filters
from .models import Subscription


class SubscriptionFilter(filters.FilterSet):
    """
    Filter for Subscription queryset.

    Supports filtering by:
    - status, kind, cadence (exact or multiple)
    - customer (exact)
    - order (exact)
    """

    status = filters.MultipleChoiceFilter(choices=Subscription.Status.choices)
    kind = filters.MultipleChoiceFilter(choices=Subscription.Kind.choices)
    cadence = filters.MultipleChoiceFilter(choices=Subscription.Cadence.choices)
    customer = filters.NumberFilter(field_name='customer__id')
    order = filters.UUIDFilter(field_name='order__id')

    class Meta:
        model = Subscription
        fields = ['status', 'kind', 'cadence', 'customer', 'order']
