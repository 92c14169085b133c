from rest_framework import viewsets, filters
from django_filters.rest_framework import DjangoFilterBackend
from ..pagination import StandardPagination


class ReadOnlyBaseViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Base ViewSet for engine resources.

    Features:
    - Standard pagination, filtering, and search
    - Query optimization driven by serializer Meta (select_related_fields / prefetch_related_fields)

    State changes never go through generic update/destroy; they are @action
    endpoints that delegate to the service layer.

    Usage:
        class DeliveryViewSet(ReadOnlyBaseViewSet):
            serializer_class = DeliverySerializer
    """

    pagination_class = StandardPagination

    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter,
    ]

    # Default ordering (can be overridden)
    ordering = ['-created_at']

    def get_queryset(self):
        queryset = super().get_queryset()
        return optimize_queryset(queryset, self.get_serializer_class())


def optimize_queryset(queryset, serializer_class):
    """Apply select_related/prefetch_related declared on the serializer Meta."""
    meta = getattr(serializer_class, 'Meta', None)
    select_fields = getattr(meta, 'select_related_fields', [])
    prefetch_fields = getattr(meta, 'prefetch_related_fields', [])
    if select_fields:
        queryset = queryset.select_related(*select_fields)
    if prefetch_fields:
        queryset = queryset.prefetch_related(*prefetch_fields)
    return queryset
