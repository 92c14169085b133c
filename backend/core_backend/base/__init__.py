"""
Core backend base components.

Foundational classes shared by every app: viewsets, serializers and the
query-param mixins that drive fieldsets.
"""

from .viewsets import ReadOnlyBaseViewSet
from .serializers import BaseModelSerializer, FieldsetMixin
from .mixins import FieldsetQueryParamsMixin, CustomerScopedQuerysetMixin

__all__ = [
    'ReadOnlyBaseViewSet',
    'BaseModelSerializer',
    'FieldsetMixin',
    'FieldsetQueryParamsMixin',
    'CustomerScopedQuerysetMixin',
]
