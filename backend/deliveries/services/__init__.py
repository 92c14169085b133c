"""
Deliveries services package.

- DeliveryService: delivery state machine (advance, mark_skipped) and row creation
- DeliveryQueryService: delivery listings and the kitchen board
"""

from .delivery_service import DeliveryService, change_source_for
from .query_service import DeliveryQueryService

__all__ = [
    'DeliveryService',
    'DeliveryQueryService',
    'change_source_for',
]
