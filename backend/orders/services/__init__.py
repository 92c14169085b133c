"""
Orders services package.

- OrderService: order intake, fulfilment lifecycle and the merged order timeline
- OrderAcceptanceService: admin confirm/decline gate
- KitchenService: move-to-kitchen delivery generation
"""

from .order_service import OrderService
from .acceptance_service import OrderAcceptanceService
from .kitchen_service import KitchenService

__all__ = [
    'OrderService',
    'OrderAcceptanceService',
    'KitchenService',
]
