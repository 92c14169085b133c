"""
Delivery time-slot parsing.

Checkout stores the requested slot as free text. Both 24-hour ("13:30") and
12-hour ("1:30 PM") forms are accepted; anything else falls back to the
configured default slot.
"""
import logging
from datetime import datetime, time

from django.conf import settings

logger = logging.getLogger(__name__)

SLOT_FORMATS = ("%H:%M", "%I:%M %p", "%I:%M%p")


def parse_slot(value):
    """Return a time for a slot string, or None if it is not recognised."""
    if not value:
        return None
    cleaned = " ".join(str(value).strip().upper().split())
    for fmt in SLOT_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).time()
        except ValueError:
            continue
    return None


def default_slot() -> time:
    return parse_slot(getattr(settings, 'DELIVERY_DEFAULT_TIME', '12:00')) or time(12, 0)


def resolve_slot(value) -> time:
    parsed = parse_slot(value)
    if parsed is None:
        if value:
            logger.warning(f"Unrecognised delivery time '{value}', using default slot")
        return default_slot()
    return parsed
