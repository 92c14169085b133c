from django.dispatch import Signal


# Fired after a delivery status change is committed to the row
# Provides: sender=Delivery, instance=delivery, previous_status=str, changed_by=ChangeSource
delivery_status_changed = Signal()
