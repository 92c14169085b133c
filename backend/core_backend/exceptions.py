"""
Delivery engine error taxonomy and the DRF exception handler that renders it.

Services raise these; views let them propagate and the handler below turns
them into ``{"error": ..., "code": ...}`` responses with a fitting status.
"""
import logging

from django.db import models
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class EligibilityReason(models.TextChoices):
    """Stable reason codes attached to NotEligibleError"""
    WRONG_DATE = 'WRONG_DATE', _('Wrong date')
    WRONG_STATUS = 'WRONG_STATUS', _('Wrong status')
    ALREADY_PAUSED = 'ALREADY_PAUSED', _('Already paused')
    CUTOFF_EXCEEDED = 'CUTOFF_EXCEEDED', _('Cutoff exceeded')
    ALREADY_REQUESTED = 'ALREADY_REQUESTED', _('Already requested')
    SUBSCRIPTION_INACTIVE = 'SUBSCRIPTION_INACTIVE', _('Subscription inactive')
    PAUSE_NOT_APPROVED = 'PAUSE_NOT_APPROVED', _('Pause not approved')
    ALREADY_WITHDRAWN = 'ALREADY_WITHDRAWN', _('Already withdrawn')
    ORDER_NOT_PAID = 'ORDER_NOT_PAID', _('Order not paid')
    NOT_OWNER = 'NOT_OWNER', _('Not owner')


class DeliveryEngineError(Exception):
    """Base class for all delivery engine errors."""

    code = 'ENGINE_ERROR'
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    def default_message(self):
        return "Delivery engine error"

    def as_payload(self):
        return {'error': self.message, 'code': self.code}


class EntityNotFoundError(DeliveryEngineError):
    code = 'NOT_FOUND'
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class InvalidTransitionError(DeliveryEngineError):
    code = 'INVALID_TRANSITION'
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message, current_status=None, target_status=None):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(message)


class NotEligibleError(DeliveryEngineError):
    code = 'NOT_ELIGIBLE'

    def __init__(self, reason, message):
        self.reason = reason
        super().__init__(message)

    def as_payload(self):
        payload = super().as_payload()
        payload['reason'] = str(self.reason)
        return payload


class AlreadyDecidedError(DeliveryEngineError):
    code = 'ALREADY_DECIDED'
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, entity, identifier, current_status):
        self.current_status = current_status
        super().__init__(f"{entity} {identifier} is already {current_status}")


class AlreadyMovedError(DeliveryEngineError):
    code = 'ALREADY_MOVED'
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, order_number):
        super().__init__(f"Order {order_number} has already been moved to kitchen")


class NotConfirmedError(DeliveryEngineError):
    code = 'NOT_CONFIRMED'

    def __init__(self, order_number, acceptance_status):
        self.acceptance_status = acceptance_status
        super().__init__(
            f"Order {order_number} must be confirmed before moving to kitchen "
            f"(acceptance is {acceptance_status})"
        )


class RequestValidationError(DeliveryEngineError):
    code = 'VALIDATION_ERROR'


def engine_exception_handler(exc, context):
    """
    DRF exception handler for DeliveryEngineError subclasses.

    Anything that is not an engine error is handed to DRF's default handler.
    """
    if isinstance(exc, DeliveryEngineError):
        view = context.get('view')
        logger.warning(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: "
            f"{exc.message}"
        )
        return Response(exc.as_payload(), status=exc.status_code)

    return exception_handler(exc, context)
