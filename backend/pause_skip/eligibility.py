"""
Eligibility rules for pause, skip and withdraw-pause requests.

Each check takes already-loaded state plus "now"/"today" and raises
NotEligibleError (or RequestValidationError for malformed input) on the
first rule that fails. Checks run in a fixed order so a request that breaks
several rules always reports the same reason.
"""
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from django.conf import settings

from core_backend.exceptions import EligibilityReason, NotEligibleError, RequestValidationError
from deliveries.models import DeliveryStatus
from subscriptions.schedule import PauseRange
from .models import RequestStatus


def skip_cutoff_minutes() -> int:
    return int(getattr(settings, 'SKIP_REQUEST_CUTOFF_MINUTES', 120))


def pause_cutoff_minutes() -> int:
    return int(getattr(settings, 'PAUSE_REQUEST_CUTOFF_MINUTES', 120))


def format_cutoff(minutes: int) -> str:
    """120 -> '2 hours', 60 -> '1 hour', 90 -> '90 minutes'"""
    if minutes > 0 and minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"


def is_past_cutoff(scheduled_at: datetime, now: datetime, cutoff_minutes: int) -> bool:
    return now >= scheduled_at - timedelta(minutes=cutoff_minutes)


def check_skip(
    delivery,
    now: datetime,
    pause_ranges: Sequence[PauseRange],
    has_open_request: bool,
    cutoff_minutes: Optional[int] = None,
):
    cutoff_minutes = skip_cutoff_minutes() if cutoff_minutes is None else cutoff_minutes

    if delivery.date != now.date():
        raise NotEligibleError(
            EligibilityReason.WRONG_DATE,
            "Skip is available only for today's delivery",
        )

    if delivery.status != DeliveryStatus.PENDING:
        raise NotEligibleError(
            EligibilityReason.WRONG_STATUS,
            "Only pending deliveries can be skipped",
        )

    subscription = delivery.subscription
    paused_by_admin = subscription is not None and not subscription.is_active
    if paused_by_admin or any(pause.contains(delivery.date) for pause in pause_ranges):
        raise NotEligibleError(
            EligibilityReason.ALREADY_PAUSED,
            "Skip is not available for paused subscriptions",
        )

    if is_past_cutoff(delivery.scheduled_at, now, cutoff_minutes):
        raise NotEligibleError(
            EligibilityReason.CUTOFF_EXCEEDED,
            f"Skip requests must be made at least {format_cutoff(cutoff_minutes)} before delivery.",
        )

    if has_open_request:
        raise NotEligibleError(
            EligibilityReason.ALREADY_REQUESTED,
            "A skip request is already pending for this delivery",
        )


def check_pause(
    subscription,
    start_date: date,
    end_date: date,
    now: datetime,
    has_pending_pause: bool,
    next_delivery_at: Optional[datetime],
    cutoff_minutes: Optional[int] = None,
):
    cutoff_minutes = pause_cutoff_minutes() if cutoff_minutes is None else cutoff_minutes

    if end_date < start_date:
        raise RequestValidationError("pause_end_date must be on or after pause_start_date")

    if start_date < now.date():
        raise RequestValidationError("pause_start_date cannot be in the past")

    if not subscription.is_active:
        raise NotEligibleError(
            EligibilityReason.SUBSCRIPTION_INACTIVE,
            "Pause is available only for active subscriptions",
        )

    if has_pending_pause:
        raise NotEligibleError(
            EligibilityReason.ALREADY_REQUESTED,
            "A pause request is already pending for this subscription",
        )

    if next_delivery_at is not None and is_past_cutoff(next_delivery_at, now, cutoff_minutes):
        raise NotEligibleError(
            EligibilityReason.CUTOFF_EXCEEDED,
            f"Pause requests must be submitted at least {format_cutoff(cutoff_minutes)} before delivery.",
        )


def check_withdraw(pause_request, has_pending_withdraw: bool, has_approved_withdraw: bool):
    if pause_request.status != RequestStatus.APPROVED:
        raise NotEligibleError(
            EligibilityReason.PAUSE_NOT_APPROVED,
            "Only approved pauses can be withdrawn",
        )

    if has_approved_withdraw:
        raise NotEligibleError(
            EligibilityReason.ALREADY_WITHDRAWN,
            "This pause has already been withdrawn",
        )

    if has_pending_withdraw:
        raise NotEligibleError(
            EligibilityReason.ALREADY_REQUESTED,
            "A withdraw request is already pending",
        )
