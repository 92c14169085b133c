from collections import defaultdict
from typing import Dict, Iterable, List
import logging

from django.db import transaction

from core_backend.clock import resolve_clock
from core_backend.exceptions import (
    AlreadyDecidedError,
    EligibilityReason,
    EntityNotFoundError,
    NotEligibleError,
    RequestValidationError,
)
from deliveries.models import Delivery, TERMINAL_STATUSES
from subscriptions.models import Subscription
from subscriptions.schedule import PauseRange
from users.models import User

from .. import eligibility
from ..models import (
    DECISION_STATUSES,
    PauseRequest,
    RequestStatus,
    SkipRequest,
    WithdrawPauseRequest,
)
from ..signals import request_decided

logger = logging.getLogger(__name__)


class RequestLedgerService:
    """
    Service layer for the pause / skip / withdraw-pause request ledger.

    Requests are submitted by customers, decided once by admins, and read back
    as effective pause ranges. Nothing here mutates a request after its
    decision, and effective ranges are recomputed on every read.
    """

    REQUEST_MODELS = (PauseRequest, SkipRequest, WithdrawPauseRequest)

    # ------------------------------------------------------------------
    # Effective pause ranges
    # ------------------------------------------------------------------

    @staticmethod
    def effective_pause_ranges(subscription_id) -> List[PauseRange]:
        """
        Approved pauses minus those cancelled by an approved withdraw request.
        """
        return RequestLedgerService.effective_pause_ranges_for([subscription_id]).get(
            str(subscription_id), []
        )

    @staticmethod
    def effective_pause_ranges_for(subscription_ids: Iterable) -> Dict[str, List[PauseRange]]:
        subscription_ids = [sid for sid in subscription_ids if sid is not None]
        if not subscription_ids:
            return {}

        withdrawn = WithdrawPauseRequest.objects.filter(
            subscription_id__in=subscription_ids,
            status=RequestStatus.APPROVED,
        ).values_list('pause_request_id', flat=True)

        pauses = (
            PauseRequest.objects.filter(
                subscription_id__in=subscription_ids,
                status=RequestStatus.APPROVED,
            )
            .exclude(id__in=withdrawn)
            .order_by('pause_start_date')
        )

        ranges = defaultdict(list)
        for pause in pauses:
            ranges[str(pause.subscription_id)].append(
                PauseRange(
                    start=pause.pause_start_date,
                    end=pause.pause_end_date,
                    pause_request_id=str(pause.id),
                )
            )
        return dict(ranges)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    @staticmethod
    def _check_owner(owner, requester: User):
        if requester.is_staff_role:
            return
        if owner.pk != requester.pk:
            raise NotEligibleError(
                EligibilityReason.NOT_OWNER,
                "You can only submit requests for your own subscriptions",
            )

    @staticmethod
    @transaction.atomic
    def submit_pause_request(
        subscription_id,
        requester: User,
        start_date,
        end_date,
        reason: str = '',
        clock=None,
    ) -> PauseRequest:
        """
        Submit a date-range pause for a subscription.

        Raises:
            EntityNotFoundError: unknown subscription
            RequestValidationError: end before start, or start in the past
            NotEligibleError: inactive subscription, pause already pending,
                or the next delivery is inside the cutoff window
        """
        clock = resolve_clock(clock)
        now = clock.now()

        try:
            subscription = Subscription.objects.select_for_update().get(id=subscription_id)
        except Subscription.DoesNotExist:
            raise EntityNotFoundError('Subscription', subscription_id)

        RequestLedgerService._check_owner(subscription.customer, requester)

        has_pending_pause = PauseRequest.objects.filter(
            subscription=subscription,
            status=RequestStatus.PENDING,
        ).exists()

        next_delivery = (
            Delivery.objects.filter(subscription=subscription, date__gte=now.date())
            .exclude(status__in=TERMINAL_STATUSES)
            .order_by('date', 'scheduled_time')
            .first()
        )

        eligibility.check_pause(
            subscription,
            start_date,
            end_date,
            now,
            has_pending_pause=has_pending_pause,
            next_delivery_at=next_delivery.scheduled_at if next_delivery else None,
        )

        pause_request = PauseRequest.objects.create(
            customer=subscription.customer,
            subscription=subscription,
            pause_start_date=start_date,
            pause_end_date=end_date,
            reason=reason or '',
        )

        logger.info(
            f"Pause request {pause_request.id} submitted for subscription {subscription.id} "
            f"({start_date} to {end_date}) by {requester.email}"
        )
        return pause_request

    @staticmethod
    @transaction.atomic
    def submit_skip_request(delivery_id, requester: User, reason: str = '', clock=None) -> SkipRequest:
        """
        Submit a same-day skip for a single delivery.

        Raises:
            EntityNotFoundError: unknown delivery
            NotEligibleError: wrong date, wrong status, paused, past cutoff,
                or a skip is already requested
        """
        clock = resolve_clock(clock)
        now = clock.now()

        try:
            delivery = (
                Delivery.objects.select_for_update()
                .select_related('subscription')
                .get(id=delivery_id)
            )
        except Delivery.DoesNotExist:
            raise EntityNotFoundError('Delivery', delivery_id)

        RequestLedgerService._check_owner(delivery.customer, requester)

        pause_ranges = (
            RequestLedgerService.effective_pause_ranges(delivery.subscription_id)
            if delivery.subscription_id
            else []
        )
        has_open_request = SkipRequest.objects.filter(
            delivery=delivery,
            status__in=[RequestStatus.PENDING, RequestStatus.APPROVED],
        ).exists()

        eligibility.check_skip(
            delivery,
            now,
            pause_ranges=pause_ranges,
            has_open_request=has_open_request,
        )

        skip_request = SkipRequest.objects.create(
            customer=delivery.customer,
            delivery=delivery,
            subscription=delivery.subscription,
            reason=reason or '',
        )

        logger.info(
            f"Skip request {skip_request.id} submitted for delivery {delivery.id} "
            f"on {delivery.date} by {requester.email}"
        )
        return skip_request

    @staticmethod
    @transaction.atomic
    def submit_withdraw_pause_request(
        pause_request_id,
        requester: User,
        reason: str = '',
    ) -> WithdrawPauseRequest:
        """
        Ask to cancel an approved pause. No cutoff applies since only dates
        that are not yet materialized are affected.
        """
        try:
            pause_request = PauseRequest.objects.select_for_update().get(id=pause_request_id)
        except PauseRequest.DoesNotExist:
            raise EntityNotFoundError('PauseRequest', pause_request_id)

        RequestLedgerService._check_owner(pause_request.customer, requester)

        withdraws = WithdrawPauseRequest.objects.filter(pause_request=pause_request)
        eligibility.check_withdraw(
            pause_request,
            has_pending_withdraw=withdraws.filter(status=RequestStatus.PENDING).exists(),
            has_approved_withdraw=withdraws.filter(status=RequestStatus.APPROVED).exists(),
        )

        withdraw_request = WithdrawPauseRequest.objects.create(
            customer=pause_request.customer,
            pause_request=pause_request,
            subscription_id=pause_request.subscription_id,
            reason=reason or '',
        )

        logger.info(
            f"Withdraw request {withdraw_request.id} submitted for pause {pause_request.id} "
            f"by {requester.email}"
        )
        return withdraw_request

    # ------------------------------------------------------------------
    # Decision & cancellation
    # ------------------------------------------------------------------

    @classmethod
    def locate(cls, request_id):
        """Find a request of any type by id."""
        for model in cls.REQUEST_MODELS:
            instance = model.objects.filter(id=request_id).first()
            if instance is not None:
                return instance
        raise EntityNotFoundError('Request', request_id)

    @classmethod
    @transaction.atomic
    def decide(cls, request_id, decision: str, admin: User, note: str = '', clock=None):
        """
        Approve or decline a pending request. Terminal: a decided request
        cannot be decided again.

        The decision is written with a conditional update on status=PENDING,
        so of two concurrent deciders exactly one wins and the other gets
        AlreadyDecidedError. Approval side effects (marking a delivery
        SKIPPED) run in the same transaction through request_decided.
        """
        if decision not in DECISION_STATUSES:
            raise RequestValidationError("decision must be APPROVED or DECLINED")

        clock = resolve_clock(clock)
        now = clock.now()
        instance = cls.locate(request_id)
        model = type(instance)

        updated = model.objects.filter(pk=instance.pk, status=RequestStatus.PENDING).update(
            status=decision,
            decided_by=admin,
            decided_at=now,
            admin_note=note or '',
            updated_at=now,
        )
        instance.refresh_from_db()

        if not updated:
            logger.warning(
                f"Rejected decision {decision} on {model.__name__} {instance.id}: "
                f"already {instance.status}"
            )
            raise AlreadyDecidedError(model.__name__, instance.id, instance.status)

        logger.info(
            f"{model.__name__} {instance.id} {decision} by {admin.email}"
            + (f" - note: {note}" if note else "")
        )

        request_decided.send(sender=model, instance=instance, decision=decision, actor=admin)
        return instance

    @classmethod
    @transaction.atomic
    def cancel(cls, request_id, requester: User, model=None):
        """Customer withdraws their own pending request."""
        if model is None:
            instance = cls.locate(request_id)
        else:
            instance = model.objects.filter(id=request_id).first()
            if instance is None:
                raise EntityNotFoundError(model.__name__, request_id)
        model = type(instance)

        cls._check_owner(instance.customer, requester)

        updated = model.objects.filter(pk=instance.pk, status=RequestStatus.PENDING).update(
            status=RequestStatus.WITHDRAWN,
        )
        instance.refresh_from_db()

        if not updated:
            raise AlreadyDecidedError(model.__name__, instance.id, instance.status)

        logger.info(f"{model.__name__} {instance.id} cancelled by {requester.email}")
        return instance
