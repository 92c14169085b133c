"""
Subscription Schedule & Horizon Tests

Database-backed tests for SubscriptionScheduleService, HorizonService,
SubscriptionAdminService and the horizon Celery tasks.
"""
import pytest
from datetime import timedelta
from unittest.mock import patch

from core_backend.exceptions import EntityNotFoundError, InvalidTransitionError
from core_backend.tests.fixtures import MONDAY, FRIDAY, at
from deliveries.models import Delivery, DeliveryStatus, DeliveryStatusHistory
from pause_skip.models import PauseRequest, RequestStatus, WithdrawPauseRequest
from subscriptions.models import Subscription
from subscriptions.services import (
    HorizonService,
    SubscriptionAdminService,
    SubscriptionScheduleService,
)
from subscriptions.tasks import extend_delivery_horizons, extend_subscription_horizon


def approved_pause(subscription, start, end):
    return PauseRequest.objects.create(
        customer=subscription.customer,
        subscription=subscription,
        pause_start_date=start,
        pause_end_date=end,
        status=RequestStatus.APPROVED,
    )


@pytest.mark.django_db
class TestProjectUpcomingDeliveries:
    """projectUpcomingDeliveries over real rows and ledger state."""

    def test_projection_for_new_subscription(self, weekly_subscription):
        upcoming = SubscriptionScheduleService.project_upcoming_deliveries(
            weekly_subscription.id, 5, clock=at(FRIDAY)
        )

        assert [entry.date for entry in upcoming] == [MONDAY + timedelta(days=i) for i in range(5)]

    def test_unknown_subscription_raises_not_found(self, db):
        import uuid

        with pytest.raises(EntityNotFoundError):
            SubscriptionScheduleService.project_upcoming_deliveries(uuid.uuid4(), 5, clock=at(MONDAY))

    def test_withdrawn_pause_frees_dates_again(self, weekly_subscription):
        """
        CRITICAL: Withdraw reconciliation.

        Scenario:
        - pause 2024-06-10 -> 2024-06-14 approved
        - withdraw of that pause approved
        - Expected: projector offers 2024-06-10 .. 2024-06-14 again

        Business Impact: a withdrawn pause must not keep blocking deliveries
        """
        pause = approved_pause(weekly_subscription, MONDAY, MONDAY + timedelta(days=4))

        paused = SubscriptionScheduleService.project_upcoming_deliveries(
            weekly_subscription.id, 5, clock=at(FRIDAY)
        )
        assert paused[0].date == MONDAY + timedelta(days=7), "Pause should push the first serving a week out"

        WithdrawPauseRequest.objects.create(
            customer=weekly_subscription.customer,
            pause_request=pause,
            subscription=weekly_subscription,
            status=RequestStatus.APPROVED,
        )

        restored = SubscriptionScheduleService.project_upcoming_deliveries(
            weekly_subscription.id, 5, clock=at(FRIDAY)
        )
        assert [entry.date for entry in restored] == [MONDAY + timedelta(days=i) for i in range(5)]

    def test_pending_withdraw_does_not_free_dates(self, weekly_subscription):
        pause = approved_pause(weekly_subscription, MONDAY, MONDAY + timedelta(days=4))
        WithdrawPauseRequest.objects.create(
            customer=weekly_subscription.customer,
            pause_request=pause,
            subscription=weekly_subscription,
        )

        upcoming = SubscriptionScheduleService.project_upcoming_deliveries(
            weekly_subscription.id, 1, clock=at(FRIDAY)
        )
        assert upcoming[0].date == MONDAY + timedelta(days=7)

    def test_delivered_rows_reduce_remaining(self, weekly_subscription, make_delivery):
        for offset in range(3):
            make_delivery(weekly_subscription, MONDAY + timedelta(days=offset), status=DeliveryStatus.DELIVERED)

        upcoming = SubscriptionScheduleService.project_upcoming_deliveries(
            weekly_subscription.id, 10, clock=at(MONDAY + timedelta(days=3), 8)
        )

        assert len(upcoming) == 2
        assert upcoming[0].date == MONDAY + timedelta(days=3)

    def test_repeated_projection_is_identical(self, weekly_subscription, make_delivery):
        make_delivery(weekly_subscription, MONDAY, status=DeliveryStatus.COOKING)

        first = SubscriptionScheduleService.project_upcoming_deliveries(weekly_subscription.id, 5, clock=at(MONDAY))
        second = SubscriptionScheduleService.project_upcoming_deliveries(weekly_subscription.id, 5, clock=at(MONDAY))

        assert first == second
        assert first[0].status == DeliveryStatus.COOKING

    def test_summary_counts(self, weekly_subscription, make_delivery):
        make_delivery(weekly_subscription, MONDAY, status=DeliveryStatus.DELIVERED)
        make_delivery(weekly_subscription, MONDAY + timedelta(days=1), status=DeliveryStatus.SKIPPED)

        summary = SubscriptionScheduleService.summary(
            weekly_subscription.id, clock=at(MONDAY + timedelta(days=1), 20)
        )

        assert summary['delivered'] == 1
        assert summary['skipped'] == 1
        assert summary['remaining'] == 4
        assert summary['scheduled'] == 4
        assert summary['next_delivery_date'] == MONDAY + timedelta(days=2), "The skipped Tuesday is not a serving"
        assert summary['schedule_end_date'] == MONDAY + timedelta(days=7)

    def test_skip_today_moves_next_serving_and_schedule_end(self, weekly_subscription, make_delivery):
        """
        CRITICAL: A skipped day gives no serving.

        Scenario:
        - weekly subscription, nothing delivered
        - Monday 2024-06-10 delivery SKIPPED, viewed Monday evening
        - Expected: next serving Tuesday, all 5 servings scheduled through the
          following Monday 2024-06-17
        """
        make_delivery(weekly_subscription, MONDAY, status=DeliveryStatus.SKIPPED)

        summary = SubscriptionScheduleService.summary(weekly_subscription.id, clock=at(MONDAY, 20))

        assert summary['next_delivery_date'] == MONDAY + timedelta(days=1)
        assert summary['scheduled'] == 5
        assert summary['schedule_end_date'] == MONDAY + timedelta(days=7)

    def test_upcoming_still_lists_the_skipped_row(self, weekly_subscription, make_delivery):
        """The upcoming list shows the SKIPPED row with its real status."""
        make_delivery(weekly_subscription, MONDAY, status=DeliveryStatus.SKIPPED)

        upcoming = SubscriptionScheduleService.project_upcoming_deliveries(
            weekly_subscription.id, 5, clock=at(MONDAY, 20)
        )

        assert upcoming[0].status == DeliveryStatus.SKIPPED
        assert len(upcoming) == 5

    def test_admin_paused_subscription_has_no_upcoming(self, make_subscription, customer_user):
        """
        IMPORTANT: Nothing is offered while the whole subscription is paused,
        matching the horizon job which creates no rows for it.
        """
        subscription = make_subscription(customer_user, status=Subscription.Status.PAUSED)

        upcoming = SubscriptionScheduleService.project_upcoming_deliveries(subscription.id, 5, clock=at(FRIDAY))
        summary = SubscriptionScheduleService.summary(subscription.id, clock=at(FRIDAY))

        assert upcoming == []
        assert summary['scheduled'] == 0
        assert summary['next_delivery_date'] is None
        assert summary['remaining'] == 5

    def test_resumed_subscription_projects_again(self, make_subscription, customer_user, admin_user):
        subscription = make_subscription(customer_user, status=Subscription.Status.PAUSED)
        with patch('subscriptions.tasks.extend_subscription_horizon.delay'):
            SubscriptionAdminService.resume(subscription.id, admin_user)

        upcoming = SubscriptionScheduleService.project_upcoming_deliveries(subscription.id, 5, clock=at(FRIDAY))

        assert [entry.date for entry in upcoming] == [MONDAY + timedelta(days=i) for i in range(5)]


@pytest.mark.django_db
class TestHorizonService:
    """Planned entries become real rows inside the horizon."""

    def test_extend_materializes_today_and_tomorrow(self, weekly_subscription):
        created = HorizonService.extend(weekly_subscription, clock=at(MONDAY))

        assert [d.date for d in created] == [MONDAY, MONDAY + timedelta(days=1)]
        assert all(d.status == DeliveryStatus.PENDING for d in created)
        assert created[0].items.get().title == weekly_subscription.title
        assert DeliveryStatusHistory.objects.filter(delivery__in=created, changed_by='SYSTEM').count() == 2

    def test_extend_is_idempotent(self, weekly_subscription):
        HorizonService.extend(weekly_subscription, clock=at(MONDAY))
        again = HorizonService.extend(weekly_subscription, clock=at(MONDAY))

        assert again == []
        assert Delivery.objects.filter(subscription=weekly_subscription).count() == 2

    def test_extend_without_ensure_first_waits_for_horizon(self, make_subscription, customer_user):
        subscription = make_subscription(customer_user, start_date=MONDAY + timedelta(days=14))

        assert HorizonService.extend(subscription, clock=at(MONDAY)) == []

    def test_ensure_first_materializes_first_serving_beyond_horizon(self, make_subscription, customer_user):
        later = MONDAY + timedelta(days=14)
        subscription = make_subscription(customer_user, start_date=later)

        created = HorizonService.extend(subscription, clock=at(MONDAY), ensure_first=True)

        assert [d.date for d in created] == [later]

    def test_paused_subscription_is_not_extended(self, make_subscription, customer_user):
        subscription = make_subscription(customer_user, status=Subscription.Status.PAUSED)

        assert HorizonService.extend(subscription, clock=at(MONDAY)) == []

    def test_extend_skips_effective_pause(self, weekly_subscription):
        approved_pause(weekly_subscription, MONDAY, MONDAY + timedelta(days=1))

        created = HorizonService.extend(weekly_subscription, clock=at(MONDAY))

        assert created == [], "Monday and Tuesday are paused so nothing is inside the horizon"


@pytest.mark.django_db
class TestSubscriptionAdminService:

    def test_pause_and_resume(self, weekly_subscription, admin_user):
        paused = SubscriptionAdminService.pause(weekly_subscription.id, admin_user)
        assert paused.status == Subscription.Status.PAUSED

        with patch('subscriptions.tasks.extend_subscription_horizon.delay'):
            resumed = SubscriptionAdminService.resume(weekly_subscription.id, admin_user)
        assert resumed.status == Subscription.Status.ACTIVE

    def test_pause_twice_is_invalid(self, weekly_subscription, admin_user):
        SubscriptionAdminService.pause(weekly_subscription.id, admin_user)

        with pytest.raises(InvalidTransitionError):
            SubscriptionAdminService.pause(weekly_subscription.id, admin_user)


@pytest.mark.django_db
class TestHorizonTasks:
    """Celery tasks wrapping HorizonService."""

    def test_extend_delivery_horizons_covers_active_subscriptions(self, weekly_subscription, make_subscription, customer_user):
        paused = make_subscription(customer_user, status=Subscription.Status.PAUSED)

        with patch('subscriptions.services.resolve_clock', return_value=at(MONDAY)):
            message = extend_delivery_horizons()

        assert "Created 2 deliveries" in message
        assert Delivery.objects.filter(subscription=weekly_subscription).count() == 2
        assert not Delivery.objects.filter(subscription=paused).exists()

    def test_extend_subscription_horizon_unknown_id(self, db):
        import uuid

        message = extend_subscription_horizon(str(uuid.uuid4()))

        assert "not found" in message


@pytest.mark.django_db
class TestExtendHorizonsCommand:

    def test_dry_run_writes_nothing(self, make_subscription, customer_user):
        from io import StringIO
        from django.core.management import call_command
        from django.utils import timezone

        make_subscription(customer_user, start_date=timezone.localdate())
        out = StringIO()

        call_command('extend_horizons', '--dry-run', stdout=out)

        assert "DRY RUN" in out.getvalue()
        assert not Delivery.objects.exists()

    def test_creates_rows(self, make_subscription, customer_user):
        from io import StringIO
        from django.core.management import call_command
        from django.utils import timezone

        subscription = make_subscription(customer_user, start_date=timezone.localdate())
        out = StringIO()

        call_command('extend_horizons', '--subscription', str(subscription.id), stdout=out)

        assert Delivery.objects.filter(subscription=subscription).count() == int(
            out.getvalue().strip().splitlines()[-1].split()[1]
        )


@pytest.mark.django_db
class TestSubscriptionAPI:

    def test_upcoming(self, customer_client, weekly_subscription):
        response = customer_client.get(f'/api/subscriptions/{weekly_subscription.id}/upcoming/', {'count': 3})

        assert response.status_code == 200
        assert len(response.data) == 3
        assert all(entry['is_planned'] for entry in response.data)

    def test_upcoming_count_is_bounded(self, customer_client, weekly_subscription):
        response = customer_client.get(f'/api/subscriptions/{weekly_subscription.id}/upcoming/', {'count': 0})

        assert response.status_code == 400

    def test_summary(self, customer_client, weekly_subscription):
        response = customer_client.get(f'/api/subscriptions/{weekly_subscription.id}/summary/')

        assert response.status_code == 200
        assert response.data['remaining'] == 5
        assert response.data['effective_pauses'] == []

    def test_other_customer_cannot_see_subscription(self, weekly_subscription, other_customer):
        from rest_framework.test import APIClient

        client = APIClient()
        client.force_authenticate(user=other_customer)

        response = client.get(f'/api/subscriptions/{weekly_subscription.id}/')

        assert response.status_code == 404

    def test_customer_cannot_pause_subscription(self, customer_client, weekly_subscription):
        response = customer_client.post(f'/api/subscriptions/{weekly_subscription.id}/pause/')

        assert response.status_code == 403

    def test_admin_pauses_subscription(self, admin_client, weekly_subscription):
        response = admin_client.post(f'/api/subscriptions/{weekly_subscription.id}/pause/')

        assert response.status_code == 200
        assert response.data['status'] == Subscription.Status.PAUSED
