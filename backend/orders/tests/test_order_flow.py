"""
Order Flow Tests

Acceptance gate, kitchen hand-off, lifecycle and timeline.

Test Categories:
1. Acceptance (confirm/decline, terminal decisions, unpaid orders)
2. Move to kitchen (one-shot, one-off grouping, recurring subscriptions)
3. Lifecycle transitions
4. Timeline
5. API
"""
import pytest
import uuid
from datetime import time, timedelta

from core_backend.exceptions import (
    AlreadyDecidedError,
    AlreadyMovedError,
    EligibilityReason,
    EntityNotFoundError,
    InvalidTransitionError,
    NotConfirmedError,
    NotEligibleError,
    RequestValidationError,
)
from core_backend.tests.fixtures import FRIDAY, MONDAY, at
from deliveries.models import Delivery
from deliveries.services import DeliveryService
from orders.models import Order, OrderItem, OrderStatusHistory
from orders.services import KitchenService, OrderAcceptanceService, OrderService
from subscriptions.models import Subscription


@pytest.mark.django_db
class TestAcceptance:

    def test_confirm(self, paid_order, admin_user):
        order = OrderAcceptanceService.set_acceptance(
            paid_order.id, Order.AcceptanceStatus.CONFIRMED, admin_user, note='Looks good', clock=at(FRIDAY)
        )

        assert order.acceptance_status == Order.AcceptanceStatus.CONFIRMED
        assert order.accepted_by == admin_user
        assert order.accepted_at == at(FRIDAY).now()
        assert order.admin_notes == 'Looks good'
        assert order.current_status == Order.LifecycleStatus.CONFIRMED

    def test_decline_is_final(self, paid_order, admin_user):
        """
        CRITICAL: A declined order can't be confirmed afterwards.
        """
        OrderAcceptanceService.set_acceptance(paid_order.id, Order.AcceptanceStatus.DECLINED, admin_user)

        with pytest.raises(AlreadyDecidedError):
            OrderAcceptanceService.set_acceptance(paid_order.id, Order.AcceptanceStatus.CONFIRMED, admin_user)

        paid_order.refresh_from_db()
        assert paid_order.acceptance_status == Order.AcceptanceStatus.DECLINED

    def test_pending_review_cannot_be_set(self, paid_order, admin_user):
        with pytest.raises(RequestValidationError):
            OrderAcceptanceService.set_acceptance(paid_order.id, Order.AcceptanceStatus.PENDING_REVIEW, admin_user)

    def test_unpaid_order_is_not_eligible(self, customer_user, make_order, admin_user):
        order = make_order(customer_user, payment_status=Order.PaymentStatus.PENDING)

        with pytest.raises(NotEligibleError) as excinfo:
            OrderAcceptanceService.set_acceptance(order.id, Order.AcceptanceStatus.CONFIRMED, admin_user)

        assert excinfo.value.reason == EligibilityReason.ORDER_NOT_PAID

    def test_unknown_order(self, admin_user):
        with pytest.raises(EntityNotFoundError):
            OrderAcceptanceService.set_acceptance(uuid.uuid4(), Order.AcceptanceStatus.CONFIRMED, admin_user)


@pytest.mark.django_db
class TestMoveToKitchen:

    def test_requires_confirmation(self, paid_order, admin_user):
        with pytest.raises(NotConfirmedError):
            KitchenService.move_to_kitchen(paid_order.id, actor=admin_user, clock=at(FRIDAY))

        assert not Delivery.objects.exists()

    def test_second_move_is_rejected_without_new_rows(self, confirmed_order, admin_user):
        """
        CRITICAL: Moving twice must never double the deliveries.

        Scenario:
        - confirmed weekly order moved on Monday
        - admin clicks "move to kitchen" again
        - Expected: AlreadyMovedError and the delivery count is unchanged
        """
        first = KitchenService.move_to_kitchen(confirmed_order.id, actor=admin_user, clock=at(MONDAY))
        count = Delivery.objects.count()

        with pytest.raises(AlreadyMovedError):
            KitchenService.move_to_kitchen(confirmed_order.id, actor=admin_user, clock=at(MONDAY))

        assert first['deliveries_created'] == count
        assert Delivery.objects.count() == count
        assert Subscription.objects.count() == 1

    def test_recurring_item_becomes_subscription(self, confirmed_order, admin_user):
        result = KitchenService.move_to_kitchen(confirmed_order.id, actor=admin_user, clock=at(MONDAY))

        subscription = Subscription.objects.get()
        assert subscription.cadence == Subscription.Cadence.WEEKLY
        assert subscription.total_servings == 5
        assert subscription.start_date == MONDAY
        assert subscription.delivery_time == time(18, 0)
        assert subscription.kind == Subscription.Kind.MEAL_PACK
        assert result['deliveries_created'] == 2, "Today and tomorrow are inside the horizon"
        assert result['order'].moved_to_kitchen_at == at(MONDAY).now()

    def test_first_serving_materialized_before_start(self, confirmed_order, admin_user):
        result = KitchenService.move_to_kitchen(confirmed_order.id, actor=admin_user, clock=at(FRIDAY))

        assert result['deliveries_created'] == 1
        assert Delivery.objects.get().date == MONDAY

    def test_one_off_items_share_one_delivery(self, customer_user, make_order, admin_user):
        order = make_order(
            customer_user,
            items=[
                {'title': 'Paneer Bowl', 'start_date': MONDAY + timedelta(days=1), 'delivery_time': '1:30 PM'},
                {'title': 'Brownie', 'item_type': OrderItem.ItemType.ADDON, 'start_date': MONDAY},
            ],
            acceptance_status=Order.AcceptanceStatus.CONFIRMED,
        )

        result = KitchenService.move_to_kitchen(order.id, actor=admin_user, clock=at(FRIDAY))

        delivery = Delivery.objects.get()
        assert result['deliveries_created'] == 1
        assert delivery.subscription is None
        assert delivery.date == MONDAY, "Earliest start date wins"
        assert delivery.scheduled_time == time(13, 30)
        assert sorted(delivery.items.values_list('title', flat=True)) == ['Brownie', 'Paneer Bowl']

    def test_immediate_delivery_is_today(self, customer_user, make_order, admin_user):
        order = make_order(
            customer_user,
            items=[{'start_date': MONDAY + timedelta(days=3), 'immediate_delivery': True}],
            acceptance_status=Order.AcceptanceStatus.CONFIRMED,
        )

        KitchenService.move_to_kitchen(order.id, actor=admin_user, clock=at(MONDAY))

        assert Delivery.objects.get().date == MONDAY

    def test_unpaid_order(self, customer_user, make_order, admin_user):
        order = make_order(
            customer_user,
            payment_status=Order.PaymentStatus.FAILED,
            acceptance_status=Order.AcceptanceStatus.CONFIRMED,
        )

        with pytest.raises(NotEligibleError):
            KitchenService.move_to_kitchen(order.id, actor=admin_user)


@pytest.mark.django_db
class TestLifecycle:

    def test_forward_chain(self, confirmed_order, admin_user):
        for target in (
            Order.LifecycleStatus.CONFIRMED,
            Order.LifecycleStatus.PREPARING,
            Order.LifecycleStatus.OUT_FOR_DELIVERY,
            Order.LifecycleStatus.DELIVERED,
        ):
            order = OrderService.update_status(confirmed_order.id, target, actor=admin_user)
            assert order.current_status == target

        assert OrderStatusHistory.objects.filter(order=confirmed_order).count() == 4

    def test_same_status_is_noop(self, confirmed_order):
        order = OrderService.update_status(confirmed_order.id, Order.LifecycleStatus.PAID)

        assert order.current_status == Order.LifecycleStatus.PAID
        assert not order.status_history.exists()

    def test_skipping_ahead_is_invalid(self, confirmed_order):
        with pytest.raises(InvalidTransitionError):
            OrderService.update_status(confirmed_order.id, Order.LifecycleStatus.DELIVERED)

    def test_unconfirmed_order_cannot_progress(self, paid_order):
        with pytest.raises(NotConfirmedError):
            OrderService.update_status(paid_order.id, Order.LifecycleStatus.CONFIRMED)

    def test_record_order_writes_paid_history(self, customer_user):
        order = OrderService.record_order(
            customer_user,
            [{'cart_item_id': 'c-1', 'title': 'Dal Bowl', 'plan': OrderItem.Plan.SINGLE}],
            clock=at(FRIDAY),
        )

        assert order.order_number.startswith('ORD-')
        assert order.items.count() == 1
        assert order.status_history.get().status == Order.LifecycleStatus.PAID

    def test_record_order_needs_items(self, customer_user):
        with pytest.raises(RequestValidationError):
            OrderService.record_order(customer_user, [])


@pytest.mark.django_db
class TestTimeline:

    def test_merges_order_and_delivery_history(self, confirmed_order, admin_user):
        OrderService.update_status(confirmed_order.id, Order.LifecycleStatus.CONFIRMED, actor=admin_user,
                                   clock=at(MONDAY, 8))
        KitchenService.move_to_kitchen(confirmed_order.id, actor=admin_user, clock=at(MONDAY, 8, 30))
        delivery = Delivery.objects.filter(date=MONDAY).get()
        DeliveryService.advance(delivery.id, actor=admin_user, clock=at(MONDAY, 10))

        timeline = OrderService.timeline(confirmed_order.id)

        assert [entry['source'] for entry in timeline] == ['order', 'delivery', 'delivery', 'delivery']
        assert timeline[-1]['status'] == 'COOKING'
        assert timeline[-1]['delivery_id'] == str(delivery.id)


@pytest.mark.django_db
class TestOrderAPI:

    def test_admin_records_order(self, admin_client, customer_user):
        response = admin_client.post('/api/orders/', {
            'customer': customer_user.id,
            'items': [{'cart_item_id': 'c-1', 'title': 'Keto Box', 'plan': 'weekly', 'delivery_time': '18:00'}],
        }, format='json')

        assert response.status_code == 201, response.data
        assert response.data['acceptance_status'] == Order.AcceptanceStatus.PENDING_REVIEW

    def test_customer_cannot_record_order(self, customer_client, customer_user):
        response = customer_client.post('/api/orders/', {
            'customer': customer_user.id,
            'items': [{'cart_item_id': 'c-1', 'title': 'Keto Box'}],
        }, format='json')

        assert response.status_code == 403

    def test_accept_then_move(self, admin_client, paid_order):
        accept = admin_client.post(
            f'/api/orders/{paid_order.id}/acceptance/',
            {'acceptance_status': 'CONFIRMED'}, format='json',
        )
        move = admin_client.post(f'/api/orders/{paid_order.id}/move-to-kitchen/')
        again = admin_client.post(f'/api/orders/{paid_order.id}/move-to-kitchen/')

        assert accept.status_code == 200, accept.data
        assert move.status_code == 200, move.data
        assert move.data['deliveries_created'] >= 1
        assert again.status_code == 409
        assert again.data['code'] == 'ALREADY_MOVED'

    def test_move_unconfirmed_is_400(self, admin_client, paid_order):
        response = admin_client.post(f'/api/orders/{paid_order.id}/move-to-kitchen/')

        assert response.status_code == 400
        assert response.data['code'] == 'NOT_CONFIRMED'

    def test_customer_sees_only_own_orders(self, customer_client, paid_order, make_order, other_customer):
        make_order(other_customer)

        response = customer_client.get('/api/orders/')

        assert response.status_code == 200
        assert response.data['count'] == 1

    def test_timeline_endpoint(self, customer_client, paid_order):
        response = customer_client.get(f'/api/orders/{paid_order.id}/timeline/')

        assert response.status_code == 200
        assert response.data == []
