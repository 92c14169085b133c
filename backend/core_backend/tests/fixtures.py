"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users, orders, subscriptions and deliveries. Dates are anchored on the
week of Monday 2024-06-10 so weekday logic is easy to follow.
"""
import pytest
from datetime import date, datetime, time
from rest_framework.test import APIClient

from core_backend.clock import FixedClock
from deliveries.models import Delivery, DeliveryItem, DeliveryStatus
from orders.models import Order, OrderItem
from subscriptions.models import Subscription
from users.models import User


FRIDAY = date(2024, 6, 7)
MONDAY = date(2024, 6, 10)
TUESDAY = date(2024, 6, 11)


def at(day, hour=9, minute=0):
    """FixedClock at a local date and time."""
    return FixedClock(datetime.combine(day, time(hour, minute)))


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def owner_user(db):
    """Create owner user"""
    return User.objects.create_user(
        username='owner',
        email='owner@meals.test',
        password='password123',
        role=User.Role.OWNER,
    )


@pytest.fixture
def admin_user(db):
    """Create admin user"""
    return User.objects.create_user(
        username='admin',
        email='admin@meals.test',
        password='password123',
        role=User.Role.ADMIN,
    )


@pytest.fixture
def kitchen_user(db):
    """Create kitchen staff user"""
    return User.objects.create_user(
        username='kitchen',
        email='kitchen@meals.test',
        password='password123',
        role=User.Role.KITCHEN,
    )


@pytest.fixture
def customer_user(db):
    """Create customer user"""
    return User.objects.create_user(
        username='customer',
        email='customer@meals.test',
        password='password123',
        role=User.Role.CUSTOMER,
    )


@pytest.fixture
def other_customer(db):
    """Create a second customer for ownership checks"""
    return User.objects.create_user(
        username='other',
        email='other@meals.test',
        password='password123',
        role=User.Role.CUSTOMER,
    )


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def kitchen_client(kitchen_user):
    client = APIClient()
    client.force_authenticate(user=kitchen_user)
    return client


@pytest.fixture
def customer_client(customer_user):
    client = APIClient()
    client.force_authenticate(user=customer_user)
    return client


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def make_order(db):
    """
    Factory for orders with line items.

    Usage:
        order = make_order(customer, items=[{'plan': 'weekly', 'title': 'Keto Box'}])
    """
    def _make_order(customer, items=None, payment_status=Order.PaymentStatus.PAID,
                    acceptance_status=Order.AcceptanceStatus.PENDING_REVIEW):
        order = Order.objects.create(
            customer=customer,
            payment_status=payment_status,
            acceptance_status=acceptance_status,
        )
        for index, item in enumerate(items or [{}]):
            OrderItem.objects.create(
                order=order,
                cart_item_id=item.get('cart_item_id', f'cart-{index + 1}'),
                item_type=item.get('item_type', OrderItem.ItemType.MEAL),
                plan=item.get('plan', OrderItem.Plan.SINGLE),
                title=item.get('title', f'Meal {index + 1}'),
                quantity=item.get('quantity', 1),
                start_date=item.get('start_date'),
                delivery_time=item.get('delivery_time', '18:00'),
                immediate_delivery=item.get('immediate_delivery', False),
            )
        return order

    return _make_order


@pytest.fixture
def paid_order(customer_user, make_order):
    """Paid, not yet reviewed order with one weekly meal plan"""
    return make_order(customer_user, items=[{
        'plan': OrderItem.Plan.WEEKLY,
        'title': 'Keto Weekly Box',
        'start_date': MONDAY,
    }])


@pytest.fixture
def confirmed_order(customer_user, make_order):
    """Paid and confirmed order with one weekly meal plan"""
    return make_order(
        customer_user,
        items=[{'plan': OrderItem.Plan.WEEKLY, 'title': 'Keto Weekly Box', 'start_date': MONDAY}],
        acceptance_status=Order.AcceptanceStatus.CONFIRMED,
    )


# ============================================================================
# SUBSCRIPTION & DELIVERY FIXTURES
# ============================================================================

@pytest.fixture
def make_subscription(db, make_order):
    """Factory for subscriptions backed by a confirmed order."""
    def _make_subscription(customer, cadence=Subscription.Cadence.WEEKLY, start_date=MONDAY,
                           delivery_time=time(18, 0), status=Subscription.Status.ACTIVE):
        order = make_order(
            customer,
            items=[{'plan': cadence, 'title': f'{cadence.title()} Box', 'start_date': start_date}],
            acceptance_status=Order.AcceptanceStatus.CONFIRMED,
        )
        item = order.items.get()
        return Subscription.objects.create(
            customer=customer,
            order=order,
            order_item=item,
            kind=Subscription.Kind.MEAL_PACK,
            cadence=cadence,
            title=item.title,
            quantity=item.quantity,
            start_date=start_date,
            delivery_time=delivery_time,
            total_servings=Subscription.servings_for_cadence(cadence),
            status=status,
        )

    return _make_subscription


@pytest.fixture
def weekly_subscription(customer_user, make_subscription):
    """Active weekly subscription starting Monday 2024-06-10, 18:00 slot"""
    return make_subscription(customer_user)


@pytest.fixture
def make_delivery(db):
    """Factory for delivery rows of a subscription."""
    def _make_delivery(subscription, day, status=DeliveryStatus.PENDING, scheduled_time=None):
        delivery = Delivery.objects.create(
            subscription=subscription,
            order=subscription.order,
            customer=subscription.customer,
            date=day,
            scheduled_time=scheduled_time or subscription.delivery_time,
            status=status,
        )
        DeliveryItem.objects.create(
            delivery=delivery,
            order_item=subscription.order_item,
            title=subscription.title,
            quantity=subscription.quantity,
        )
        return delivery

    return _make_delivery
