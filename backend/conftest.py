"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from django.core.cache import cache


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache():
    """Clear the cache between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def engine_settings(settings):
    """
    Pin delivery engine configuration so tests don't depend on the
    environment they run in.
    """
    settings.TIME_ZONE = 'Asia/Kolkata'
    settings.SKIP_REQUEST_CUTOFF_MINUTES = 120
    settings.PAUSE_REQUEST_CUTOFF_MINUTES = 120
    settings.SUBSCRIPTION_SERVINGS_BY_CADENCE = {'weekly': 5, 'monthly': 20}
    settings.DELIVERY_DEFAULT_TIME = '12:00'
    settings.DELIVERY_HORIZON_DAYS = 1
    settings.CELERY_TASK_ALWAYS_EAGER = True
    return settings


# Import shared fixtures so they're available to all tests
from core_backend.tests.fixtures import *  # noqa
