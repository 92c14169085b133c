from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import SubscriptionViewSet

# Mounted at /api/subscriptions/, so the list route sits at the router root
router = SimpleRouter()
router.register(r"", SubscriptionViewSet, basename="subscription")

urlpatterns = [
    path("", include(router.urls)),
]
