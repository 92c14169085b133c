from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import PauseRequestViewSet, SkipRequestViewSet, WithdrawPauseRequestViewSet

router = DefaultRouter()
router.register(r"pause-requests", PauseRequestViewSet, basename="pause-request")
router.register(r"skip-requests", SkipRequestViewSet, basename="skip-request")
router.register(r"withdraw-requests", WithdrawPauseRequestViewSet, basename="withdraw-request")

urlpatterns = [
    path("", include(router.urls)),
]
