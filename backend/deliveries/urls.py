from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DeliveryViewSet, KitchenBoardView

router = DefaultRouter()
router.register(r"deliveries", DeliveryViewSet, basename="delivery")

urlpatterns = [
    path("kitchen/deliveries/", KitchenBoardView.as_view(), name="kitchen-deliveries"),
    path("", include(router.urls)),
]
