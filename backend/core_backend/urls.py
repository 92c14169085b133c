"""
URL configuration for core_backend project.

App routers are mounted under /api/.
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("api/users/", include("users.urls")),
    path("api/", include("orders.urls")),
    path("api/", include("deliveries.urls")),
    path("api/subscriptions/", include("subscriptions.urls")),
    path("api/pause-skip/", include("pause_skip.urls")),
]
