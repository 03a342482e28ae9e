"""
Storefront URL configuration.

/api/auth/*       accounts (OTP + customer sessions)
/api/*            orders (checkout, pricing, vouchers, payments)
/api/health/      liveness probe
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path

from storefront.http import VER


def health_view(request):
    """Liveness probe."""
    return JsonResponse({"success": True, "ver": VER})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health/", health_view, name="health"),
    path("api/auth/", include("accounts.urls", namespace="accounts")),
    path("api/", include("orders.urls", namespace="orders")),
]
