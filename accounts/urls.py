from django.urls import path

from . import views

app_name = "accounts"

urlpatterns = [
    path("send-otp", views.send_otp, name="send_otp"),
    path("verify-otp", views.verify_otp, name="verify_otp"),
    path("verify-mobile-otp", views.verify_mobile_otp, name="verify_mobile_otp"),
    path("me", views.me, name="me"),
    path("logout", views.logout, name="logout"),
]
