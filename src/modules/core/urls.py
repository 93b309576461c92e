from django.urls import path

from modules.core.views import ChangePasswordView, MeView, RegisterView, health_check

urlpatterns = [
    path("health", health_check, name="health_check"),
    path("api/v1/me", MeView.as_view(), name="me"),
    path("api/v1/auth/register/", RegisterView.as_view(), name="register"),
    path(
        "api/v1/auth/change-password/",
        ChangePasswordView.as_view(),
        name="change_password",
    ),
]
