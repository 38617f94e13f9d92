# backend/mt_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from mt_core.common.views import HealthView
from mt_core.hospitals.api.views import AvailabilityUpdateView, HospitalViewSet
from mt_core.iam.api.auth import LoginView, LogoutView, RefreshView, SignupView
from mt_core.iam.api.avatar import AvatarUploadView
from mt_core.iam.api.me import MeView
from mt_core.iam.api.session import SessionBootstrapView

router = DefaultRouter()
router.register(r"hospitals", HospitalViewSet, basename="hospitals")

urlpatterns = [
    path("health/", HealthView.as_view(), name="health"),

    # Auth + /me + session bootstrap
    path("auth/signup/", SignupView.as_view(), name="signup"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),
    path("me/avatar/", AvatarUploadView.as_view(), name="me-avatar"),
    path("session/bootstrap/", SessionBootstrapView.as_view(), name="session-bootstrap"),

    # Availability write path
    path("availability/", AvailabilityUpdateView.as_view(), name="availability-update"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
