# backend/mt_core/common/views.py
from __future__ import annotations

from django.apps import apps
from django.utils import timezone
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView


class HealthView(APIView):
    """
    Liveness probe. Public, and reachable even when credentials are missing
    so operators can see the configuration state.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        configured = getattr(apps.get_app_config("common"), "backend", None) is not None
        return Response(
            {
                "success": True,
                "message": "API is running",
                "configured": configured,
                "timestamp": timezone.now(),
            }
        )
