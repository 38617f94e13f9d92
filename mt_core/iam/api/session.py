# backend/mt_core/iam/api/session.py

from __future__ import annotations

from typing import Any

from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from mt_core.common.backend import Backend, get_backend
from mt_core.common.configuration import medtracker_setting
from mt_core.hospitals.selectors import own_hospital_id
from mt_core.iam.actors import actor_for_profile, can_update_availability
from mt_core.iam.api.schema_serializers import SessionBootstrapResponseSerializer, SessionSnapshotSerializer
from mt_core.iam.session import SessionResolver


def session_payload(resolver: SessionResolver) -> dict[str, Any]:
    return SessionSnapshotSerializer(resolver.snapshot()).data


def capabilities(backend: Backend, resolver: SessionResolver) -> dict[str, Any]:
    if resolver.profile is None:
        return {"can_update_availability": False, "own_hospital_id": None}
    actor = actor_for_profile(resolver.profile)
    return {
        "can_update_availability": can_update_availability(actor),
        "own_hospital_id": own_hospital_id(backend, actor),
    }


class SessionBootstrapView(APIView):
    """
    Frontend bootstrap endpoint.

    - Requires auth (cookie or header JWT).
    - A signed-in identity without a profile is reported through `error`
      (profile_not_found) with is_authenticated=false; no default profile is assumed.
    - Returns everything needed for UI initialization.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: SessionBootstrapResponseSerializer}, tags=["IAM"])
    def get(self, request):
        backend = get_backend()
        resolver = SessionResolver(backend)
        resolver.resolve(request.user)

        payload = session_payload(resolver)
        payload.update(
            {
                "capabilities": capabilities(backend, resolver),
                "server_time": timezone.now(),
                "api_version": medtracker_setting("API_VERSION", "1.0.0"),
            }
        )
        resolver.close()
        return Response(payload)
