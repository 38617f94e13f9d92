# backend/mt_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from mt_core.common.backend import get_backend
from mt_core.iam.api.serializers import ProfileSerializer, ProfileUpdateRequestSerializer
from mt_core.iam.services.profiles import ProfileService


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: ProfileSerializer}, tags=["IAM"])
    def get(self, request):
        """
        Returns the caller's profile.
        404 profile_not_found when sign-up provisioning never created one.
        """
        service = ProfileService(get_backend())
        profile = service.backfill_hospital_name(service.fetch(request.user.id))
        return Response(ProfileSerializer(profile).data, status=status.HTTP_200_OK)

    @extend_schema(request=ProfileUpdateRequestSerializer, responses={200: ProfileSerializer}, tags=["IAM"])
    def patch(self, request):
        """
        Partial update of the caller's own profile.
        role and hospital_id are rejected; hospital admins cannot set hospital_name.
        """
        if not isinstance(request.data, dict):
            raise ValidationError("Expected a JSON object.")

        profile = ProfileService(get_backend()).update(request.user.id, dict(request.data))
        return Response(ProfileSerializer(profile).data, status=status.HTTP_200_OK)
