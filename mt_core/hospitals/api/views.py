# backend/mt_core/hospitals/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from mt_core.common.backend import get_backend
from mt_core.hospitals.api.permissions import AvailabilityWritePermission, HospitalPermission
from mt_core.hospitals.api.serializers import (
    AvailabilityRowSerializer,
    AvailabilityUpdateRequestSerializer,
    AvailabilityUpdateResponseSerializer,
    HospitalAvailabilitySerializer,
)
from mt_core.hospitals.selectors import (
    hospital_with_availability,
    list_hospitals_with_availability,
    own_hospital,
)
from mt_core.hospitals.services import AvailabilityUpdater
from mt_core.iam.services.profiles import ProfileService


class HospitalViewSet(viewsets.ViewSet):
    """
    Thin API layer:
    - calls selectors for reads
    - availability normalization and status bands live in the selectors
    """

    permission_classes = [HospitalPermission]

    @extend_schema(responses={200: HospitalAvailabilitySerializer(many=True)}, tags=["Hospitals"])
    def list(self, request):
        items = list_hospitals_with_availability(get_backend())
        return Response(HospitalAvailabilitySerializer(items, many=True).data)

    @extend_schema(responses={200: HospitalAvailabilitySerializer}, tags=["Hospitals"])
    def retrieve(self, request, pk=None):
        try:
            hospital_id = int(pk)
        except (TypeError, ValueError):
            raise NotFound("Hospital not found.")
        item = hospital_with_availability(get_backend(), hospital_id)
        return Response(HospitalAvailabilitySerializer(item).data)

    @extend_schema(responses={200: HospitalAvailabilitySerializer}, tags=["Hospitals"])
    @action(detail=False, methods=["get"])
    def mine(self, request):
        backend = get_backend()
        actor = ProfileService(backend).actor_for(request.user.id)
        item = own_hospital(backend, actor)
        if item is None:
            raise NotFound("Your account is not linked to a hospital.")
        return Response(HospitalAvailabilitySerializer(item).data)


class AvailabilityUpdateView(APIView):
    """
    POST {beds, oxygen, hospital_id?}

    hospital_id is only read for super admins; hospital admins always write
    their own hospital.
    """

    permission_classes = [AvailabilityWritePermission]

    @extend_schema(
        request=AvailabilityUpdateRequestSerializer,
        responses={200: AvailabilityUpdateResponseSerializer},
        tags=["Hospitals"],
    )
    def post(self, request):
        backend = get_backend()
        actor = ProfileService(backend).actor_for(request.user.id)

        data = request.data
        if not isinstance(data, dict):
            raise ValidationError("Expected a JSON object.")

        outcome = AvailabilityUpdater(backend).submit(
            actor=actor,
            beds=data.get("beds"),
            oxygen=data.get("oxygen"),
            hospital_id=data.get("hospital_id"),
        )

        return Response(
            {
                "detail": outcome.message,
                "hospital_id": outcome.hospital_id,
                "availability": AvailabilityRowSerializer(outcome.availability).data,
                "hospitals": HospitalAvailabilitySerializer(outcome.hospitals, many=True).data,
                "own_hospital": (
                    HospitalAvailabilitySerializer(outcome.own_hospital).data if outcome.own_hospital else None
                ),
                "refresh_error": outcome.refresh_error,
            },
            status=status.HTTP_200_OK,
        )
