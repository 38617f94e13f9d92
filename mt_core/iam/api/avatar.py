# backend/mt_core/iam/api/avatar.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from mt_core.common.backend import get_backend
from mt_core.iam.api.schema_serializers import AvatarUploadRequestSerializer, AvatarUploadResponseSerializer
from mt_core.iam.services.avatars import AvatarService
from mt_core.iam.services.profiles import ProfileService


class AvatarUploadView(APIView):
    """
    POST multipart `file`. Stores the image and returns its public URL;
    the client saves it on the profile with PATCH /me/ (avatar_url).
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        request={"multipart/form-data": AvatarUploadRequestSerializer},
        responses={201: AvatarUploadResponseSerializer},
        tags=["IAM"],
    )
    def post(self, request):
        upload = request.FILES.get("file")
        if upload is None:
            raise ValidationError({"file": ["This field is required."]})

        backend = get_backend()
        # uploads belong to provisioned accounts only
        ProfileService(backend).fetch(request.user.id)

        url = AvatarService(backend).upload(request.user.id, upload)
        return Response({"avatar_url": url}, status=status.HTTP_201_CREATED)
