# backend/mt_core/iam/api/schema_serializers.py
from __future__ import annotations

from rest_framework import serializers

from mt_core.iam.api.serializers import ProfileSerializer


class LoginRequestSerializer(serializers.Serializer):
    # the sign-in email is the username
    username = serializers.CharField(required=False)
    email = serializers.EmailField(required=False)
    password = serializers.CharField()


class SessionUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField(allow_null=True, required=False)
    email = serializers.EmailField(allow_null=True, required=False)


class SessionErrorSerializer(serializers.Serializer):
    code = serializers.CharField()
    message = serializers.CharField()


class SessionSnapshotSerializer(serializers.Serializer):
    user = SessionUserSerializer(allow_null=True)
    profile = ProfileSerializer(allow_null=True)
    loading = serializers.BooleanField()
    is_authenticated = serializers.BooleanField()
    error = SessionErrorSerializer(allow_null=True)


class LoginResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    session = SessionSnapshotSerializer()


class SignupResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    profile = ProfileSerializer()


class RefreshResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    session = SessionSnapshotSerializer()


class LogoutResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    redirect = serializers.CharField()


class CapabilitiesSerializer(serializers.Serializer):
    can_update_availability = serializers.BooleanField()
    own_hospital_id = serializers.IntegerField(allow_null=True)


class SessionBootstrapResponseSerializer(SessionSnapshotSerializer):
    # Capability flags for UI gating (menus/buttons)
    capabilities = CapabilitiesSerializer()
    server_time = serializers.DateTimeField(required=False)
    api_version = serializers.CharField(required=False)


class AvatarUploadRequestSerializer(serializers.Serializer):
    file = serializers.FileField()


class AvatarUploadResponseSerializer(serializers.Serializer):
    avatar_url = serializers.CharField()
