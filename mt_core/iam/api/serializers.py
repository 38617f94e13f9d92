# backend/mt_core/iam/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from mt_core.iam.models import Profile, Role, Sex


class ProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="pk", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "id",
            "email",
            "name",
            "age",
            "sex",
            "role",
            "phone_number",
            "address",
            "avatar_url",
            "hospital_id",
            "hospital_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class HospitalRegistrationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    address = serializers.CharField(max_length=512, required=False, allow_blank=True, default="")
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    latitude = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-180, max_value=180)


class SignupRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, default=None)
    sex = serializers.ChoiceField(choices=Sex.choices, required=False, default=Sex.OTHER)
    role = serializers.ChoiceField(
        choices=[(Role.PATIENT, Role.PATIENT.label), (Role.HOSPITAL_ADMIN, Role.HOSPITAL_ADMIN.label)],
        required=False,
        default=Role.PATIENT,
    )
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    address = serializers.CharField(max_length=512, required=False, allow_blank=True, default="")
    hospital = HospitalRegistrationSerializer(required=False, allow_null=True, default=None)


class ProfileUpdateRequestSerializer(serializers.Serializer):
    # Documentation only; ProfileService validates the submitted keys itself.
    name = serializers.CharField(required=False)
    age = serializers.IntegerField(required=False, min_value=0)
    sex = serializers.ChoiceField(choices=Sex.choices, required=False)
    phone_number = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    avatar_url = serializers.CharField(required=False, allow_blank=True)
    hospital_name = serializers.CharField(required=False, allow_blank=True)
