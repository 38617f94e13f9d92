# backend/mt_core/hospitals/api/serializers.py
from __future__ import annotations

from rest_framework import serializers


class AvailabilityViewSerializer(serializers.Serializer):
    beds = serializers.IntegerField()
    oxygen = serializers.IntegerField()
    last_updated = serializers.DateTimeField(allow_null=True)
    updated_by_id = serializers.IntegerField(allow_null=True)
    beds_status = serializers.CharField()
    oxygen_status = serializers.CharField()


class HospitalAvailabilitySerializer(serializers.Serializer):
    """Read-only shape of a HospitalAvailability record."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    address = serializers.CharField(allow_blank=True)
    phone_number = serializers.CharField(allow_blank=True)
    latitude = serializers.FloatField(allow_null=True)
    longitude = serializers.FloatField(allow_null=True)
    admin_id = serializers.IntegerField(allow_null=True)
    availability = AvailabilityViewSerializer()
    has_availability = serializers.BooleanField()


class AvailabilityRowSerializer(serializers.Serializer):
    hospital_id = serializers.IntegerField()
    available_beds = serializers.IntegerField()
    available_oxygen = serializers.IntegerField()
    last_updated = serializers.DateTimeField()
    updated_by_id = serializers.IntegerField(allow_null=True)


class AvailabilityUpdateRequestSerializer(serializers.Serializer):
    # Values are parsed by the updater so that bad input reaches it with field-scoped errors.
    beds = serializers.JSONField(required=False)
    oxygen = serializers.JSONField(required=False)
    hospital_id = serializers.JSONField(required=False, allow_null=True)


class AvailabilityUpdateResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    hospital_id = serializers.IntegerField()
    availability = AvailabilityRowSerializer()
    hospitals = HospitalAvailabilitySerializer(many=True)
    own_hospital = HospitalAvailabilitySerializer(allow_null=True)
    refresh_error = serializers.CharField(allow_null=True)
