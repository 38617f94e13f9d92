# backend/mt_core/hospitals/models.py
from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from mt_core.common.models import TimeStampedModel


class Hospital(TimeStampedModel):
    """
    A partner facility whose bed/oxygen counts are published.

    Notes:
    - Created by signup-time provisioning (hospital admin) or by staff in the admin site.
    - `admin` is an optional back-reference to the managing hospital_admin profile.
    """

    name = models.CharField(max_length=255)
    address = models.CharField(max_length=512, blank=True, default="")
    phone_number = models.CharField(max_length=32, blank=True, default="")

    latitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)],
    )
    longitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)],
    )

    admin = models.ForeignKey(
        "iam.Profile",
        on_delete=models.SET_NULL,
        related_name="administered_hospitals",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "hospitals_hospital"
        indexes = [
            models.Index(fields=["name"], name="hospital_name_idx"),
            models.Index(fields=["admin"], name="hospital_admin_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Availability(models.Model):
    """
    Latest bed/oxygen snapshot for one hospital.

    The hospital is the primary key, so the database rejects a second row for the
    same hospital. Rows are created on first update and then mutated in place.
    """

    hospital = models.OneToOneField(
        Hospital,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="availability",
    )

    available_beds = models.PositiveIntegerField(default=0)
    available_oxygen = models.PositiveIntegerField(default=0)

    last_updated = models.DateTimeField(db_index=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="availability_updates",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "hospitals_availability"
        verbose_name_plural = "availability"

    def __str__(self) -> str:
        return f"{self.hospital_id}: beds={self.available_beds} oxygen={self.available_oxygen}"
