# backend/mt_core/iam/models.py
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from mt_core.common.models import TimeStampedModel


class Role(models.TextChoices):
    PATIENT = "patient", "Patient"
    HOSPITAL_ADMIN = "hospital_admin", "Hospital Admin"
    ADMIN = "admin", "Admin"


class Sex(models.TextChoices):
    MALE = "male", "Male"
    FEMALE = "female", "Female"
    OTHER = "other", "Other"


class Profile(TimeStampedModel):
    """
    Application profile anchored to Django's AUTH_USER_MODEL.

    Exactly one per identity: the primary key *is* the user id.
    Created at sign-up, edited by its owner, never deleted by the application.
    `role` and `hospital` are set at provisioning time only.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="mt_profile",
    )

    name = models.CharField(max_length=255, blank=True, default="")
    age = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    sex = models.CharField(max_length=16, choices=Sex.choices, default=Sex.OTHER)
    role = models.CharField(max_length=32, choices=Role.choices, default=Role.PATIENT, db_index=True)

    phone_number = models.CharField(max_length=32, blank=True, default="")
    address = models.CharField(max_length=512, blank=True, default="")
    avatar_url = models.URLField(max_length=1024, blank=True, default="")

    # hospital_admin only
    hospital = models.ForeignKey(
        "hospitals.Hospital",
        on_delete=models.PROTECT,
        related_name="admin_profiles",
        null=True,
        blank=True,
    )
    # Denormalized copy of Hospital.name; may drift, repaired lazily.
    hospital_name = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "iam_profile"

    def __str__(self) -> str:
        return f"{self.user} ({self.role})"
