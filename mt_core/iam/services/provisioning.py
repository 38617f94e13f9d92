# backend/mt_core/iam/services/provisioning.py
from __future__ import annotations

import logging
from typing import Any, Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from mt_core.common.api.exceptions import TransientServiceError
from mt_core.common.backend import Backend
from mt_core.hospitals.models import Hospital
from mt_core.iam.models import Profile, Role, Sex

logger = logging.getLogger(__name__)

SELF_ASSIGNABLE_ROLES = frozenset({Role.PATIENT, Role.HOSPITAL_ADMIN})


class ProvisioningService:
    """
    Creates identities, their profile and (for hospital admins) their hospital.

    Notes:
    - sign_up is all-or-nothing: identity, profile and hospital land together or not at all.
    - The sign-in email is the username.
    - `admin` is never self-assignable; see the ensure_super_admin command.
    """

    def __init__(self, backend: Backend):
        self.backend = backend

    @staticmethod
    def _check_basic(*, email: str, password: str, role: str, sex: str, age: Any) -> int:
        errors: dict[str, list[str]] = {}
        if not email or "@" not in str(email):
            errors["email"] = ["A valid email address is required."]
        if not password:
            errors["password"] = ["This field is required."]
        if role not in SELF_ASSIGNABLE_ROLES:
            errors["role"] = [f"Must be one of: {', '.join(sorted(SELF_ASSIGNABLE_ROLES))}."]
        if sex not in Sex.values:
            errors["sex"] = [f"Must be one of: {', '.join(Sex.values)}."]

        parsed_age = 0
        if age not in (None, ""):
            try:
                parsed_age = int(age)
            except (TypeError, ValueError):
                errors["age"] = ["A whole number is required."]
            else:
                if parsed_age < 0:
                    errors["age"] = ["Must be zero or greater."]

        if errors:
            raise ValidationError(errors)
        return parsed_age

    def sign_up(
        self,
        *,
        email: str,
        password: str,
        name: str = "",
        age: Any = None,
        sex: str = Sex.OTHER,
        role: str = Role.PATIENT,
        phone_number: str = "",
        address: str = "",
        hospital: Optional[dict[str, Any]] = None,
    ) -> Profile:
        email = (email or "").strip().lower()
        parsed_age = self._check_basic(email=email, password=password, role=role, sex=sex, age=age)

        if role == Role.HOSPITAL_ADMIN and not (hospital or {}).get("name"):
            raise ValidationError({"hospital": {"name": ["Hospital admins must register a hospital."]}})

        User = get_user_model()
        if User.objects.filter(username__iexact=email).exists():
            raise ValidationError({"email": ["An account with this email already exists."]})

        try:
            with transaction.atomic():
                user = User.objects.create_user(username=email, email=email, password=password)
                profile = self.backend.profiles.create(
                    identity_id=user.pk,
                    name=name or "",
                    age=parsed_age,
                    sex=sex,
                    role=role,
                    phone_number=phone_number or "",
                    address=address or "",
                )
                if role == Role.HOSPITAL_ADMIN:
                    self.provision_hospital(profile, **hospital)
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email.
            raise ValidationError({"email": ["An account with this email already exists."]}) from exc
        except DatabaseError as exc:
            raise TransientServiceError(str(exc)) from exc

        logger.info("Signed up identity %s as %s", profile.pk, role)
        return profile

    def provision_hospital(
        self,
        admin_profile: Profile,
        *,
        name: str,
        address: str = "",
        phone_number: str = "",
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Hospital:
        """
        Create the hospital, point its admin back-reference at the profile and link
        the profile to it, in one transaction.
        """
        with transaction.atomic():
            hospital = self.backend.hospitals.create(
                name=name,
                address=address,
                phone_number=phone_number,
                latitude=latitude,
                longitude=longitude,
                admin_id=admin_profile.pk,
            )
            self.backend.profiles.update(
                admin_profile.pk,
                {"hospital_id": hospital.pk, "hospital_name": hospital.name},
            )

        admin_profile.hospital_id = hospital.pk
        admin_profile.hospital_name = hospital.name
        logger.info("Provisioned hospital %s for identity %s", hospital.pk, admin_profile.pk)
        return hospital
