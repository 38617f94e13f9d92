# backend/mt_core/conftest.py
import dataclasses
from unittest import mock

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from mt_core.common.backend import get_backend
from mt_core.hospitals.models import Hospital
from mt_core.iam.models import Profile, Role

PASSWORD = "Pass@12345"


@pytest.fixture
def make_user(db):
    """
    Create an identity (+ profile unless role=None).
    The sign-in email doubles as the username, as in sign-up.
    """
    User = get_user_model()

    def _make(email, *, role=Role.PATIENT, hospital=None, **profile_fields):
        user = User.objects.create_user(username=email, email=email, password=PASSWORD)
        if role is not None:
            Profile.objects.create(
                user=user,
                role=role,
                hospital=hospital,
                name=profile_fields.pop("name", email.split("@")[0]),
                **profile_fields,
            )
        return user

    return _make


@pytest.fixture
def hospital(db):
    return Hospital.objects.create(id=6, name="City General", address="1 Main St", phone_number="555-0106")


@pytest.fixture
def other_hospital(db):
    return Hospital.objects.create(id=7, name="Apollo Care", address="2 Side St")


@pytest.fixture
def patient_user(make_user):
    return make_user("patient@example.com", role=Role.PATIENT)


@pytest.fixture
def hospital_admin_user(make_user, hospital):
    user = make_user(
        "admin6@example.com",
        role=Role.HOSPITAL_ADMIN,
        hospital=hospital,
        hospital_name=hospital.name,
    )
    hospital.admin_id = user.pk
    hospital.save(update_fields=["admin"])
    return user


@pytest.fixture
def super_admin_user(make_user):
    return make_user("root@example.com", role=Role.ADMIN)


@pytest.fixture
def api_client():
    """Unauthenticated client."""
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        c = APIClient()
        c.force_authenticate(user=user)
        return c

    return _client


@pytest.fixture
def backend(db):
    return get_backend()


@pytest.fixture
def spy_backend(backend):
    """
    Backend whose repositories record every call while still hitting the database.
    """
    return dataclasses.replace(
        backend,
        profiles=mock.Mock(wraps=backend.profiles),
        hospitals=mock.Mock(wraps=backend.hospitals),
        availability=mock.Mock(wraps=backend.availability),
    )
