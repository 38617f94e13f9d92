# backend/mt_core/common/tests/test_error_envelope.py
import json

import pytest
from django.test import RequestFactory
from rest_framework.exceptions import NotFound, ValidationError

from mt_core.common.api.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    ProfileNotFound,
    TransientServiceError,
    api_exception_handler,
)
from mt_core.common.middleware import ConfigurationGuardMiddleware


def _handle(exc):
    request = RequestFactory().post("/api/v1/availability/")
    return api_exception_handler(exc, {"request": request})


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (ValidationError({"beds": ["This field is required."]}), 400, "validation_error"),
        (AuthorizationError(), 403, "permission_denied"),
        (NotFound(), 404, "not_found"),
        (ProfileNotFound(), 404, "profile_not_found"),
        (ConflictError("busy", code="submission_in_flight"), 409, "submission_in_flight"),
        (TransientServiceError("connection reset by peer"), 503, "service_error"),
        (ConfigurationError(missing=["DJANGO_SECRET_KEY"]), 503, "configuration_error"),
    ],
)
def test_taxonomy_maps_to_status_and_code(exc, status, code):
    res = _handle(exc)

    assert res.status_code == status
    err = res.data["error"]
    assert err["code"] == code
    assert err["request_id"]


def test_service_error_message_is_verbatim():
    res = _handle(TransientServiceError("duplicate key value violates unique constraint"))
    assert res.data["error"]["message"] == "duplicate key value violates unique constraint"


def test_submitted_values_are_echoed_in_details():
    exc = ValidationError({"oxygen": ["Must be zero or greater."]})
    exc.submitted = {"beds": 3, "oxygen": -1, "hospital_id": None}

    details = _handle(exc).data["error"]["details"]

    assert details["oxygen"] == ["Must be zero or greater."]
    assert details["submitted"] == {"beds": 3, "oxygen": -1, "hospital_id": None}


def test_configuration_error_lists_missing_settings():
    res = _handle(ConfigurationError(missing=["DJANGO_SECRET_KEY", "MEDTRACKER_MEDIA_ROOT"]))
    assert res.data["error"]["details"] == {"missing": ["DJANGO_SECRET_KEY", "MEDTRACKER_MEDIA_ROOT"]}


def test_unhandled_exception_becomes_server_error():
    res = _handle(RuntimeError("boom"))
    assert res.status_code == 500
    assert res.data["error"]["code"] == "server_error"
    assert res.data["error"]["message"] == "Unexpected server error."


# -------------------------
# Configuration guard
# -------------------------
@pytest.fixture
def unconfigured(monkeypatch):
    from django.apps import apps

    config = apps.get_app_config("common")
    monkeypatch.setattr(config, "backend", None)
    monkeypatch.setattr(config, "configuration_error", ConfigurationError(missing=["DJANGO_SECRET_KEY"]))
    return config


def test_guard_returns_single_configuration_notice(unconfigured):
    mw = ConfigurationGuardMiddleware(get_response=lambda r: None)
    resp = mw.process_request(RequestFactory().get("/api/v1/hospitals/"))

    assert resp.status_code == 503
    body = json.loads(resp.content.decode("utf-8"))
    assert body["error"]["code"] == "configuration_error"
    assert body["error"]["details"] == {"missing": ["DJANGO_SECRET_KEY"]}


@pytest.mark.parametrize("path", ["/api/v1/health/", "/api/docs/", "/api/schema/", "/admin/"])
def test_guard_lets_operator_paths_through(unconfigured, path):
    mw = ConfigurationGuardMiddleware(get_response=lambda r: None)
    assert mw.process_request(RequestFactory().get(path)) is None


def test_guard_is_inert_when_configured():
    mw = ConfigurationGuardMiddleware(get_response=lambda r: None)
    assert mw.process_request(RequestFactory().get("/api/v1/hospitals/")) is None
