# backend/mt_core/iam/tests/test_auth_and_me.py
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.tokens import RefreshToken

from mt_core.conftest import PASSWORD
from mt_core.hospitals.models import Hospital

pytestmark = pytest.mark.django_db


def test_me_requires_auth(api_client):
    res = api_client.get("/api/v1/me/")
    assert res.status_code in (401, 403)


def test_signup_patient_then_login_sets_cookies_and_session(api_client, settings):
    res = api_client.post(
        "/api/v1/auth/signup/",
        {"email": "asha@example.com", "password": PASSWORD, "name": "Asha", "age": 29, "sex": "female"},
        format="json",
    )
    assert res.status_code == 201
    assert res.json()["profile"]["role"] == "patient"

    res = api_client.post("/api/v1/auth/login/", {"email": "asha@example.com", "password": PASSWORD}, format="json")
    assert res.status_code == 200

    access_cookie = settings.SIMPLE_JWT.get("AUTH_COOKIE", "mt_access")
    refresh_cookie = settings.SIMPLE_JWT.get("AUTH_COOKIE_REFRESH", "mt_refresh")
    assert access_cookie in res.cookies
    assert refresh_cookie in res.cookies

    session = res.json()["session"]
    assert session["is_authenticated"] is True
    assert session["profile"]["name"] == "Asha"

    # the access cookie alone authenticates follow-up calls
    me = api_client.get("/api/v1/me/")
    assert me.status_code == 200
    assert me.json()["email"] == "asha@example.com"


def test_signup_hospital_admin_provisions_hospital(api_client):
    res = api_client.post(
        "/api/v1/auth/signup/",
        {
            "email": "head@stmary.org",
            "password": PASSWORD,
            "role": "hospital_admin",
            "hospital": {"name": "St Mary", "address": "9 Hill Rd"},
        },
        format="json",
    )

    assert res.status_code == 201
    profile = res.json()["profile"]
    hospital = Hospital.objects.get(name="St Mary")
    assert profile["hospital_id"] == hospital.id
    assert profile["hospital_name"] == "St Mary"


def test_signup_rejects_admin_role(api_client):
    res = api_client.post(
        "/api/v1/auth/signup/", {"email": "boss@example.com", "password": PASSWORD, "role": "admin"}, format="json"
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"


def test_login_with_bad_password(api_client, patient_user):
    res = api_client.post("/api/v1/auth/login/", {"email": "patient@example.com", "password": "nope"}, format="json")
    assert res.status_code == 401
    assert "error" in res.json()


def test_bearer_header_authenticates(patient_user):
    client = APIClient()
    access = str(RefreshToken.for_user(patient_user).access_token)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    assert client.get("/api/v1/me/").json()["id"] == patient_user.pk


def test_me_without_profile_is_profile_not_found(client_for, make_user):
    user = make_user("ghost@example.com", role=None)

    res = client_for(user).get("/api/v1/me/")

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "profile_not_found"


def test_me_backfills_hospital_name(client_for, make_user, hospital):
    user = make_user("blank@example.com", role="hospital_admin", hospital=hospital)

    res = client_for(user).get("/api/v1/me/")

    assert res.json()["hospital_name"] == "City General"


def test_patch_me(client_for, patient_user):
    c = client_for(patient_user)

    res = c.patch("/api/v1/me/", {"address": "12 Lake View", "avatar_url": "/media/avatars/1-1.png"}, format="json")
    assert res.status_code == 200
    assert res.json()["address"] == "12 Lake View"

    res = c.patch("/api/v1/me/", {"role": "admin"}, format="json")
    assert res.status_code == 400
    assert "role" in res.json()["error"]["details"]


def test_avatar_upload_endpoint(client_for, patient_user, settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    upload = SimpleUploadedFile("face.jpg", b"\xff\xd8\xff fake", content_type="image/jpeg")

    res = client_for(patient_user).post("/api/v1/me/avatar/", {"file": upload}, format="multipart")

    assert res.status_code == 201
    assert f"avatars/{patient_user.pk}-" in res.json()["avatar_url"]


def test_avatar_upload_rejects_non_images(client_for, patient_user):
    upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

    res = client_for(patient_user).post("/api/v1/me/avatar/", {"file": upload}, format="multipart")

    assert res.status_code == 400
    assert "file" in res.json()["error"]["details"]


def test_logout_blacklists_refresh_and_redirects_to_root(patient_user, settings):
    client = APIClient()
    login = client.post("/api/v1/auth/login/", {"email": "patient@example.com", "password": PASSWORD}, format="json")
    assert login.status_code == 200

    res = client.post("/api/v1/auth/logout/")

    assert res.status_code == 200
    assert res.json() == {"detail": "logged out", "redirect": "/"}
    assert BlacklistedToken.objects.count() == 1
    assert res.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]].value == ""

    # the blacklisted refresh token cannot mint new access tokens
    client.cookies[settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"]] = login.cookies[
        settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"]
    ].value
    assert client.post("/api/v1/auth/refresh/").status_code == 401


def test_refresh_rotates_cookies_and_reports_session(patient_user, settings):
    client = APIClient()
    client.post("/api/v1/auth/login/", {"email": "patient@example.com", "password": PASSWORD}, format="json")

    res = client.post("/api/v1/auth/refresh/")

    assert res.status_code == 200
    assert res.json()["session"]["profile"]["role"] == "patient"
    assert settings.SIMPLE_JWT["AUTH_COOKIE"] in res.cookies
