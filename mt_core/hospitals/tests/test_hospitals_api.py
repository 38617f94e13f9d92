# backend/mt_core/hospitals/tests/test_hospitals_api.py
import pytest

from mt_core.hospitals.models import Availability

pytestmark = pytest.mark.django_db


def test_hospital_list_requires_auth(api_client, hospital):
    res = api_client.get("/api/v1/hospitals/")
    assert res.status_code in (401, 403)
    assert "error" in res.json()


def test_patient_sees_hospitals_with_normalized_availability(client_for, patient_user, hospital, other_hospital):
    res = client_for(patient_user).get("/api/v1/hospitals/")
    assert res.status_code == 200

    body = res.json()
    assert [h["name"] for h in body] == ["Apollo Care", "City General"]
    assert body[1]["availability"] == {
        "beds": 0,
        "oxygen": 0,
        "last_updated": None,
        "updated_by_id": None,
        "beds_status": "low",
        "oxygen_status": "low",
    }
    assert body[1]["has_availability"] is False


def test_hospital_detail_and_unknown_id(client_for, patient_user, hospital):
    c = client_for(patient_user)

    assert c.get(f"/api/v1/hospitals/{hospital.id}/").json()["name"] == "City General"

    res = c.get("/api/v1/hospitals/999/")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "not_found"


def test_mine_is_for_hospital_admins(client_for, patient_user, hospital_admin_user, hospital):
    assert client_for(hospital_admin_user).get("/api/v1/hospitals/mine/").json()["id"] == hospital.id
    assert client_for(patient_user).get("/api/v1/hospitals/mine/").status_code == 403


def test_hospital_admin_update_example(client_for, hospital_admin_user, hospital):
    c = client_for(hospital_admin_user)

    res = c.post("/api/v1/availability/", {"beds": 15, "oxygen": 4}, format="json")
    assert res.status_code == 200
    body = res.json()
    assert body["detail"] == "Availability updated."
    assert body["hospital_id"] == 6
    assert body["availability"]["available_beds"] == 15
    assert body["own_hospital"]["availability"]["beds"] == 15
    assert body["refresh_error"] is None

    res = c.post("/api/v1/availability/", {"beds": 20, "oxygen": 4}, format="json")
    assert res.status_code == 200
    assert res.json()["hospitals"][0]["availability"]["beds"] == 20

    rows = list(Availability.objects.filter(hospital_id=6).values("available_beds", "available_oxygen"))
    assert rows == [{"available_beds": 20, "available_oxygen": 4}]


def test_patient_write_is_forbidden_and_echoes_input(client_for, patient_user, hospital):
    res = client_for(patient_user).post(
        "/api/v1/availability/", {"beds": 15, "oxygen": 4, "hospital_id": hospital.id}, format="json"
    )

    assert res.status_code == 403
    err = res.json()["error"]
    assert err["code"] == "permission_denied"
    assert err["details"]["submitted"] == {"beds": 15, "oxygen": 4, "hospital_id": hospital.id}
    assert Availability.objects.count() == 0


def test_validation_errors_are_field_scoped(client_for, hospital_admin_user, hospital):
    res = client_for(hospital_admin_user).post("/api/v1/availability/", {"beds": "-1"}, format="json")

    assert res.status_code == 400
    err = res.json()["error"]
    assert err["code"] == "validation_error"
    assert set(err["details"]) == {"beds", "oxygen", "submitted"}
    assert err["details"]["submitted"]["beds"] == "-1"


def test_availability_body_must_be_an_object(client_for, hospital_admin_user, hospital):
    res = client_for(hospital_admin_user).post("/api/v1/availability/", [1, 2], format="json")

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"
    assert Availability.objects.count() == 0


def test_oversized_count_is_rejected_per_field(client_for, hospital_admin_user, hospital):
    res = client_for(hospital_admin_user).post(
        "/api/v1/availability/", {"beds": 10**20, "oxygen": 4}, format="json"
    )

    assert res.status_code == 400
    assert "beds" in res.json()["error"]["details"]
    assert Availability.objects.count() == 0


def test_super_admin_updates_any_hospital(client_for, super_admin_user, hospital, other_hospital):
    c = client_for(super_admin_user)

    res = c.post("/api/v1/availability/", {"beds": 30, "oxygen": 12, "hospital_id": other_hospital.id}, format="json")
    assert res.status_code == 200
    assert res.json()["own_hospital"] is None
    assert Availability.objects.get(hospital_id=other_hospital.id).available_beds == 30

    res = c.post("/api/v1/availability/", {"beds": 30, "oxygen": 12}, format="json")
    assert res.status_code == 403


def test_identity_without_profile_is_denied(client_for, make_user, hospital):
    user = make_user("ghost@example.com", role=None)
    res = client_for(user).post("/api/v1/availability/", {"beds": 1, "oxygen": 1}, format="json")
    assert res.status_code == 403
