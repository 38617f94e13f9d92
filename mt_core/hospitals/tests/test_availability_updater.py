# backend/mt_core/hospitals/tests/test_availability_updater.py
import pytest
from django.db import DatabaseError, IntegrityError
from rest_framework.exceptions import ValidationError

from mt_core.common.api.exceptions import AuthorizationError, ConflictError, TransientServiceError
from mt_core.hospitals.models import Availability
from mt_core.hospitals.services import MAX_COUNT, AvailabilityUpdater, UpdateState, parse_count
from mt_core.iam.actors import HospitalAdmin, Patient, SuperAdmin

pytestmark = pytest.mark.django_db


def _admin_of(user, hospital):
    return HospitalAdmin(identity_id=user.pk, hospital_id=hospital.id)


@pytest.mark.parametrize("value, expected", [(0, 0), (15, 15), ("20", 20), (" 7 ", 7), (4.0, 4)])
def test_parse_count_accepts_whole_numbers(value, expected):
    assert parse_count(value) == expected


@pytest.mark.parametrize(
    "value", [None, "", "  ", -1, "-3", "abc", 2.5, True, [], {}, MAX_COUNT + 1, str(10**20), 1e20]
)
def test_parse_count_rejects_everything_else(value):
    with pytest.raises(ValueError):
        parse_count(value)


def test_parse_count_upper_bound():
    assert parse_count(MAX_COUNT) == MAX_COUNT


def test_oversized_count_is_a_field_error_not_a_write(spy_backend, hospital, hospital_admin_user):
    updater = AvailabilityUpdater(spy_backend)

    with pytest.raises(ValidationError) as exc:
        updater.submit(actor=_admin_of(hospital_admin_user, hospital), beds=10**20, oxygen=4)

    assert set(exc.value.detail) == {"beds"}
    assert spy_backend.availability.method_calls == []
    assert updater.state == UpdateState.ERROR


def test_hospital_admin_first_write_inserts_then_updates_same_row(spy_backend, hospital, hospital_admin_user):
    actor = _admin_of(hospital_admin_user, hospital)

    first = AvailabilityUpdater(spy_backend).submit(actor=actor, beds=15, oxygen=4)

    assert first.hospital_id == 6
    assert Availability.objects.filter(hospital_id=6).count() == 1
    row = Availability.objects.get(hospital_id=6)
    assert (row.available_beds, row.available_oxygen) == (15, 4)
    assert row.updated_by_id == hospital_admin_user.pk
    spy_backend.availability.insert.assert_called_once()

    second = AvailabilityUpdater(spy_backend).submit(actor=actor, beds=20, oxygen=4)

    assert second.availability["available_beds"] == 20
    assert Availability.objects.filter(hospital_id=6).count() == 1
    row.refresh_from_db()
    assert (row.available_beds, row.available_oxygen) == (20, 4)
    # second submission only updated
    spy_backend.availability.insert.assert_called_once()


def test_success_refreshes_list_and_own_hospital_and_clears_draft(backend, hospital, hospital_admin_user):
    updater = AvailabilityUpdater(backend)

    outcome = updater.submit(actor=_admin_of(hospital_admin_user, hospital), beds="12", oxygen="30")

    assert updater.state == UpdateState.IDLE
    assert updater.draft == {}
    assert updater.in_flight is False
    assert [h.id for h in outcome.hospitals] == [6]
    assert outcome.hospitals[0].availability.beds == 12
    assert outcome.own_hospital.availability.oxygen == 30
    assert outcome.own_hospital.availability.oxygen_status == "good"


def test_hospital_admin_always_writes_own_hospital(backend, hospital, other_hospital, hospital_admin_user):
    outcome = AvailabilityUpdater(backend).submit(
        actor=_admin_of(hospital_admin_user, hospital),
        beds=3,
        oxygen=3,
        hospital_id=other_hospital.id,
    )

    assert outcome.hospital_id == hospital.id
    assert Availability.objects.filter(hospital_id=hospital.id).exists()
    assert not Availability.objects.filter(hospital_id=other_hospital.id).exists()


def test_hospital_admin_without_link_falls_back_to_administered_hospital(backend, hospital, hospital_admin_user):
    actor = HospitalAdmin(identity_id=hospital_admin_user.pk, hospital_id=None)

    outcome = AvailabilityUpdater(backend).submit(actor=actor, beds=1, oxygen=2)

    assert outcome.hospital_id == hospital.id


def test_hospital_admin_with_no_hospital_is_rejected_before_writing(spy_backend, make_user):
    user = make_user("orphan@example.com", role="hospital_admin")

    with pytest.raises(AuthorizationError):
        AvailabilityUpdater(spy_backend).submit(
            actor=HospitalAdmin(identity_id=user.pk, hospital_id=None), beds=1, oxygen=1
        )

    assert spy_backend.availability.method_calls == []


def test_patient_is_rejected_with_zero_write_calls(spy_backend, hospital, patient_user):
    updater = AvailabilityUpdater(spy_backend)

    with pytest.raises(AuthorizationError) as exc:
        updater.submit(actor=Patient(identity_id=patient_user.pk), beds=15, oxygen=4, hospital_id=hospital.id)

    assert spy_backend.availability.method_calls == []
    assert Availability.objects.count() == 0
    assert updater.state == UpdateState.ERROR
    assert exc.value.submitted == {"beds": 15, "oxygen": 4, "hospital_id": hospital.id}


@pytest.mark.parametrize(
    "beds, oxygen, bad_fields",
    [
        (None, 4, {"beds"}),
        (15, None, {"oxygen"}),
        (-1, 4, {"beds"}),
        ("ten", "-2", {"beds", "oxygen"}),
        (1.5, 3, {"beds"}),
    ],
)
def test_invalid_counts_fail_validation_without_backend_calls(spy_backend, hospital, hospital_admin_user, beds, oxygen, bad_fields):
    updater = AvailabilityUpdater(spy_backend)

    with pytest.raises(ValidationError) as exc:
        updater.submit(actor=_admin_of(hospital_admin_user, hospital), beds=beds, oxygen=oxygen)

    assert set(exc.value.detail) == bad_fields
    assert spy_backend.availability.method_calls == []
    assert spy_backend.hospitals.method_calls == []
    # entered values survive the failure
    assert updater.draft == {"beds": beds, "oxygen": oxygen, "hospital_id": None}


def test_super_admin_writes_selected_hospital(backend, hospital, other_hospital, super_admin_user):
    outcome = AvailabilityUpdater(backend).submit(
        actor=SuperAdmin(identity_id=super_admin_user.pk), beds=8, oxygen=9, hospital_id=str(other_hospital.id)
    )

    assert outcome.hospital_id == other_hospital.id
    assert outcome.own_hospital is None
    assert Availability.objects.get(hospital_id=other_hospital.id).available_oxygen == 9


def test_super_admin_must_select_a_hospital(spy_backend, super_admin_user):
    with pytest.raises(AuthorizationError):
        AvailabilityUpdater(spy_backend).submit(actor=SuperAdmin(identity_id=super_admin_user.pk), beds=1, oxygen=1)

    assert spy_backend.availability.method_calls == []


def test_super_admin_selection_must_exist(spy_backend, super_admin_user):
    with pytest.raises(ValidationError) as exc:
        AvailabilityUpdater(spy_backend).submit(
            actor=SuperAdmin(identity_id=super_admin_user.pk), beds=1, oxygen=1, hospital_id=404
        )

    assert "hospital_id" in exc.value.detail
    assert spy_backend.availability.method_calls == []


def test_lost_insert_race_surfaces_underlying_message_without_retry(spy_backend, hospital, hospital_admin_user):
    spy_backend.availability.insert.side_effect = IntegrityError("UNIQUE constraint failed: hospitals_availability.hospital_id")
    updater = AvailabilityUpdater(spy_backend)

    with pytest.raises(TransientServiceError) as exc:
        updater.submit(actor=_admin_of(hospital_admin_user, hospital), beds=15, oxygen=4)

    assert "UNIQUE constraint failed" in str(exc.value.detail)
    spy_backend.availability.insert.assert_called_once()
    assert updater.state == UpdateState.ERROR
    assert updater.in_flight is False
    assert updater.draft["beds"] == 15
    assert "UNIQUE constraint failed" in updater.error


def test_failed_reread_after_saved_write_is_still_a_success(spy_backend, hospital, hospital_admin_user):
    spy_backend.hospitals.fetch_joined.side_effect = DatabaseError("read down")
    spy_backend.hospitals.fetch_all.side_effect = DatabaseError("read down")
    updater = AvailabilityUpdater(spy_backend)

    outcome = updater.submit(actor=_admin_of(hospital_admin_user, hospital), beds=15, oxygen=4)

    row = Availability.objects.get(hospital_id=hospital.id)
    assert (row.available_beds, row.available_oxygen) == (15, 4)
    assert outcome.hospital_id == hospital.id
    assert outcome.hospitals == []
    assert outcome.own_hospital is None
    assert outcome.refresh_error == "read down"
    assert updater.state == UpdateState.IDLE
    assert updater.error is None
    assert updater.in_flight is False
    assert updater.draft == {}


def test_duplicate_submission_while_in_flight_is_refused(spy_backend, hospital, hospital_admin_user):
    updater = AvailabilityUpdater(spy_backend)
    updater.in_flight = True

    with pytest.raises(ConflictError) as exc:
        updater.submit(actor=_admin_of(hospital_admin_user, hospital), beds=1, oxygen=1)

    assert exc.value.get_codes() == "submission_in_flight"
    assert spy_backend.availability.method_calls == []
