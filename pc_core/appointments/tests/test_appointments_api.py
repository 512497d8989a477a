import pytest

from pc_core.appointments.models import Appointment

pytestmark = pytest.mark.django_db


@pytest.fixture
def p5(make_patient):
    return make_patient(hn="P-5", full_name="Patient Five")


def payload(**overrides):
    body = {
        "hn": "P-5",
        "appointment_date": "2025-03-01",
        "start_time": "09:00",
        "end_time": "09:30",
        "appointment_type": "home",
    }
    body.update(overrides)
    return body


def test_create_then_conflicting_create(api_client, p5):
    res = api_client.post("/api/v1/appointments/", payload(), format="json")
    assert res.status_code == 201, res.data
    assert res.data["code"].startswith("AP-")
    assert res.data["display_place"] == "Patient home"

    res = api_client.post(
        "/api/v1/appointments/",
        payload(start_time="09:15", end_time="09:45", appointment_type="hospital", hospital_address="City Hosp"),
        format="json",
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "conflict"


def test_hospital_without_address_is_400(api_client, make_patient):
    make_patient(hn="P-6", full_name="Patient Six")
    res = api_client.post(
        "/api/v1/appointments/",
        payload(hn="P-6", appointment_type="hospital", hospital_address=""),
        format="json",
    )
    assert res.status_code == 400
    assert res.json()["error"]["details"]["hospital_address"] == "address required"


def test_retrieve_patch_status_delete_by_code(api_client, p5):
    created = api_client.post("/api/v1/appointments/", payload(), format="json").data
    code = created["code"]

    assert api_client.get(f"/api/v1/appointments/{code}/").data["id"] == created["id"]
    assert api_client.get(f"/api/v1/appointments/{created['id']}/").data["code"] == code

    res = api_client.patch(f"/api/v1/appointments/{code}/", {"note": "bring meds"}, format="json")
    assert res.status_code == 200, res.data
    assert res.data["note"] == "bring meds"

    res = api_client.post(f"/api/v1/appointments/{code}/status/", {"status": "done"}, format="json")
    assert res.status_code == 200
    assert res.data["status"] == "done"

    res = api_client.post(f"/api/v1/appointments/{code}/status/", {"status": "cancelled"}, format="json")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "invalid_transition"

    assert api_client.delete(f"/api/v1/appointments/{code}/").data == {"deleted": True}
    assert api_client.delete(f"/api/v1/appointments/{code}/").data == {"deleted": False}
    assert not Appointment.objects.exists()


def test_empty_patch_is_400(api_client, p5):
    created = api_client.post("/api/v1/appointments/", payload(), format="json").data
    res = api_client.patch(f"/api/v1/appointments/{created['id']}/", {}, format="json")
    assert res.status_code == 400


def test_list_is_paginated_and_next_code(api_client, p5):
    api_client.post("/api/v1/appointments/", payload(), format="json")

    res = api_client.get("/api/v1/appointments/", {"status": "all"})
    assert res.status_code == 200
    assert res.data["count"] == 1

    next_code = api_client.get("/api/v1/appointments/next-code/").data["code"]
    assert next_code == f"AP-{res.data['results'][0]['id'] + 1:06d}"


def test_readonly_can_list_but_not_create(client_for, p5):
    readonly = client_for()
    assert readonly.get("/api/v1/appointments/").status_code == 200
    assert readonly.post("/api/v1/appointments/", payload(), format="json").status_code == 403


def test_unknown_code_is_404(api_client):
    res = api_client.get("/api/v1/appointments/AP-424242/")
    assert res.status_code == 404
