import pytest

pytestmark = pytest.mark.django_db


def test_not_found_uses_error_envelope(api_client):
    res = api_client.get("/api/v1/bed-stays/999999/")
    assert res.status_code == 404

    err = res.json()["error"]
    assert err["code"] == "not_found"
    assert "999999" in err["message"]
    assert err["request_id"]


def test_validation_error_carries_field_details(api_client):
    res = api_client.post("/api/v1/bed-stays/", {"patient_id": "HN-00000001"}, format="json")
    assert res.status_code == 400

    err = res.json()["error"]
    assert err["code"] == "validation_error"
    assert "bed_id" in err["details"]


def test_api_alias_serves_same_routes(api_client):
    assert api_client.get("/api/appointments/next-code/").status_code == 200
    assert api_client.get("/api/v1/appointments/next-code/").status_code == 200


def test_schema_is_generated(api_client):
    res = api_client.get("/api/schema/")
    assert res.status_code == 200
