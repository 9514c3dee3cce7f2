"""
Tests for the health report ledger.
"""
import re
from datetime import datetime, timezone

import pytest

from healthcamp.health_reports import service as report_service
from healthcamp.health_reports.models import HealthReport
from healthcamp.health_reports.utils import calculate_bmi, format_blood_pressure, generate_report_id

CREATE_URL = "/api/v1/doctor/health-reports/create"


def report_url(report_id):
    return f"/api/v1/doctor/health-reports/{report_id}"


def create_report(client, headers, patient_id, **fields):
    payload = {"patient_id": patient_id, "report_type": "general", "diagnosis": "Checkup"}
    payload.update(fields)
    return client.post(CREATE_URL, json=payload, headers=headers)


@pytest.fixture
def patient(make_account):
    return make_account(first_name="Asha", last_name="Patil", phone_number="9000000001")


@pytest.fixture
def rao(make_doctor):
    return make_doctor(name="Dr. Rao")


@pytest.fixture
def mehta(make_doctor):
    return make_doctor(name="Dr. Mehta")


def test_asha_and_dr_rao_scenario(client, admin, mehta, headers_for):
    registration = client.post("/api/v1/user/register", json={
        "first_name": "Asha",
        "last_name": "Patil",
        "email": "asha@example.com",
        "phone_number": "9000000001",
        "password": "secret123",
        "date_of_birth": "1995-04-12",
        "gender": "female",
    })
    assert registration.status_code == 201
    client.cookies.clear()

    login = client.post("/api/v1/user/login", json={"phone_number": "9000000001", "password": "secret123"})
    assert login.status_code == 200
    asha = login.json()["data"]["account"]
    assert asha["role"] == "user"
    client.cookies.clear()

    # Dr. Rao is onboarded by the admin and logs in with email and password
    created = client.post("/api/v1/doctor/", json={
        "name": "Dr. Rao",
        "specialization": "Hematology",
        "qualification": "MD",
        "experience_years": 12,
        "phone_number": "9333333333",
        "email": "rao@example.com",
        "location": "Pune",
        "password": "raopass123",
    }, headers=headers_for(admin.id))
    assert created.status_code == 201
    rao_login = client.post("/api/v1/doctor/login", json={"email": "rao@example.com", "password": "raopass123"})
    assert rao_login.status_code == 200
    client.cookies.clear()
    rao_account_headers = {"Authorization": f"Bearer {rao_login.json()['data']['token']}"}

    response = client.post(CREATE_URL, json={
        "patient_id": asha["id"],
        "report_type": "blood_test",
        "diagnosis": "Anemia",
        "vitals": {"height": 160, "weight": 50},
    }, headers=rao_account_headers)
    assert response.status_code == 201
    report = response.json()["data"]
    assert report["bmi"] == 19.5
    assert re.fullmatch(r"HR-\d+-[0-9a-z]{9}", report["report_id"])

    asha_view = client.get(report_url(report["report_id"]), headers={"Authorization": f"Bearer {login.json()['data']['token']}"})
    assert asha_view.status_code == 200
    assert asha_view.json()["data"]["bmi"] == 19.5

    all_reports = client.get("/api/v1/doctor/health-reports/all", headers=headers_for(admin.id))
    assert all_reports.status_code == 200
    assert report["report_id"] in [item["report_id"] for item in all_reports.json()["data"]["items"]]

    unrelated = client.get(report_url(report["report_id"]), headers=headers_for(mehta.account_id))
    assert unrelated.status_code == 403


def test_read_access_matrix(client, admin, patient, rao, mehta, make_account, headers_for):
    report_id = create_report(client, headers_for(rao.account_id), patient.id).json()["data"]["report_id"]
    stranger = make_account()

    assert client.get(report_url(report_id), headers=headers_for(rao.account_id)).status_code == 200
    assert client.get(report_url(report_id), headers=headers_for(patient.id)).status_code == 200
    assert client.get(report_url(report_id), headers=headers_for(admin.id)).status_code == 200
    assert client.get(report_url(report_id), headers=headers_for(mehta.account_id)).status_code == 403
    assert client.get(report_url(report_id), headers=headers_for(stranger.id)).status_code == 403


def test_unknown_report_is_not_found(client, admin, headers_for):
    assert client.get(report_url("HR-0-missing00"), headers=headers_for(admin.id)).status_code == 404


def test_derived_fields_are_computed_on_read(client, db, patient, rao, headers_for):
    response = create_report(
        client, headers_for(rao.account_id), patient.id,
        vitals={"blood_pressure": {"systolic": 120, "diastolic": 80}, "pulse": 72},
    )
    data = response.json()["data"]
    assert data["formatted_blood_pressure"] == "120/80"
    assert data["bmi"] is None
    assert data["vitals"]["pulse"] == 72

    assert "bmi" not in HealthReport.__table__.columns
    row = db.query(HealthReport).one()
    assert (row.bp_systolic, row.bp_diastolic) == (120, 80)


def test_admin_creates_on_behalf_of_doctor(client, admin, patient, rao, headers_for):
    headers = headers_for(admin.id)
    assert create_report(client, headers, patient.id).status_code == 400

    response = create_report(client, headers, patient.id, doctor_id=rao.id)
    assert response.status_code == 201
    assert response.json()["data"]["doctor"]["name"] == "Dr. Rao"


def test_doctor_cannot_author_as_someone_else(client, patient, rao, mehta, headers_for):
    response = create_report(client, headers_for(rao.account_id), patient.id, doctor_id=mehta.id)
    assert response.status_code == 403


def test_users_cannot_create_reports(client, patient, headers_for):
    assert create_report(client, headers_for(patient.id), patient.id).status_code == 403


@pytest.mark.parametrize("fields", [
    {"vitals": {"weight": -1}},
    {"vitals": {"blood_pressure": {"systolic": -5, "diastolic": 80}}},
    {"report_type": "mri"},
    {"severity": "critical"},
    {"diagnosis": ""},
])
def test_invalid_report_input(client, patient, rao, headers_for, fields):
    assert create_report(client, headers_for(rao.account_id), patient.id, **fields).status_code == 400


def test_unresolvable_subject(client, patient, rao, mehta, headers_for):
    headers = headers_for(rao.account_id)
    assert create_report(client, headers, 9999).status_code == 400
    # Staff accounts are not patients
    assert create_report(client, headers, mehta.account_id).status_code == 400
    assert create_report(client, headers, patient.id, relative_id=9999).status_code == 400


def add_relative(client, owner_id, headers_for):
    response = client.post("/api/v1/user/relatives/add", json={
        "relationship": "child",
        "first_name": "Ravi",
        "last_name": "Patil",
        "phone_number": "9111111111",
        "date_of_birth": "2015-06-01",
        "gender": "male",
    }, headers=headers_for(owner_id))
    return response.json()["data"]["id"]


def test_relative_reports(client, admin, patient, rao, mehta, make_account, headers_for):
    relative_id = add_relative(client, patient.id, headers_for)
    created = create_report(client, headers_for(rao.account_id), patient.id, relative_id=relative_id)
    assert created.status_code == 201
    report = created.json()["data"]
    assert report["patient_id"] is None
    assert report["relative_id"] == relative_id
    assert report["relative_owner_id"] == patient.id

    listing_url = f"/api/v1/doctor/patients/{patient.id}/relatives/{relative_id}/health-reports"
    assert client.get(report_url(report["report_id"]), headers=headers_for(patient.id)).status_code == 200
    assert client.get(listing_url, headers=headers_for(patient.id)).json()["data"]["total"] == 1
    assert client.get(listing_url, headers=headers_for(admin.id)).json()["data"]["total"] == 1
    assert client.get(listing_url, headers=headers_for(mehta.account_id)).json()["data"]["total"] == 0

    stranger = make_account()
    assert client.get(listing_url, headers=headers_for(stranger.id)).status_code == 403


def test_relative_of_another_owner_is_not_a_subject(client, patient, rao, make_account, headers_for):
    other = make_account()
    relative_id = add_relative(client, other.id, headers_for)
    response = create_report(client, headers_for(rao.account_id), patient.id, relative_id=relative_id)
    assert response.status_code == 400


def test_removing_relative_keeps_reports(client, admin, patient, rao, headers_for):
    relative_id = add_relative(client, patient.id, headers_for)
    report_id = create_report(
        client, headers_for(rao.account_id), patient.id, relative_id=relative_id
    ).json()["data"]["report_id"]

    removed = client.delete(f"/api/v1/user/relatives/{relative_id}", headers=headers_for(patient.id))
    assert removed.status_code == 200

    assert client.get(report_url(report_id), headers=headers_for(rao.account_id)).status_code == 200
    assert client.get(report_url(report_id), headers=headers_for(admin.id)).status_code == 200
    assert client.get(report_url(report_id), headers=headers_for(patient.id)).status_code == 200

    listing_url = f"/api/v1/doctor/patients/{patient.id}/relatives/{relative_id}/health-reports"
    assert client.get(listing_url, headers=headers_for(patient.id)).status_code == 404


def test_update_merges_vitals(client, patient, rao, headers_for):
    headers = headers_for(rao.account_id)
    report_id = create_report(
        client, headers, patient.id, vitals={"height": 160, "weight": 50}
    ).json()["data"]["report_id"]

    response = client.put(report_url(report_id), json={"vitals": {"weight": 64}, "severity": "medium"}, headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["vitals"]["height"] == 160
    assert data["vitals"]["weight"] == 64
    assert data["bmi"] == 25.0
    assert data["severity"] == "medium"
    assert data["report_id"] == report_id


def test_update_rejects_immutable_fields(client, patient, rao, headers_for):
    headers = headers_for(rao.account_id)
    report_id = create_report(client, headers, patient.id).json()["data"]["report_id"]
    for field in ({"report_id": "HR-1-aaaaaaaaa"}, {"patient_id": 1}, {"doctor_id": 1}):
        assert client.put(report_url(report_id), json=field, headers=headers).status_code == 400


def test_only_author_or_admin_modify(client, admin, patient, rao, mehta, headers_for):
    report_id = create_report(client, headers_for(rao.account_id), patient.id).json()["data"]["report_id"]
    change = {"notes": "Repeat in two weeks"}

    assert client.put(report_url(report_id), json=change, headers=headers_for(mehta.account_id)).status_code == 403
    assert client.put(report_url(report_id), json=change, headers=headers_for(patient.id)).status_code == 403
    assert client.put(report_url(report_id), json=change, headers=headers_for(admin.id)).status_code == 200

    assert client.delete(report_url(report_id), headers=headers_for(mehta.account_id)).status_code == 403
    assert client.delete(report_url(report_id), headers=headers_for(patient.id)).status_code == 403
    assert client.delete(report_url(report_id), headers=headers_for(rao.account_id)).status_code == 200
    assert client.get(report_url(report_id), headers=headers_for(admin.id)).status_code == 404


def test_patient_listing_order_and_scope(client, db, patient, rao, mehta, headers_for):
    ids = [
        create_report(client, headers_for(rao.account_id), patient.id).json()["data"]["report_id"],
        create_report(client, headers_for(rao.account_id), patient.id).json()["data"]["report_id"],
        create_report(client, headers_for(mehta.account_id), patient.id).json()["data"]["report_id"],
    ]
    stamps = {
        ids[0]: datetime(2024, 1, 1, tzinfo=timezone.utc),
        ids[1]: datetime(2024, 3, 1, tzinfo=timezone.utc),
        ids[2]: datetime(2024, 3, 1, tzinfo=timezone.utc),
    }
    for report in db.query(HealthReport).all():
        report.created_at = stamps[report.report_id]
    db.commit()

    url = f"/api/v1/doctor/patients/{patient.id}/health-reports"
    listed = [item["report_id"] for item in client.get(url, headers=headers_for(patient.id)).json()["data"]["items"]]
    assert listed == sorted(ids[1:]) + [ids[0]]

    rao_view = client.get(url, headers=headers_for(rao.account_id)).json()["data"]
    assert rao_view["total"] == 2
    assert {item["report_id"] for item in rao_view["items"]} == set(ids[:2])


def test_patient_listing_forbidden_for_other_users(client, patient, make_account, headers_for):
    other = make_account()
    url = f"/api/v1/doctor/patients/{patient.id}/health-reports"
    assert client.get(url, headers=headers_for(other.id)).status_code == 403


def test_listing_pagination(client, patient, rao, headers_for):
    for _ in range(3):
        create_report(client, headers_for(rao.account_id), patient.id)
    url = f"/api/v1/doctor/patients/{patient.id}/health-reports?page=2&size=2"
    page = client.get(url, headers=headers_for(patient.id)).json()["data"]
    assert page["total"] == 3
    assert page["pages"] == 2
    assert len(page["items"]) == 1
    assert page["has_prev"] is True
    assert page["has_next"] is False


def test_listing_pagination_bounds(client, patient, headers_for):
    url = f"/api/v1/doctor/patients/{patient.id}/health-reports"
    empty = client.get(url, headers=headers_for(patient.id)).json()["data"]
    assert empty["total"] == 0
    assert empty["pages"] == 0
    assert empty["has_next"] is False

    assert client.get(f"{url}?size=101", headers=headers_for(patient.id)).status_code == 400
    assert client.get(f"{url}?page=0", headers=headers_for(patient.id)).status_code == 400


def test_doctor_lists_own_reports(client, admin, patient, rao, mehta, headers_for):
    create_report(client, headers_for(rao.account_id), patient.id)
    create_report(client, headers_for(mehta.account_id), patient.id)

    own = client.get("/api/v1/doctor/health-reports", headers=headers_for(rao.account_id)).json()["data"]
    assert own["total"] == 1
    assert own["items"][0]["doctor_id"] == rao.id

    assert client.get("/api/v1/doctor/health-reports", headers=headers_for(admin.id)).status_code == 400
    by_admin = client.get(f"/api/v1/doctor/health-reports?doctor_id={mehta.id}", headers=headers_for(admin.id))
    assert by_admin.json()["data"]["items"][0]["doctor_id"] == mehta.id


def test_list_all_filters(client, admin, patient, rao, headers_for):
    headers = headers_for(rao.account_id)
    create_report(client, headers, patient.id, report_type="xray", severity="high")
    create_report(client, headers, patient.id, report_type="xray")
    create_report(client, headers, patient.id)

    url = "/api/v1/doctor/health-reports/all"
    admin_headers = headers_for(admin.id)
    assert client.get(url, headers=admin_headers).json()["data"]["total"] == 3
    assert client.get(f"{url}?report_type=xray", headers=admin_headers).json()["data"]["total"] == 2
    assert client.get(f"{url}?report_type=xray&severity=high", headers=admin_headers).json()["data"]["total"] == 1
    assert client.get(url, headers=headers).status_code == 403


def test_report_id_collision_is_retried(client, patient, rao, headers_for, monkeypatch):
    headers = headers_for(rao.account_id)
    existing = create_report(client, headers, patient.id).json()["data"]["report_id"]

    candidates = iter([existing, "HR-1-fresh0000"])
    monkeypatch.setattr(report_service, "generate_report_id", lambda: next(candidates))
    response = create_report(client, headers, patient.id)
    assert response.status_code == 201
    assert response.json()["data"]["report_id"] == "HR-1-fresh0000"


def test_report_id_collisions_exhaust_retries(client, patient, rao, headers_for, monkeypatch):
    headers = headers_for(rao.account_id)
    existing = create_report(client, headers, patient.id).json()["data"]["report_id"]

    monkeypatch.setattr(report_service, "generate_report_id", lambda: existing)
    response = create_report(client, headers, patient.id)
    assert response.status_code == 500
    assert response.json()["success"] is False


def test_generated_report_ids_are_unique():
    ids = {generate_report_id() for _ in range(10000)}
    assert len(ids) == 10000
    assert all(re.fullmatch(r"HR-\d{13}-[0-9a-z]{9}", report_id) for report_id in ids)


def test_bmi_calculation():
    assert calculate_bmi(160, 50) == 19.5
    assert calculate_bmi(None, 50) is None
    assert calculate_bmi(160, None) is None
    assert calculate_bmi(0, 50) is None


def test_blood_pressure_formatting():
    assert format_blood_pressure(120, 80) == "120/80"
    assert format_blood_pressure(120.5, 80) == "120.5/80"
    assert format_blood_pressure(120, None) is None
