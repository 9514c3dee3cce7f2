"""
Tests for registration, login, logout, profile and password changes.
"""
import pytest

from healthcamp.auth.models import Account, UserRole
from healthcamp.core.audit_models import AuditLog
from healthcamp.relatives.models import Relative, RelationshipType

DEFAULT_PASSWORD = "secret123"

REGISTRATION = {
    "first_name": "Asha",
    "last_name": "Patil",
    "email": "asha@example.com",
    "phone_number": "9000000001",
    "password": "secret123",
    "date_of_birth": "1995-04-12",
    "gender": "female",
}


def register(client, **overrides):
    payload = dict(REGISTRATION, **overrides)
    return client.post("/api/v1/user/register", json=payload)


def test_register_creates_user_and_logs_in(client, db):
    response = register(client)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["account"]["role"] == "user"
    assert body["data"]["token"]
    assert "password_hash" not in body["data"]["account"]
    assert "token" in response.cookies

    account = db.query(Account).filter(Account.email == "asha@example.com").one()
    assert account.password_hash != "secret123"


def test_register_ignores_role_in_payload(client, db):
    response = register(client, role="admin")
    assert response.status_code == 201
    assert db.query(Account).one().role == UserRole.USER


def test_register_rejects_duplicate_email(client):
    register(client)
    response = register(client, phone_number="9000000002")
    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered"


def test_register_rejects_duplicate_phone(client):
    register(client)
    response = register(client, email="other@example.com")
    assert response.status_code == 400
    assert response.json()["message"] == "Phone number already registered"


def test_register_requires_date_of_birth(client):
    payload = dict(REGISTRATION)
    del payload["date_of_birth"]
    response = client.post("/api/v1/user/register", json=payload)
    assert response.status_code == 400


def test_login_by_phone_returns_role(client):
    register(client)
    client.cookies.clear()
    response = client.post("/api/v1/user/login", json={"phone_number": "9000000001", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["data"]["account"]["role"] == "user"


def test_login_failures_are_indistinguishable(client, db):
    register(client)
    client.cookies.clear()
    wrong_password = client.post("/api/v1/user/login", json={"phone_number": "9000000001", "password": "nope"})
    unknown_phone = client.post("/api/v1/user/login", json={"phone_number": "9999999999", "password": "secret123"})
    assert wrong_password.status_code == unknown_phone.status_code == 401
    assert wrong_password.json()["message"] == unknown_phone.json()["message"] == "Invalid credentials"
    assert db.query(AuditLog).filter(AuditLog.action == "LOGIN_FAILED").count() == 2


def test_inline_relative_cannot_log_in(client, db, make_account):
    owner = make_account()
    db.add(Relative(
        owner_id=owner.id,
        first_name="Ravi",
        last_name="Patil",
        phone_number="9111111111",
        relation=RelationshipType.CHILD,
    ))
    db.commit()

    assert db.query(Account).filter(Account.phone_number == "9111111111").first() is None
    response = client.post("/api/v1/user/login", json={"phone_number": "9111111111", "password": DEFAULT_PASSWORD})
    assert response.status_code == 401


def test_staff_login_is_scoped_to_role(client, admin, make_doctor):
    doctor = make_doctor()
    ok = client.post("/api/v1/admin/login", json={"email": admin.email, "password": DEFAULT_PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["data"]["account"]["role"] == "admin"

    wrong_door = client.post("/api/v1/admin/login", json={"email": doctor.email, "password": DEFAULT_PASSWORD})
    assert wrong_door.status_code == 401

    doctor_ok = client.post("/api/v1/doctor/login", json={"email": doctor.email, "password": DEFAULT_PASSWORD})
    assert doctor_ok.status_code == 200
    assert doctor_ok.json()["data"]["account"]["role"] == "doctor"


def test_cookie_credential_is_accepted(client):
    register(client)
    response = client.get("/api/v1/user/profile")
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "asha@example.com"


def test_logout_revokes_credential(client):
    token = register(client).json()["data"]["token"]
    client.cookies.clear()
    headers = {"Authorization": f"Bearer {token}"}

    response = client.post("/api/v1/user/logout", headers=headers)
    assert response.status_code == 200

    replay = client.get("/api/v1/user/profile", headers=headers)
    assert replay.status_code == 401
    assert "revoked" in replay.json()["message"]


def test_update_profile(client, make_account, headers_for):
    account = make_account()
    response = client.put(
        "/api/v1/user/profile/update",
        json={"first_name": "Meera", "blood_group": "O+"},
        headers=headers_for(account.id),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["first_name"] == "Meera"
    assert data["blood_group"] == "O+"


def test_update_profile_cannot_change_role(client, make_account, headers_for):
    account = make_account()
    response = client.put(
        "/api/v1/user/profile/update",
        json={"role": "admin"},
        headers=headers_for(account.id),
    )
    assert response.status_code == 400


def test_update_profile_rejects_taken_email(client, make_account, headers_for):
    make_account(email="taken@example.com")
    account = make_account()
    response = client.put(
        "/api/v1/user/profile/update",
        json={"email": "taken@example.com"},
        headers=headers_for(account.id),
    )
    assert response.status_code == 400


def test_change_password(client, db, make_account, headers_for):
    account = make_account(phone_number="9222222222")
    headers = headers_for(account.id)

    response = client.put(
        "/api/v1/user/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "brandnew1"},
        headers=headers,
    )
    assert response.status_code == 200

    db.refresh(account)
    assert account.password_changed_at is not None

    # The credential used for the change is no longer accepted
    assert client.get("/api/v1/user/profile", headers=headers).status_code == 401

    client.cookies.clear()
    old = client.post("/api/v1/user/login", json={"phone_number": "9222222222", "password": DEFAULT_PASSWORD})
    new = client.post("/api/v1/user/login", json={"phone_number": "9222222222", "password": "brandnew1"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_change_password_invalidates_other_credentials(client, make_account, headers_for):
    account = make_account()
    other_device = headers_for(account.id)
    this_device = headers_for(account.id)

    response = client.put(
        "/api/v1/user/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "brandnew1"},
        headers=this_device,
    )
    assert response.status_code == 200

    client.cookies.clear()
    stale = client.get("/api/v1/user/profile", headers=other_device)
    assert stale.status_code == 401
    assert stale.json()["message"].startswith("Token has been revoked")

    # Credentials issued after the change keep working
    assert client.get("/api/v1/user/profile", headers=headers_for(account.id)).status_code == 200


def test_change_password_requires_current_password(client, db, make_account, headers_for):
    account = make_account()
    response = client.put(
        "/api/v1/user/change-password",
        json={"current_password": "wrong-one", "new_password": "brandnew1"},
        headers=headers_for(account.id),
    )
    assert response.status_code == 401
    assert db.query(AuditLog).filter(AuditLog.action == "PASSWORD_CHANGE_FAILED").count() == 1


@pytest.mark.parametrize("new_password", ["short", "seven77"])
def test_change_password_enforces_minimum_length(client, make_account, headers_for, new_password):
    account = make_account()
    response = client.put(
        "/api/v1/user/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": new_password},
        headers=headers_for(account.id),
    )
    assert response.status_code == 400
