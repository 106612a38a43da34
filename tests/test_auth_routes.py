"""
Tests for registration, e-mail verification and one-time-credential login
"""

import pytest

from youvote import crud, mailer
from youvote.security import decode_access_token

EMAIL = "wanjiru@students.university.ac.ke"


@pytest.fixture
def credentials(monkeypatch):
    """Record codes handed to the mailer"""
    issued = {}

    def fake_verification(to_addr, first_name, last_name, code):
        issued["email_code"] = code
        return True

    def fake_login(to_addr, login_id, login_password):
        issued["login_id"] = login_id
        issued["login_password"] = login_password
        return True

    monkeypatch.setattr(mailer, "send_verification_code", fake_verification)
    monkeypatch.setattr(mailer, "send_login_credentials", fake_login)
    return issued


def _register(client):
    return client.post("/register", json={"first_name": "Wanjiru", "last_name": "Kamau", "email": EMAIL})


class TestRegister:

    def test_register_creates_unverified_voter(self, client, db, credentials):
        response = _register(client)
        assert response.status_code == 201
        user = crud.get_user_by_email(db, EMAIL)
        assert user["email_verified"] is False
        assert user["role"] == "voter"
        assert len(credentials["email_code"]) == 6
        assert user["email_verification_code"] == credentials["email_code"]

    def test_duplicate_email_rejected(self, client, credentials):
        _register(client)
        response = _register(client)
        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "Email is already in use."}

    @pytest.mark.parametrize("first_name", ["Wanj1ru", "Mary Ann", ""])
    def test_names_must_be_letters(self, client, credentials, first_name):
        response = client.post("/register", json={"first_name": first_name, "last_name": "Kamau", "email": EMAIL})
        assert response.status_code == 422

    def test_invalid_email_rejected(self, client, credentials):
        response = client.post("/register", json={"first_name": "A", "last_name": "B", "email": "not-an-email"})
        assert response.status_code == 422

    def test_verification_mail_text(self, client, outbox):
        _register(client)
        assert outbox[0]["to"] == EMAIL
        assert outbox[0]["subject"] == "Email Verification Code"
        assert "Welcome to YouVote, Wanjiru Kamau!" in outbox[0]["body"]


class TestVerify:

    def test_correct_code_verifies(self, client, db, credentials):
        _register(client)
        response = client.post("/verify", json={"email": EMAIL, "email_code": credentials["email_code"]})
        assert response.status_code == 200
        assert crud.get_user_by_email(db, EMAIL)["email_verified"] is True

    def test_wrong_code(self, client, credentials):
        _register(client)
        response = client.post("/verify", json={"email": EMAIL, "email_code": "zzzzzz"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid email verification code"

    def test_no_code(self, client, credentials):
        _register(client)
        assert client.post("/verify", json={"email": EMAIL}).status_code == 400

    def test_unknown_user(self, client):
        response = client.post("/verify", json={"email": "ghost@university.ac.ke", "email_code": "abc"})
        assert response.status_code == 404


class TestLogin:

    def _verified(self, client, credentials):
        _register(client)
        client.post("/verify", json={"email": EMAIL, "email_code": credentials["email_code"]})

    def test_full_login_flow(self, client, db, credentials):
        self._verified(client, credentials)
        assert client.post("/login", json={"email": EMAIL}).status_code == 200
        assert len(credentials["login_id"]) == 18
        assert len(credentials["login_password"]) == 8

        stored = crud.get_user_by_email(db, EMAIL)
        assert stored["login_password_hash"] != credentials["login_password"]

        response = client.post("/validate-login", json={
            "email": EMAIL,
            "login_id": credentials["login_id"],
            "login_password": credentials["login_password"],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == EMAIL
        claims = decode_access_token(body["token"])
        assert claims["sub"] == body["user"]["id"]
        assert claims["role"] == "voter"

    def test_credentials_are_single_use(self, client, db, credentials):
        self._verified(client, credentials)
        client.post("/login", json={"email": EMAIL})
        payload = {"email": EMAIL, "login_id": credentials["login_id"], "login_password": credentials["login_password"]}
        assert client.post("/validate-login", json=payload).status_code == 200
        assert client.post("/validate-login", json=payload).status_code == 400
        assert "login_id" not in crud.get_user_by_email(db, EMAIL)

    def test_wrong_password(self, client, credentials):
        self._verified(client, credentials)
        client.post("/login", json={"email": EMAIL})
        response = client.post("/validate-login", json={
            "email": EMAIL, "login_id": credentials["login_id"], "login_password": "wrongpwd",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid login ID or password"

    def test_unverified_cannot_login(self, client, credentials):
        _register(client)
        assert client.post("/login", json={"email": EMAIL}).status_code == 403

    def test_unknown_user_cannot_login(self, client):
        assert client.post("/login", json={"email": "ghost@university.ac.ke"}).status_code == 404


class TestSession:

    def test_me_requires_token(self, client):
        response = client.get("/me")
        assert response.status_code == 401
        assert response.json()["error"] == "Access denied, token missing"

    def test_me_rejects_garbage_token(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    def test_me_returns_session(self, client, voter, voter_headers):
        body = client.get("/me", headers=voter_headers).json()
        assert body == {"user_id": str(voter["_id"]), "email": voter["email"], "role": "voter", "is_admin": False}


class TestCreateAdmin:

    def test_admin_creates_verified_admin(self, client, db, admin_headers):
        response = client.post("/admins", headers=admin_headers,
                               json={"first_name": "New", "last_name": "Admin", "email": "new@university.ac.ke"})
        assert response.status_code == 201
        created = crud.get_user_by_email(db, "new@university.ac.ke")
        assert created["role"] == "admin"
        assert created["email_verified"] is True

    def test_voter_cannot_create_admin(self, client, voter_headers):
        response = client.post("/admins", headers=voter_headers,
                               json={"first_name": "New", "last_name": "Admin", "email": "new@university.ac.ke"})
        assert response.status_code == 403

    def test_demoted_admin_loses_rights_before_token_expiry(self, client, db, admin, admin_headers):
        """Admin checks read the stored role, not the token claim"""
        db.users.update_one({"_id": admin["_id"]}, {"$set": {"role": "voter"}})
        response = client.post("/admins", headers=admin_headers,
                               json={"first_name": "New", "last_name": "Admin", "email": "new@university.ac.ke"})
        assert response.status_code == 403

    def test_deleted_admin_rejected(self, client, db, admin, admin_headers):
        db.users.delete_one({"_id": admin["_id"]})
        response = client.post("/admins", headers=admin_headers,
                               json={"first_name": "New", "last_name": "Admin", "email": "new@university.ac.ke"})
        assert response.status_code == 401
