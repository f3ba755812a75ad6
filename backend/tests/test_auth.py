"""
Authentication and session tests.

Verifies:
- Login issues a bearer token; only its hash is stored
- Logout revokes the token
- Idle / absolute timeouts and deactivated accounts end the session
- Password strength rules
"""

from datetime import timedelta

import pytest

from tradebook.models import SessionToken
from tradebook.services.auth_service import (
    PasswordValidationError,
    create_user,
    hash_password,
    verify_password,
)
from tradebook.services.session_service import hash_token

from conftest import PASSWORD, auth_headers, get_auth_token


class TestLogin:

    def test_login_and_me(self, client, db_session, employee):
        resp = client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD})
        assert resp.status_code == 200
        token = resp.json["token"]
        assert resp.json["user"]["role"] == "EMPLOYEE"

        stored = db_session.query(SessionToken).one()
        assert stored.token_hash == hash_token(token)
        assert stored.token_hash != token

        me = client.get("/api/auth/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json["user"]["email"] == employee.email

    def test_email_is_case_insensitive(self, client, db_session, employee):
        assert get_auth_token(client, employee.email.upper()) is not None

    def test_wrong_password(self, client, db_session, employee):
        resp = client.post("/api/auth/login", json={"email": employee.email, "password": "Wrong123!"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"

    @pytest.mark.parametrize("payload", [{}, {"email": "a@b.c"}, {"password": "x"}])
    def test_missing_fields(self, client, db_session, payload):
        assert client.post("/api/auth/login", json=payload).status_code == 400

    def test_inactive_user(self, client, db_session, employee):
        employee.is_active = False
        db_session.commit()
        assert get_auth_token(client, employee.email) is None


class TestSessions:

    def test_logout_revokes(self, client, db_session, employee):
        headers = auth_headers(get_auth_token(client, employee.email))
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        resp = client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"

    def test_missing_header(self, client, db_session):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json["error"] == "Authentication required"

    def test_idle_timeout(self, client, db_session, employee):
        headers = auth_headers(get_auth_token(client, employee.email))
        session = db_session.query(SessionToken).one()
        session.last_used_at = session.last_used_at - timedelta(hours=13)
        db_session.commit()

        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_absolute_timeout(self, client, db_session, employee):
        headers = auth_headers(get_auth_token(client, employee.email))
        session = db_session.query(SessionToken).one()
        session.expires_at = session.expires_at - timedelta(hours=25)
        db_session.commit()

        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_deactivated_after_login(self, client, db_session, employee):
        headers = auth_headers(get_auth_token(client, employee.email))
        employee.is_active = False
        db_session.commit()

        assert client.get("/api/auth/me", headers=headers).status_code == 401


class TestPasswords:

    @pytest.mark.parametrize("password", ["Short1!", "alllower123!", "ALLUPPER123!", "NoDigits!!", "NoSpecial123"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            hash_password(password)

    def test_round_trip(self):
        hashed = hash_password(PASSWORD)
        assert verify_password(PASSWORD, hashed)
        assert not verify_password("Password123?", hashed)

    def test_malformed_hash_is_a_mismatch(self):
        assert verify_password(PASSWORD, "not-a-bcrypt-hash") is False

    def test_create_user_normalizes(self, db_session):
        user = create_user(name="Admin", email="  Boss@Example.COM ", password=PASSWORD, role="admin")
        assert user.email == "boss@example.com"
        assert user.role == "ADMIN"

        with pytest.raises(ValueError):
            create_user(name="Dup", email="boss@example.com", password=PASSWORD)
