"""Integration tests for registration, login and session restoration."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from walletbook.core.security import Sha256HexVerifier, StringHash32Verifier, check_password
from walletbook.models.user import User
from walletbook.models.wallet import Wallet
from walletbook.services import accounts


def _legacy_user(db_session, password_hash: str, email: str = "old@example.com") -> User:
    user = User(
        name="Luis",
        surname="Rojas",
        username="luis",
        email=email,
        password_hash=password_hash,
    )
    db_session.add(user)
    db_session.commit()
    db_session.add(Wallet(user_id=user.id, balance_cents=0))
    db_session.commit()
    return user


class TestRegistration:
    def test_register_creates_user_and_wallet(self, register, db_session):
        body = register(email="Ana@Example.com")

        assert body["email"] == "ana@example.com"
        assert body["username"] == "ana"
        wallet = db_session.get(Wallet, body["id"])
        assert wallet is not None
        assert wallet.balance_cents == 0

    def test_password_is_stored_as_bcrypt(self, register, db_session):
        body = register()
        user = db_session.get(User, body["id"])
        assert user.password_hash.startswith("$2")
        assert check_password("s3cret-pass", user.password_hash).scheme == "bcrypt"

    def test_duplicate_email(self, client, register):
        register()
        response = client.post(
            "/api/auth/register",
            json={"name": "A", "surname": "B", "username": "other", "email": "ana@example.com", "password": "123456"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_duplicate_username(self, client, register):
        register()
        response = client.post(
            "/api/auth/register",
            json={"name": "A", "surname": "B", "username": "ana", "email": "x@example.com", "password": "123456"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Username already exists"

    def test_wallet_failure_removes_user(self, client, db_session):
        """A failed wallet insert must not leave an orphaned user row."""
        boom = OperationalError("INSERT INTO wallets", {}, Exception("disk full"))
        with patch("walletbook.services.accounts.create_wallet", side_effect=boom):
            response = client.post(
                "/api/auth/register",
                json={
                    "name": "Ana",
                    "surname": "Quispe",
                    "username": "ana",
                    "email": "ana@example.com",
                    "password": "s3cret-pass",
                },
            )

        assert response.status_code == 502
        db_session.expire_all()
        assert db_session.scalar(select(User).where(User.email == "ana@example.com")) is None
        assert db_session.scalars(select(Wallet)).all() == []

    @pytest.mark.parametrize(
        "email, username, detail",
        [
            ("ana@example.com", "other", "Email already registered"),
            ("x@example.com", "ana", "Username already exists"),
        ],
    )
    def test_concurrent_duplicate_is_a_validation_error(self, client, register, db_session, email, username, detail):
        """The unique constraint still answers 400 when the pre-check is raced past."""
        register()
        with patch("walletbook.services.accounts.find_conflicting_user", return_value=None):
            response = client.post(
                "/api/auth/register",
                json={"name": "A", "surname": "B", "username": username, "email": email, "password": "123456"},
            )

        assert response.status_code == 400
        assert response.json()["detail"] == detail
        db_session.expire_all()
        assert len(db_session.scalars(select(User)).all()) == 1


class TestLogin:
    def test_login_sets_cookie_and_returns_token(self, client, register):
        register()
        response = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "s3cret-pass"})

        assert response.status_code == 200
        assert response.json()["access_token"]
        assert "walletbook_auth" in response.headers["set-cookie"]

    def test_wrong_password_and_unknown_email_look_the_same(self, client, register):
        register()
        wrong = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "nope"})
        unknown = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "nope"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"detail": "Invalid credentials"}

    def test_legacy_sha256_hash_is_upgraded_on_login(self, client, db_session):
        user = _legacy_user(db_session, Sha256HexVerifier().hash("hunter22"))

        first = client.post("/api/auth/login", json={"email": "old@example.com", "password": "hunter22"})
        assert first.status_code == 200

        db_session.expire_all()
        stored = db_session.get(User, user.id).password_hash
        assert stored.startswith("$2")
        assert check_password("hunter22", stored).scheme == "bcrypt"

        second = client.post("/api/auth/login", json={"email": "old@example.com", "password": "hunter22"})
        assert second.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, user.id).password_hash == stored

    def test_legacy_string_hash_is_upgraded_on_login(self, client, db_session):
        user = _legacy_user(db_session, StringHash32Verifier().hash("hunter22"))

        response = client.post("/api/auth/login", json={"email": "old@example.com", "password": "hunter22"})

        assert response.status_code == 200
        db_session.expire_all()
        assert check_password("hunter22", db_session.get(User, user.id).password_hash).scheme == "bcrypt"

    def test_failed_hash_upgrade_still_logs_in(self, client, db_session):
        legacy = Sha256HexVerifier().hash("hunter22")
        user = _legacy_user(db_session, legacy)
        boom = OperationalError("UPDATE users", {}, Exception("database is locked"))

        with patch.object(Session, "commit", side_effect=boom), patch.object(accounts.logger, "warning") as warning:
            response = client.post("/api/auth/login", json={"email": "old@example.com", "password": "hunter22"})

        assert response.status_code == 200
        assert response.json()["access_token"]
        warning.assert_called_once()
        assert "upgrade failed" in warning.call_args.args[0]
        db_session.expire_all()
        assert db_session.get(User, user.id).password_hash == legacy

    def test_legacy_hash_with_wrong_password_is_not_upgraded(self, client, db_session):
        legacy = Sha256HexVerifier().hash("hunter22")
        user = _legacy_user(db_session, legacy)

        response = client.post("/api/auth/login", json={"email": "old@example.com", "password": "hunter2"})

        assert response.status_code == 401
        db_session.expire_all()
        assert db_session.get(User, user.id).password_hash == legacy


class TestSessionGuard:
    def test_protected_route_without_session(self, client):
        response = client.get("/api/wallet")
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated", "loginUrl": "/auth/login"}

    def test_protected_route_with_garbage_token(self, client):
        response = client.get("/api/wallet", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["loginUrl"] == "/auth/login"

    def test_session_restore_without_session(self, client):
        response = client.get("/api/auth/session")
        assert response.status_code == 200
        assert response.json() == {"authenticated": False, "user": None, "loginUrl": "/auth/login"}

    def test_session_restore_from_cookie(self, client, register):
        register()
        client.post("/api/auth/login", json={"email": "ana@example.com", "password": "s3cret-pass"})

        response = client.get("/api/auth/session")

        assert response.status_code == 200
        body = response.json()
        assert body["authenticated"] is True
        assert body["user"]["email"] == "ana@example.com"

    def test_me_with_bearer_token(self, client, auth_headers):
        client.cookies.clear()
        response = client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["username"] == "ana"

    def test_logout_clears_cookie(self, client, auth_headers):
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert "walletbook_auth" in response.headers["set-cookie"]
