"""
Token service and auth routes – login, me, register, change-password.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from training_api.api.auth import (
    ALGORITHM, TokenExpired, TokenInvalid, generate_token, verify_token,
)
from training_api.config import SECRET_KEY

from conftest import PASSWORD


# ── Tests: generate_token / verify_token ─────────────────────────────

def test_round_trip_identity():
    token = generate_token("u1", "a@b.c", "trainer")
    identity = verify_token(token)
    assert (identity.id, identity.role, identity.email) == ("u1", "trainer", "a@b.c")


def test_token_carries_expected_claims():
    issued = datetime.now(timezone.utc) - timedelta(hours=1)
    token = generate_token("u1", "a@b.c", "admin", issued_at=issued, expiry_hours=2)
    claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_exp": False})
    assert claims["userId"] == "u1"
    assert claims["role"] == "admin"
    assert claims["exp"] - claims["iat"] == 2 * 3600


def test_expired_token_rejected():
    issued = datetime.now(timezone.utc) - timedelta(hours=200)
    token = generate_token("u1", "a@b.c", "admin", issued_at=issued, expiry_hours=168)
    with pytest.raises(TokenExpired):
        verify_token(token)


def test_tampered_payload_rejected():
    token = generate_token("u1", "a@b.c", "learner")
    head, _, sig = token.split(".")
    forged_body = generate_token("u1", "a@b.c", "admin", secret="x" * 40).split(".")[1]
    with pytest.raises(TokenInvalid):
        verify_token(".".join([head, forged_body, sig]))


def test_token_signed_with_other_secret_rejected():
    token = generate_token("u1", "a@b.c", "admin", secret="another-secret-of-sufficient-length")
    with pytest.raises(TokenInvalid):
        verify_token(token)


def test_unknown_role_rejected():
    token = generate_token("u1", "a@b.c", "superuser")
    with pytest.raises(TokenInvalid, match="incomplete"):
        verify_token(token)


def test_missing_expiry_rejected():
    token = jwt.encode({"userId": "u1", "role": "admin", "iat": 0}, SECRET_KEY, algorithm=ALGORITHM)
    with pytest.raises(TokenInvalid):
        verify_token(token)


# ── Tests: middleware ────────────────────────────────────────────────

def test_missing_header_is_401(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Access token required"}


def test_non_bearer_header_is_401(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401


def test_garbage_token_is_403(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Invalid or expired token"


def test_expired_token_is_403(client, user_ids):
    issued = datetime.now(timezone.utc) - timedelta(days=30)
    token = generate_token(user_ids["admin"], "admin@test.com", "admin", issued_at=issued)
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


# ── Tests: login ─────────────────────────────────────────────────────

def test_login_ok_returns_user_and_token(client, user_ids):
    resp = client.post("/api/auth/login", json={"email": "trainer@test.com", "password": PASSWORD})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["user"]["id"] == user_ids["trainer"]
    assert "password" not in data["user"]
    assert verify_token(data["token"]).role == "trainer"


def test_login_wrong_password(client, user_ids):
    resp = client.post("/api/auth/login", json={"email": "trainer@test.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid credentials"


def test_login_unknown_email_same_message(client, user_ids):
    resp = client.post("/api/auth/login", json={"email": "ghost@test.com", "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid credentials"


def test_login_missing_fields(client):
    resp = client.post("/api/auth/login", json={"email": "trainer@test.com"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Email and password are required"


def test_login_rejects_non_object_body(client):
    resp = client.post("/api/auth/login", json=["a", "b"])
    assert resp.status_code == 400


# ── Tests: me / register / change-password ───────────────────────────

def test_me_returns_caller(client, headers, user_ids):
    resp = client.get("/api/auth/me", headers=headers["learner"])
    assert resp.status_code == 200
    assert resp.get_json()["data"]["id"] == user_ids["learner"]


def test_register_admin_only(client, headers):
    payload = {"email": "new@test.com", "password": "pw123456", "name": "New", "role": "learner"}
    denied = client.post("/api/auth/register", json=payload, headers=headers["trainer"])
    assert denied.status_code == 403
    assert denied.get_json()["error"] == "Admin access required"

    resp = client.post("/api/auth/register", json=payload, headers=headers["admin"])
    assert resp.status_code == 201
    assert resp.get_json()["data"]["email"] == "new@test.com"


def test_register_duplicate_email(client, headers):
    payload = {"email": "learner@test.com", "password": "pw", "name": "Dup", "role": "learner"}
    resp = client.post("/api/auth/register", json=payload, headers=headers["admin"])
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Email already exists"


def test_register_missing_fields(client, headers):
    resp = client.post("/api/auth/register", json={"email": "x@test.com"}, headers=headers["admin"])
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "All fields are required"


def test_change_password_flow(client, headers):
    wrong = client.post("/api/auth/change-password", headers=headers["learner"],
                        json={"currentPassword": "bad", "newPassword": "fresh-pass"})
    assert wrong.status_code == 401
    assert wrong.get_json()["error"] == "Current password is incorrect"

    changed = client.post("/api/auth/change-password", headers=headers["learner"],
                        json={"currentPassword": PASSWORD, "newPassword": "fresh-pass"})
    assert changed.status_code == 200

    login = client.post("/api/auth/login", json={"email": "learner@test.com", "password": "fresh-pass"})
    assert login.status_code == 200


# ── Tests: service info ──────────────────────────────────────────────

def test_health_ok(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["checks"] == {"database": True}


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "error": "Resource not found"}
