"""
Тесты auth эндпоинтов backend

Формат ошибок: {message, errors?: {field: [messages]}}
"""

import jwt
import pytest

from cloudguard_api.core import create_access_token, hash_password, verify_password

from .conftest import PASSWORD


# ==================== Ping ====================

def test_ping(client):
    response = client.get("/api/ping")

    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


# ==================== Register ====================

def test_register_returns_tokens_and_user(registered, settings):
    assert registered["token_type"] == "Bearer"
    assert registered["refresh_token"]
    assert registered["user"]["email"] == "a@b.com"
    assert registered["user"]["email_verified_at"] is None
    assert "hashed_password" not in registered["user"]

    payload = jwt.decode(
        registered["access_token"], settings.auth_secret_key, algorithms=[settings.auth_algorithm]
    )
    assert payload["sub"] == str(registered["user"]["id"])
    assert payload["type"] == "access"


def test_register_issues_verification_token(registered, repository):
    assert repository.pending_verification_token(registered["user"]["id"]) is not None


def test_register_duplicate_email(client, registered):
    response = client.post(
        "/api/register",
        json={
            "name": "Other",
            "email": "a@b.com",
            "password": PASSWORD,
            "password_confirmation": PASSWORD,
        },
    )

    assert response.status_code == 422
    assert response.json() == {
        "message": "The email has already been taken.",
        "errors": {"email": ["The email has already been taken."]},
    }


@pytest.mark.parametrize(
    "body, field",
    [
        ({"name": "Jane", "email": "bad", "password": PASSWORD, "password_confirmation": PASSWORD}, "email"),
        ({"name": "Jane", "email": "a@b.com", "password": "short", "password_confirmation": "short"}, "password"),
        (
            {"name": "Jane", "email": "a@b.com", "password": PASSWORD, "password_confirmation": "other123"},
            "password_confirmation",
        ),
        ({"email": "a@b.com", "password": PASSWORD, "password_confirmation": PASSWORD}, "name"),
    ],
)
def test_register_validation_errors(client, body, field):
    response = client.post("/api/register", json=body)

    assert response.status_code == 422
    assert field in response.json()["errors"]


def test_register_multipart_with_avatar(client):
    response = client.post(
        "/api/register",
        data={
            "name": "Jane",
            "email": "a@b.com",
            "password": PASSWORD,
            "password_confirmation": PASSWORD,
        },
        files={"avatar": ("avatar.jpg", b"\xff\xd8\xff\xe0", "image/jpeg")},
    )

    assert response.status_code == 201, response.text
    assert response.json()["user"]["avatar"] == "data:image/jpeg;base64,/9j/4A=="


def test_register_rejects_unsupported_avatar(client):
    response = client.post(
        "/api/register",
        data={
            "name": "Jane",
            "email": "a@b.com",
            "password": PASSWORD,
            "password_confirmation": PASSWORD,
        },
        files={"avatar": ("avatar.gif", b"GIF89a", "image/gif")},
    )

    assert response.status_code == 422
    assert "avatar" in response.json()["errors"]


def test_register_invalid_json(client):
    response = client.post(
        "/api/register",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert "body" in response.json()["errors"]


# ==================== Login / logout ====================

def test_login(client, registered):
    response = client.post(
        "/api/login",
        json={"email": "a@b.com", "password": PASSWORD, "device_name": "pytest"},
    )

    assert response.status_code == 200
    assert response.json()["user"]["id"] == registered["user"]["id"]


def test_login_wrong_password(client, registered):
    response = client.post("/api/login", json={"email": "a@b.com", "password": "x"})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_login_unknown_email(client):
    response = client.post("/api/login", json={"email": "nobody@b.com", "password": PASSWORD})

    assert response.status_code == 401


def test_logout_revokes_token(client, auth_headers):
    response = client.post("/api/logout", headers=auth_headers)
    assert response.status_code == 200

    response = client.get("/api/check-auth", headers=auth_headers)
    assert response.status_code == 401


def test_logout_requires_token(client):
    response = client.post("/api/logout")

    assert response.status_code == 401
    assert response.json() == {"message": "Unauthenticated."}


# ==================== Check auth / refresh ====================

def test_check_auth(client, registered, auth_headers):
    response = client.get("/api/check-auth", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"authenticated": True, "user": registered["user"]}


@pytest.mark.parametrize("header", [None, "Bearer garbage", "Basic abc"])
def test_check_auth_rejects_bad_tokens(client, header):
    headers = {"Authorization": header} if header else {}

    response = client.get("/api/check-auth", headers=headers)

    assert response.status_code == 401


def test_check_auth_rejects_refresh_token(client, registered):
    response = client.get(
        "/api/check-auth",
        headers={"Authorization": f"Bearer {registered['refresh_token']}"},
    )

    assert response.status_code == 401


def test_check_auth_expired_token(client, registered, settings):
    expired = create_access_token(
        registered["user"]["id"],
        settings.model_copy(update={"auth_access_token_expire_minutes": -1}),
    )

    response = client.get("/api/check-auth", headers={"Authorization": f"Bearer {expired}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired."


def test_refresh_rotates_tokens(client, registered):
    response = client.post("/api/auth/refresh", json={"refresh_token": registered["refresh_token"]})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "Bearer"
    assert body["refresh_token"] != registered["refresh_token"]

    check = client.get("/api/check-auth", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert check.status_code == 200

    reused = client.post("/api/auth/refresh", json={"refresh_token": registered["refresh_token"]})
    assert reused.status_code == 401


def test_refresh_rejects_access_token(client, registered):
    response = client.post("/api/auth/refresh", json={"refresh_token": registered["access_token"]})

    assert response.status_code == 401


# ==================== Email verification ====================

def test_verify_email(client, registered, repository, auth_headers):
    token = repository.pending_verification_token(registered["user"]["id"])

    response = client.post("/api/email/verify", json={"token": token})
    assert response.status_code == 200

    user = client.get("/api/check-auth", headers=auth_headers).json()["user"]
    assert user["email_verified_at"] is not None

    again = client.post("/api/email/verify", json={"token": token})
    assert again.status_code == 422
    assert "token" in again.json()["errors"]


def test_resend_verification_replaces_token(client, registered, repository):
    user_id = registered["user"]["id"]
    first = repository.pending_verification_token(user_id)

    response = client.post("/api/email/resend", json={"email": "a@b.com"})

    assert response.status_code == 200
    assert repository.pending_verification_token(user_id) not in (None, first)


def test_resend_unknown_email_looks_the_same(client):
    response = client.post("/api/email/resend", json={"email": "nobody@b.com"})

    assert response.status_code == 200


# ==================== Password reset / change ====================

def test_password_reset(client, registered, repository):
    assert client.post("/api/forgot-password", json={"email": "a@b.com"}).status_code == 200
    token = repository.pending_reset_token("a@b.com")

    response = client.post(
        "/api/reset-password",
        json={
            "email": "a@b.com",
            "token": token,
            "password": "brand-new-secret",
            "password_confirmation": "brand-new-secret",
        },
    )
    assert response.status_code == 200

    login = client.post("/api/login", json={"email": "a@b.com", "password": "brand-new-secret"})
    assert login.status_code == 200


def test_password_reset_bad_token(client, registered):
    client.post("/api/forgot-password", json={"email": "a@b.com"})

    response = client.post(
        "/api/reset-password",
        json={
            "email": "a@b.com",
            "token": "wrong",
            "password": "brand-new-secret",
            "password_confirmation": "brand-new-secret",
        },
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"email": ["This password reset token is invalid."]}


def test_change_password(client, auth_headers, registered, repository):
    wrong = client.put(
        "/api/change-password",
        headers=auth_headers,
        json={
            "current_password": "not-it",
            "password": "new-secret-1",
            "password_confirmation": "new-secret-1",
        },
    )
    assert wrong.status_code == 422
    assert "current_password" in wrong.json()["errors"]

    response = client.put(
        "/api/change-password",
        headers=auth_headers,
        json={
            "current_password": PASSWORD,
            "password": "new-secret-1",
            "password_confirmation": "new-secret-1",
        },
    )
    assert response.status_code == 200

    user = repository.get_by_id(registered["user"]["id"])
    assert verify_password("new-secret-1", user.hashed_password)


# ==================== Profile ====================

def test_update_profile(client, auth_headers, repository, registered):
    user_id = registered["user"]["id"]
    repository.consume_verification_token(repository.pending_verification_token(user_id))

    response = client.put(
        "/api/profile",
        headers=auth_headers,
        json={"name": "Renamed", "email": "new@b.com", "phone": "+100"},
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["name"] == "Renamed"
    assert user["email"] == "new@b.com"
    assert user["phone"] == "+100"
    assert user["email_verified_at"] is None


def test_update_profile_requires_auth(client):
    response = client.put("/api/profile", json={"name": "Renamed", "email": "a@b.com"})

    assert response.status_code == 401


def test_update_profile_email_taken(client, auth_headers, repository):
    repository.create_user(name="Other", email="taken@b.com", hashed_password=hash_password("x", rounds=4))

    response = client.put(
        "/api/profile",
        headers=auth_headers,
        json={"name": "Jane", "email": "taken@b.com"},
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"email": ["The email has already been taken."]}


# ==================== Passwords ====================

def test_password_hash_truncates_to_72_bytes():
    long_password = "a" * 100
    hashed = hash_password(long_password, rounds=4)

    assert verify_password("a" * 72, hashed)
    assert not verify_password("a" * 71, hashed)
    assert not verify_password(PASSWORD, "not-a-hash")
