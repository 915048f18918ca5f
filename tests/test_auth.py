from __future__ import annotations

from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token, decode_token

from catalog_api.errors import Unauthorized, ValidationError
from catalog_api.services.auth_service import INVALID_CREDENTIALS, authenticate_user, build_auth_claims
from conftest import auth_headers


def test_login_with_username(client, admin):
    response = client.post("/api/v1/auth/login", json={"username": "manager", "password": "Secret123!"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["user"]["username"] == "manager"
    assert body["user"]["role"] == "admin"
    assert "password_hash" not in body["user"]

    claims = decode_token(body["token"])
    assert claims["sub"] == str(admin.id)
    assert claims["role"] == "admin"
    assert claims["email"] == "manager@example.com"


def test_login_with_email_is_case_insensitive(client, sales):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "Seller@Example.com", "password": "Secret123!"},
    )

    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == sales.id


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "manager", "password": "wrong-password"},
        {"username": "nobody", "password": "Secret123!"},
    ],
)
def test_failed_login_does_not_reveal_which_part_was_wrong(client, admin, payload):
    response = client.post("/api/v1/auth/login", json=payload)

    assert response.status_code == 401
    assert response.get_json()["message"] == INVALID_CREDENTIALS


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "manager"},
        {"password": "Secret123!"},
        {},
    ],
)
def test_login_with_missing_fields(client, admin, payload):
    response = client.post("/api/v1/auth/login", json=payload)

    assert response.status_code == 400
    assert response.get_json()["kind"] == "validation_error"


def test_authenticate_user_errors(admin):
    with pytest.raises(ValidationError):
        authenticate_user("", "Secret123!")
    with pytest.raises(Unauthorized):
        authenticate_user("manager", "nope")

    assert authenticate_user("  manager ", "Secret123!").id == admin.id


def test_claims(super_admin):
    assert build_auth_claims(super_admin) == {
        "user_id": super_admin.id,
        "username": "root",
        "email": "root@example.com",
        "role": "super_admin",
    }


def test_me_returns_current_user(client, sales):
    response = client.get("/api/v1/auth/me", headers=auth_headers(sales))

    assert response.status_code == 200
    assert response.get_json()["user"]["username"] == "seller"


def test_me_requires_token(client):
    response = client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert response.get_json()["message"] == "missing authorization token"


def test_tampered_token_is_rejected(client, sales, super_admin):
    header, _, signature = auth_headers(sales)["Authorization"].split(".")
    forged_payload = auth_headers(super_admin)["Authorization"].split(".")[1]

    response = client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"{header}.{forged_payload}.{signature}"},
    )

    assert response.status_code == 401
    assert response.get_json()["message"] == "token is invalid or expired"


def test_expired_token_is_rejected(client, sales):
    token = create_access_token(
        identity=str(sales.id),
        additional_claims=build_auth_claims(sales),
        expires_delta=timedelta(seconds=-1),
    )

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "token is invalid or expired"


def test_token_for_deleted_user(client, app, sales):
    from catalog_api.services.user_service import delete_user

    headers = auth_headers(sales)
    delete_user(sales)

    response = client.get("/api/v1/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.get_json()["kind"] == "unauthorized"
