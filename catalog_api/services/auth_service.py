from __future__ import annotations

import logging

from flask_jwt_extended import create_access_token

from catalog_api.errors import NotFound, Unauthorized, ValidationError
from catalog_api.models import User
from catalog_api.security.password import hash_password, verify_password
from catalog_api.security.permissions import Role
from catalog_api.services.user_service import find_user_by_id, find_user_by_login, serialize_user

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid credentials"

_dummy_hash: str | None = None


def _dummy_password_hash() -> str:
    # checked against when the user does not exist so both failure paths cost the same
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("not-a-real-password")
    return _dummy_hash


def authenticate_user(identifier: str, password: str) -> User:
    identifier = (identifier or "").strip()
    if not password:
        raise ValidationError("password is required")
    if not identifier:
        raise ValidationError("username or email is required")

    user = find_user_by_login(identifier)
    if user is None:
        verify_password(_dummy_password_hash(), password)
        logger.info("failed login attempt for %r", identifier)
        raise Unauthorized(INVALID_CREDENTIALS)

    if not verify_password(user.password_hash, password):
        logger.info("failed login attempt for %r", identifier)
        raise Unauthorized(INVALID_CREDENTIALS)

    return user


def build_auth_claims(user: User) -> dict[str, object]:
    return {
        "user_id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role or Role.SALES.value,
    }


def login(identifier: str, password: str) -> dict[str, object]:
    user = authenticate_user(identifier, password)
    access_token = create_access_token(identity=str(user.id), additional_claims=build_auth_claims(user))
    logger.info("user %d logged in", user.id)
    return {"token": access_token, "user": serialize_user(user)}


def current_user(user_id: int | None) -> User:
    user = find_user_by_id(user_id) if user_id is not None else None
    if user is None:
        raise NotFound("user not found")
    return user
