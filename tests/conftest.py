from __future__ import annotations

import pytest
from flask_jwt_extended import create_access_token

from catalog_api import create_app
from catalog_api.extensions import db
from catalog_api.models import User
from catalog_api.services.auth_service import build_auth_claims
from catalog_api.services.user_service import create_user


class TestConfig:
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-secret-key-long-enough-for-hs256-signing"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    LOG_LEVEL = "WARNING"
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def make_user(username: str, role: str, password: str = "Secret123!") -> User:
    return create_user(
        {
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "role": role,
        }
    )


@pytest.fixture()
def super_admin(app) -> User:
    return make_user("root", "super_admin")


@pytest.fixture()
def admin(app) -> User:
    return make_user("manager", "admin")


@pytest.fixture()
def sales(app) -> User:
    return make_user("seller", "sales")


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(identity=str(user.id), additional_claims=build_auth_claims(user))
    return {"Authorization": f"Bearer {token}"}
