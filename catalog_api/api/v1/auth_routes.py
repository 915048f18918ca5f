from flask import Blueprint
from flask_jwt_extended import jwt_required

from catalog_api.api.v1.request_args import json_payload
from catalog_api.security.decorators import current_actor
from catalog_api.services.auth_service import current_user, login as login_user
from catalog_api.services.user_service import serialize_user

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/login")
def login() -> tuple[dict[str, object], int]:
    payload = json_payload()
    identifier = str(payload.get("username") or payload.get("email") or "")
    password = str(payload.get("password") or "")

    result = login_user(identifier, password)
    return {"message": "login succeeded", **result}, 200


@auth_bp.get("/me")
@jwt_required()
def me() -> tuple[dict[str, object], int]:
    user = current_user(current_actor().user_id)
    return {"user": serialize_user(user)}, 200
