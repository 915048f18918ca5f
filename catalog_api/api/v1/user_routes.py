from flask import Blueprint, g, request
from flask_jwt_extended import jwt_required

from catalog_api.api.v1.request_args import json_payload, pagination_args
from catalog_api.security.decorators import current_actor, require_user_permission
from catalog_api.services.user_service import (
    create_user as create_user_record,
    delete_user as delete_user_record,
    get_user as get_user_record,
    list_users,
    serialize_user,
    update_user as update_user_record,
)

user_bp = Blueprint("users", __name__)


@user_bp.get("")
@jwt_required()
def get_users() -> tuple[dict[str, object], int]:
    page, page_size = pagination_args()
    users, pagination = list_users(
        current_actor().role,
        search=(request.args.get("search") or "").strip() or None,
        role=(request.args.get("role") or "").strip() or None,
        page=page,
        page_size=page_size,
    )
    return {"items": [serialize_user(user) for user in users], "pagination": pagination}, 200


@user_bp.get("/<int:user_id>")
@jwt_required()
def get_user(user_id: int) -> tuple[dict[str, object], int]:
    user = get_user_record(current_actor().role, user_id)
    return {"user": serialize_user(user)}, 200


@user_bp.post("")
@require_user_permission("create")
def create_user() -> tuple[dict[str, object], int]:
    user = create_user_record(json_payload())
    return {"message": "user created", "user": serialize_user(user)}, 201


@user_bp.put("/<int:user_id>")
@require_user_permission("update")
def update_user(user_id: int) -> tuple[dict[str, object], int]:
    user = update_user_record(g.actor, g.target_user, json_payload())
    return {"message": "user updated", "user": serialize_user(user)}, 200


@user_bp.delete("/<int:user_id>")
@require_user_permission("delete")
def delete_user(user_id: int) -> tuple[dict[str, object], int]:
    deleted = delete_user_record(g.target_user)
    return {"message": "user deleted", "deleted_user": deleted}, 200
