from flask import Blueprint

from catalog_api.api.v1.request_args import bool_query_arg, json_payload
from catalog_api.security.decorators import require_roles
from catalog_api.services.product_type_service import (
    create_product_type as create_type,
    delete_product_type as delete_type,
    get_product_count as count_products,
    get_product_type as get_type,
    get_product_type_tree,
    serialize_product_type,
    update_product_type as update_type,
)

product_type_bp = Blueprint("product_types", __name__)

MANAGER_ROLES = ("super_admin", "admin")


@product_type_bp.get("")
def list_product_types() -> tuple[dict[str, object], int]:
    return {"types": get_product_type_tree()}, 200


@product_type_bp.get("/<int:type_id>")
def get_product_type(type_id: int) -> tuple[dict[str, object], int]:
    return {"type": serialize_product_type(get_type(type_id))}, 200


@product_type_bp.get("/<int:type_id>/product-count")
@require_roles(*MANAGER_ROLES)
def get_product_count(type_id: int) -> tuple[dict[str, object], int]:
    product_type = get_type(type_id)
    return {
        "type_id": type_id,
        "type_label": product_type.label,
        "product_count": count_products(type_id),
    }, 200


@product_type_bp.post("")
@require_roles(*MANAGER_ROLES)
def create_product_type() -> tuple[dict[str, object], int]:
    payload = json_payload()
    product_type = create_type(
        payload.get("label"),
        parent_id=payload.get("parent_id"),
        has_details=payload.get("has_details", False),
    )
    return {"message": "product type created", "type": serialize_product_type(product_type)}, 201


@product_type_bp.put("/<int:type_id>")
@require_roles(*MANAGER_ROLES)
def update_product_type(type_id: int) -> tuple[dict[str, object], int]:
    payload = json_payload()
    updates = {
        field: payload[field] for field in ("label", "parent_id", "has_details") if field in payload
    }
    product_type = update_type(type_id, updates)
    return {"message": "product type updated", "type": serialize_product_type(product_type)}, 200


@product_type_bp.delete("/<int:type_id>")
@require_roles(*MANAGER_ROLES)
def delete_product_type(type_id: int) -> tuple[dict[str, object], int]:
    deleted_products = delete_type(type_id, force=bool_query_arg("force"))
    return {"message": "product type deleted", "deleted_products": deleted_products}, 200
