from flask import Blueprint, request

from catalog_api.api.v1.request_args import json_payload, pagination_args
from catalog_api.security.decorators import require_roles
from catalog_api.services.product_service import (
    bulk_create_products,
    bulk_delete_products,
    create_product as create_product_record,
    delete_product as delete_product_record,
    get_product as get_product_record,
    list_products,
    serialize_product,
    update_product as update_product_record,
)
from catalog_api.services.product_type_service import get_product_type_tree

product_bp = Blueprint("products", __name__)

MANAGER_ROLES = ("super_admin", "admin")


@product_bp.get("/types")
def get_product_types() -> tuple[dict[str, object], int]:
    return {"types": get_product_type_tree()}, 200


@product_bp.get("")
def get_products() -> tuple[dict[str, object], int]:
    page, page_size = pagination_args()
    products, pagination = list_products(
        type_filter=(request.args.get("type") or "").strip() or None,
        cn_name=(request.args.get("cn_name") or "").strip() or None,
        page=page,
        page_size=page_size,
    )
    return {
        "products": [serialize_product(product) for product in products],
        "pagination": pagination,
    }, 200


@product_bp.post("")
@require_roles(*MANAGER_ROLES)
def create_product() -> tuple[dict[str, object], int]:
    product = create_product_record(json_payload())
    return {"message": "product created", "product": serialize_product(product)}, 201


@product_bp.post("/batch/create")
@require_roles(*MANAGER_ROLES)
def batch_create_products() -> tuple[dict[str, object], int]:
    created, errors = bulk_create_products(json_payload().get("products"))
    body: dict[str, object] = {
        "message": f"created {len(created)} products",
        "products": [serialize_product(product) for product in created],
    }
    if errors:
        body["message"] = f"created {len(created)} products, {len(errors)} failed"
        body["errors"] = errors
    return body, 201


@product_bp.delete("/batch/delete")
@require_roles(*MANAGER_ROLES)
def batch_delete_products() -> tuple[dict[str, object], int]:
    result = bulk_delete_products(json_payload().get("ids"))
    return {"message": f"deleted {result['deleted_count']} products", **result}, 200


@product_bp.get("/<identifier>")
def get_product(identifier: str) -> tuple[dict[str, object], int]:
    return {"product": serialize_product(get_product_record(identifier))}, 200


@product_bp.put("/<int:product_id>")
@require_roles(*MANAGER_ROLES)
def update_product(product_id: int) -> tuple[dict[str, object], int]:
    product = update_product_record(product_id, json_payload())
    return {"message": "product updated", "product": serialize_product(product)}, 200


@product_bp.delete("/<int:product_id>")
@require_roles(*MANAGER_ROLES)
def delete_product(product_id: int) -> tuple[dict[str, object], int]:
    deleted = delete_product_record(product_id)
    return {"message": "product deleted", "deleted_product": deleted}, 200
