from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy import delete, func, select

from catalog_api.errors import NotFound, ServiceError, ValidationError
from catalog_api.extensions import db
from catalog_api.models import Product, ProductType
from catalog_api.services.database import commit, get_row, id_in_range, requires_database
from catalog_api.services.id_sequence import next_id, reserve_ids

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def serialize_product(product: Product) -> dict[str, object]:
    return {
        "id": product.id,
        "product_no": product.product_no,
        "cn_name": product.cn_name,
        "product_spec": product.product_spec or "",
        "price": product.price or "",
        "type": product.type_id,
        "details": product.details,
        "created_at": product.created_at.isoformat() if product.created_at else None,
    }


@requires_database
def create_product(fields: dict[str, Any]) -> Product:
    product = _build_product(fields, product_id=None)
    product.id = next_id("products")
    db.session.add(product)
    commit()
    db.session.refresh(product)
    logger.info("created product %d (%s)", product.id, product.product_no)
    return product


@requires_database
def bulk_create_products(items: object) -> tuple[list[Product], list[dict[str, Any]]]:
    """Create products in order, collecting per-entry failures.

    One block of ids is reserved up front and entry ``i`` always gets
    ``first_id + i``; ids of failed entries stay unused. A failing entry never
    aborts the rest of the batch.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("products must be a non-empty list")

    first_id = reserve_ids("products", len(items))
    commit()

    created: list[Product] = []
    errors: list[dict[str, Any]] = []
    for index, data in enumerate(items):
        try:
            if not isinstance(data, dict):
                raise ValidationError("product entry must be an object")
            product = _build_product(data, product_id=first_id + index)
            db.session.add(product)
            commit()
            created.append(product)
        except ServiceError as exc:
            db.session.rollback()
            errors.append({"index": index, "product": data, "error": exc.message})
        except Exception:
            db.session.rollback()
            logger.exception("bulk create: entry %d failed unexpectedly", index)
            errors.append({"index": index, "product": data, "error": "unexpected error"})

    logger.info("bulk create: %d created, %d failed", len(created), len(errors))
    return created, errors


@requires_database
def list_products(
    type_filter: object = None,
    cn_name: str | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[Product], dict[str, int]]:
    page = max(int(page), 1)
    page_size = max(int(page_size), 1)

    conditions = []
    if type_filter not in (None, ""):
        conditions.append(Product.type_id == _parse_int(type_filter, "type"))
    if cn_name:
        pattern = f"%{escape_like(cn_name)}%"
        conditions.append(Product.cn_name.ilike(pattern, escape=LIKE_ESCAPE))

    total = db.session.scalar(select(func.count(Product.id)).where(*conditions)) or 0
    products = list(
        db.session.execute(
            select(Product)
            .where(*conditions)
            .order_by(Product.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars()
    )
    return products, {
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": math.ceil(total / page_size),
    }


@requires_database
def get_product(identifier: object) -> Product:
    """Look a product up by numeric id, or by ``product_no`` otherwise."""
    raw = str(identifier).strip()
    try:
        product_id = int(raw)
    except ValueError:
        product = db.session.execute(
            select(Product).where(Product.product_no == raw).order_by(Product.id.asc()).limit(1)
        ).scalar_one_or_none()
    else:
        product = get_row(Product, product_id)

    if product is None:
        raise NotFound("product not found", {"identifier": raw})
    return product


@requires_database
def update_product(product_id: int, fields: dict[str, Any]) -> Product:
    product = get_row(Product, product_id)
    if product is None:
        raise NotFound("product not found", {"id": product_id})

    product.product_no = _require_product_no(fields)

    if "type" in fields:
        product_type = _resolve_type(fields["type"])
        product.type_id = product_type.id
        if not product_type.has_details:
            product.details = None
        elif "details" in fields:
            product.details = fields["details"]
    elif "details" in fields:
        current_type = get_row(ProductType, product.type_id)
        if current_type is None or not current_type.has_details:
            raise ValidationError("current product type does not support details")
        product.details = fields["details"]

    if "cn_name" in fields:
        product.cn_name = _optional_text(fields["cn_name"])
    if "product_spec" in fields:
        product.product_spec = _optional_text(fields["product_spec"])
    if "price" in fields:
        product.price = coerce_price(fields["price"])

    commit()
    db.session.refresh(product)
    return product


@requires_database
def delete_product(product_id: int) -> dict[str, object]:
    product = get_row(Product, product_id)
    if product is None:
        raise NotFound("product not found", {"id": product_id})

    summary = {
        "id": product.id,
        "product_no": product.product_no,
        "cn_name": product.cn_name,
        "type": product.type_id,
    }
    db.session.delete(product)
    commit()
    logger.info("deleted product %d", product_id)
    return summary


@requires_database
def bulk_delete_products(ids: object) -> dict[str, object]:
    if not isinstance(ids, list) or not ids:
        raise ValidationError("ids must be a non-empty list")

    product_ids = []
    for raw in ids:
        try:
            product_ids.append(_parse_int(raw, "id"))
        except ValidationError:
            continue
    if len(product_ids) != len(ids):
        raise ValidationError(
            "all product ids must be integers",
            {"provided_ids": ids, "valid_ids": product_ids},
        )

    result = db.session.execute(delete(Product).where(Product.id.in_(product_ids)))
    deleted_count = result.rowcount or 0
    commit()
    logger.info("bulk delete: %d of %d products removed", deleted_count, len(product_ids))
    return {
        "deleted_count": deleted_count,
        "deleted_ids": product_ids,
        "requested_count": len(product_ids),
    }


def escape_like(term: str) -> str:
    """Escape LIKE metacharacters so ``term`` matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def coerce_price(value: object) -> str | None:
    """Keep prices as text so tiered formats such as ``50UL|1300`` survive."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _build_product(fields: dict[str, Any], product_id: int | None) -> Product:
    product_no = _require_product_no(fields)
    product_type = _resolve_type(fields.get("type"))
    details = fields.get("details")

    return Product(
        id=product_id,
        product_no=product_no,
        cn_name=_optional_text(fields.get("cn_name")),
        product_spec=_optional_text(fields.get("product_spec")),
        price=coerce_price(fields.get("price")),
        type_id=product_type.id,
        details=details if product_type.has_details and details not in (None, "") else None,
    )


def _require_product_no(fields: dict[str, Any]) -> str:
    product_no = _optional_text(fields.get("product_no"))
    if not product_no:
        raise ValidationError("product_no is required")
    return product_no


def _resolve_type(raw: object) -> ProductType:
    type_id = _parse_int(raw, "type")
    product_type = get_row(ProductType, type_id)
    if product_type is None:
        raise NotFound("product type not found", {"type": type_id})
    return product_type


def _parse_int(value: object, field: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"invalid {field}: must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"invalid {field}: must be an integer")
        parsed = int(value)
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError:
            raise ValidationError(f"invalid {field}: must be an integer", {field: value}) from None
    if not id_in_range(parsed):
        raise ValidationError(f"invalid {field}: out of range", {field: str(value)})
    return parsed


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
