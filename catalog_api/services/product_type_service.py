from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select, update

from catalog_api.errors import Conflict, NotFound, ValidationError
from catalog_api.extensions import db
from catalog_api.models import Product, ProductType
from catalog_api.services.catalog_tree import build_tree
from catalog_api.services.database import commit, get_row, id_in_range, requires_database
from catalog_api.services.id_sequence import next_id

logger = logging.getLogger(__name__)

LABEL_MAX_LENGTH = 100


def serialize_product_type(product_type: ProductType) -> dict[str, object]:
    return {
        "id": product_type.id,
        "label": product_type.label,
        "parent_id": product_type.parent_id,
        "has_details": product_type.has_details,
        "created_at": product_type.created_at.isoformat() if product_type.created_at else None,
        "updated_at": product_type.updated_at.isoformat() if product_type.updated_at else None,
    }


@requires_database
def get_product_type(type_id: int) -> ProductType:
    row = get_row(ProductType, type_id)
    if row is None:
        raise NotFound("product type not found", {"id": type_id})
    return row


@requires_database
def list_product_types() -> list[ProductType]:
    return list(db.session.execute(select(ProductType).order_by(ProductType.id.asc())).scalars())


@requires_database
def get_product_type_tree() -> list[dict[str, Any]]:
    rows = db.session.execute(select(ProductType).order_by(ProductType.id.asc())).scalars()
    return build_tree(rows)


@requires_database
def create_product_type(label: object, parent_id: object = None, has_details: object = False) -> ProductType:
    clean_label = _validate_label(label)
    flag = _parse_bool(has_details, "has_details")

    resolved_parent_id = _parse_parent_id(parent_id)
    if resolved_parent_id is not None and get_row(ProductType, resolved_parent_id) is None:
        raise NotFound("parent product type not found", {"parent_id": resolved_parent_id})

    row = ProductType(
        id=next_id("product_types"),
        label=clean_label,
        parent_id=resolved_parent_id,
        has_details=flag,
    )
    db.session.add(row)
    commit()
    db.session.refresh(row)
    logger.info("created product type %d %r (parent=%s)", row.id, row.label, row.parent_id)
    return row


@requires_database
def update_product_type(type_id: int, updates: dict[str, object]) -> ProductType:
    """Apply a partial update.

    Keys absent from ``updates`` are left alone. ``parent_id`` set to ``None``
    or ``""`` promotes the type to a root. Switching ``has_details`` off
    clears the ``details`` of every product of this type.
    """
    row = get_row(ProductType, type_id)
    if row is None:
        raise NotFound("product type not found", {"id": type_id})

    if "label" in updates:
        row.label = _validate_label(updates["label"])

    if "parent_id" in updates:
        new_parent_id = _parse_parent_id(updates["parent_id"])
        if new_parent_id is not None:
            if new_parent_id == type_id:
                raise ValidationError("a product type cannot be its own parent")
            if get_row(ProductType, new_parent_id) is None:
                raise NotFound("parent product type not found", {"parent_id": new_parent_id})
            _ensure_acyclic(type_id, new_parent_id)
        row.parent_id = new_parent_id

    if "has_details" in updates:
        flag = _parse_bool(updates["has_details"], "has_details")
        if row.has_details and not flag:
            db.session.execute(
                update(Product).where(Product.type_id == type_id).values(details=None)
            )
        row.has_details = flag

    commit()
    db.session.refresh(row)
    return row


@requires_database
def get_product_count(type_id: int) -> int:
    if get_row(ProductType, type_id) is None:
        raise NotFound("product type not found", {"id": type_id})
    return _count_products(type_id)


@requires_database
def delete_product_type(type_id: int, force: bool = False) -> int:
    """Delete a type, returning how many dependent products went with it.

    Dependent products block the delete unless ``force`` is set. A forced
    delete commits in two steps, products first; if the second step fails
    the products are gone and the type remains.
    """
    row = get_row(ProductType, type_id)
    if row is None:
        raise NotFound("product type not found", {"id": type_id})

    product_count = _count_products(type_id)
    if product_count and not force:
        raise Conflict(
            "product type has dependent products; retry with force to delete them",
            {"product_count": product_count, "has_products": True},
        )

    deleted_products = 0
    if product_count:
        result = db.session.execute(delete(Product).where(Product.type_id == type_id))
        deleted_products = result.rowcount or 0
        commit()
        logger.info("cascade delete: removed %d products of type %d", deleted_products, type_id)

    try:
        _remove_type(type_id)
    except Exception:
        if deleted_products:
            logger.error(
                "cascade delete interrupted: %d products of type %d removed, type still present",
                deleted_products,
                type_id,
            )
        raise

    logger.info("deleted product type %d", type_id)
    return deleted_products


def _remove_type(type_id: int) -> None:
    db.session.execute(delete(ProductType).where(ProductType.id == type_id))
    commit()


def _count_products(type_id: int) -> int:
    return db.session.scalar(select(func.count(Product.id)).where(Product.type_id == type_id)) or 0


def _ensure_acyclic(type_id: int, new_parent_id: int) -> None:
    parents = dict(db.session.execute(select(ProductType.id, ProductType.parent_id)).all())
    seen = set()
    current: int | None = new_parent_id
    while current is not None and current not in seen:
        if current == type_id:
            raise ValidationError(
                "parent assignment would create a cycle",
                {"id": type_id, "parent_id": new_parent_id},
            )
        seen.add(current)
        current = parents.get(current)


def _validate_label(label: object) -> str:
    clean = str(label).strip() if label is not None else ""
    if not clean:
        raise ValidationError("label is required")
    if len(clean) > LABEL_MAX_LENGTH:
        raise ValidationError(f"label exceeds max length {LABEL_MAX_LENGTH}")
    return clean


def _parse_parent_id(value: object) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("invalid parent_id")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError("invalid parent_id", {"parent_id": value}) from None
    if not id_in_range(parsed):
        raise ValidationError("invalid parent_id: out of range", {"parent_id": str(value)})
    return parsed


def _parse_bool(value: object, field: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationError(f"{field} must be a boolean")
