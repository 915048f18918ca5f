from __future__ import annotations

import pytest
from sqlalchemy import func, select

from catalog_api.errors import Conflict, InternalError, NotFound, ValidationError
from catalog_api.extensions import db
from catalog_api.models import Product, ProductType
from catalog_api.services import product_type_service
from catalog_api.services.product_service import create_product
from catalog_api.services.product_type_service import (
    create_product_type,
    delete_product_type,
    get_product_count,
    get_product_type,
    get_product_type_tree,
    update_product_type,
)


def _products_of(type_id: int) -> int:
    return db.session.scalar(select(func.count(Product.id)).where(Product.type_id == type_id))


def _add_products(type_id: int, count: int) -> None:
    for index in range(count):
        create_product({"product_no": f"P{type_id}-{index}", "type": type_id})


def test_create_then_get_round_trips(app):
    parent = create_product_type("ELISA kits")
    created = create_product_type("  Mouse kits ", parent_id=parent.id, has_details=True)

    fetched = get_product_type(created.id)

    assert fetched.label == "Mouse kits"
    assert fetched.parent_id == parent.id
    assert fetched.has_details is True


def test_ids_start_at_one_and_increment(app):
    first = create_product_type("A")
    second = create_product_type("B")

    assert (first.id, second.id) == (1, 2)


def test_create_rejects_blank_label(app):
    with pytest.raises(ValidationError):
        create_product_type("   ")


def test_create_rejects_non_integer_parent(app):
    with pytest.raises(ValidationError):
        create_product_type("A", parent_id="abc")


def test_tree_scenario_with_missing_parent(app):
    type_a = create_product_type("A", has_details=False)
    type_b = create_product_type("B", parent_id=type_a.id)

    with pytest.raises(NotFound):
        create_product_type("C", parent_id=9999)

    tree = get_product_type_tree()
    assert [node["id"] for node in tree] == [type_a.id]
    assert [child["id"] for child in tree[0]["children"]] == [type_b.id]


def test_update_missing_type(app):
    with pytest.raises(NotFound):
        update_product_type(42, {"label": "x"})


def test_update_rejects_blank_label(app):
    row = create_product_type("A")

    with pytest.raises(ValidationError):
        update_product_type(row.id, {"label": ""})


def test_update_rejects_self_parent(app):
    row = create_product_type("A")

    with pytest.raises(ValidationError):
        update_product_type(row.id, {"parent_id": row.id})


def test_update_rejects_unknown_parent(app):
    row = create_product_type("A")

    with pytest.raises(NotFound):
        update_product_type(row.id, {"parent_id": 500})


def test_update_rejects_cycle_through_descendant(app):
    grand = create_product_type("grand")
    parent = create_product_type("parent", parent_id=grand.id)
    child = create_product_type("child", parent_id=parent.id)

    with pytest.raises(ValidationError) as excinfo:
        update_product_type(grand.id, {"parent_id": child.id})

    assert "cycle" in excinfo.value.message
    assert get_product_type(grand.id).parent_id is None


@pytest.mark.parametrize("empty", [None, ""])
def test_update_promotes_to_root(app, empty):
    parent = create_product_type("parent")
    child = create_product_type("child", parent_id=parent.id)

    updated = update_product_type(child.id, {"parent_id": empty})

    assert updated.parent_id is None
    assert len(get_product_type_tree()) == 2


def test_update_partial_fields(app):
    other = create_product_type("other")
    row = create_product_type("A")

    updated = update_product_type(row.id, {"parent_id": other.id, "has_details": True})

    assert updated.label == "A"
    assert updated.parent_id == other.id
    assert updated.has_details is True


def test_switching_details_off_clears_product_details(app):
    row = create_product_type("antibodies", has_details=True)
    product = create_product({"product_no": "AB-1", "type": row.id, "details": {"host": "rabbit"}})

    update_product_type(row.id, {"has_details": False})

    assert db.session.get(Product, product.id).details is None


def test_product_count(app):
    row = create_product_type("A")
    _add_products(row.id, 3)

    assert get_product_count(row.id) == 3
    with pytest.raises(NotFound):
        get_product_count(999)


def test_delete_without_products(app):
    type_id = create_product_type("A").id

    assert delete_product_type(type_id) == 0
    assert db.session.get(ProductType, type_id) is None


def test_delete_missing_type(app):
    with pytest.raises(NotFound):
        delete_product_type(3)


def test_delete_with_products_requires_force(app):
    row = create_product_type("A")
    _add_products(row.id, 4)

    with pytest.raises(Conflict) as excinfo:
        delete_product_type(row.id)

    assert excinfo.value.detail["product_count"] == 4
    assert _products_of(row.id) == 4
    assert db.session.get(ProductType, row.id) is not None


def test_forced_delete_removes_type_and_products(app):
    type_id = create_product_type("A").id
    keep_id = create_product_type("B").id
    _add_products(type_id, 4)
    _add_products(keep_id, 1)

    assert delete_product_type(type_id, force=True) == 4

    assert _products_of(type_id) == 0
    assert _products_of(keep_id) == 1
    assert db.session.get(ProductType, type_id) is None


def test_forced_delete_interrupted_after_products_leaves_type(app, monkeypatch):
    row = create_product_type("A")
    _add_products(row.id, 2)

    def failing_remove(_type_id):
        raise InternalError("database operation failed")

    monkeypatch.setattr(product_type_service, "_remove_type", failing_remove)

    with pytest.raises(InternalError):
        delete_product_type(row.id, force=True)

    assert _products_of(row.id) == 0
    assert db.session.get(ProductType, row.id) is not None


def test_children_of_deleted_type_surface_as_roots(app):
    parent_id = create_product_type("parent").id
    child_id = create_product_type("child", parent_id=parent_id).id

    delete_product_type(parent_id)

    tree = get_product_type_tree()
    assert [node["id"] for node in tree] == [child_id]
    assert tree[0]["parent_id"] == parent_id


def test_out_of_range_ids(app):
    with pytest.raises(ValidationError):
        create_product_type("A", parent_id="99999999999999999999")
    with pytest.raises(NotFound):
        get_product_type(2**70)
    with pytest.raises(NotFound):
        delete_product_type(2**70)
