"""Operator commands registered on the ``flask`` CLI.

Super admins can only be created here, never through the HTTP API.
"""

from __future__ import annotations

import os
from collections import Counter

import click
from flask.cli import with_appcontext
from sqlalchemy import func, select

from catalog_api.errors import ServiceError
from catalog_api.extensions import db
from catalog_api.models import Product, ProductType
from catalog_api.security.permissions import Role
from catalog_api.services.catalog_tree import build_tree, flatten_tree
from catalog_api.services.product_service import bulk_delete_products
from catalog_api.services.product_type_service import create_product_type, list_product_types
from catalog_api.services.user_service import create_user

DEFAULT_PRODUCT_TYPES = [
    {
        "label": "ELISA试剂盒",
        "has_details": False,
        "children": [
            "猪 ELISA科研试剂盒",
            "大鼠 ELISA科研试剂盒",
            "小鼠 ELISA科研试剂盒",
            "猫 ELISA科研试剂盒",
            "牛 ELISA科研试剂盒",
            "山羊/绵羊 ELISA科研试剂盒",
            "鸡 ELISA科研试剂盒",
            "兔 ELISA科研试剂盒",
            "鱼 ELISA科研试剂盒",
            "犬 ELISA科研试剂盒",
            "农残 ELISA科研试剂盒 (竞争法)",
            "昆虫 ELISA科研试剂盒",
            "其它 ELISA科研试剂盒 (马/豚鼠/鸭)",
            "人 ELISA科研试剂盒",
        ],
    },
    {"label": "重组兔单克隆抗体", "has_details": True, "children": []},
    {"label": "TSA荧光多标试剂盒", "has_details": False, "children": []},
]


@click.command("create-super-admin")
@click.argument("username", required=False)
@click.argument("email", required=False)
@click.argument("password", required=False)
@with_appcontext
def create_super_admin_command(username: str | None, email: str | None, password: str | None) -> None:
    """Create a super admin from arguments or SUPER_ADMIN_* env vars."""
    username = username or os.environ.get("SUPER_ADMIN_USERNAME", "superadmin")
    email = email or os.environ.get("SUPER_ADMIN_EMAIL", "superadmin@example.com")
    password = password or os.environ.get("SUPER_ADMIN_PASSWORD")
    if not password:
        raise click.UsageError(
            "password missing: pass USERNAME EMAIL PASSWORD or set SUPER_ADMIN_PASSWORD"
        )

    try:
        user = create_user(
            {
                "username": username,
                "email": email,
                "password": password,
                "role": Role.SUPER_ADMIN.value,
            }
        )
    except ServiceError as exc:
        raise click.ClickException(f"{exc.message} {exc.detail or ''}".strip()) from exc

    click.echo(f"created super admin id={user.id} username={user.username} email={user.email}")


@click.command("seed-product-types")
@with_appcontext
def seed_product_types_command() -> None:
    """Insert the default product type catalog, skipping existing labels."""
    created, skipped = seed_product_types(DEFAULT_PRODUCT_TYPES)
    click.echo(f"product types: {created} created, {skipped} already present")


def seed_product_types(catalog: list[dict]) -> tuple[int, int]:
    outcomes = []
    for entry in catalog:
        parent, was_created = _get_or_create_type(entry["label"], None, entry.get("has_details", False))
        outcomes.append(was_created)
        for child_label in entry.get("children", []):
            _, was_created = _get_or_create_type(child_label, parent.id, False)
            outcomes.append(was_created)
    created = sum(outcomes)
    return created, len(outcomes) - created


def _get_or_create_type(label: str, parent_id: int | None, has_details: bool) -> tuple[ProductType, bool]:
    existing = db.session.execute(
        select(ProductType)
        .where(
            ProductType.label == label,
            ProductType.parent_id.is_(None) if parent_id is None else ProductType.parent_id == parent_id,
        )
        .order_by(ProductType.id.asc())
        .limit(1)
    ).scalar_one_or_none()
    if existing is not None:
        return existing, False
    return create_product_type(label, parent_id=parent_id, has_details=has_details), True


@click.command("verify-catalog")
@click.option("--delete-orphans", is_flag=True, help="Delete products whose type does not exist.")
@with_appcontext
def verify_catalog_command(delete_orphans: bool) -> None:
    """Check type ids, product type references and the type tree."""
    report = verify_catalog(delete_orphans=delete_orphans)
    click.echo(
        f"product types: {report['type_count']} ({report['root_count']} roots, "
        f"{report['dangling_count']} with a missing parent)"
    )
    click.echo(f"products: {report['product_count']}")
    if report["deleted_orphans"]:
        click.echo(f"deleted {report['deleted_orphans']} products with a missing type")
    for problem in report["problems"]:
        click.echo(f"problem: {problem}", err=True)
    if report["problems"]:
        raise click.ClickException(f"{len(report['problems'])} problem(s) found")
    click.echo("catalog ok")


def verify_catalog(delete_orphans: bool = False) -> dict[str, object]:
    types = list_product_types()
    type_ids = [row.id for row in types]
    known = set(type_ids)
    problems = []

    duplicates = sorted(type_id for type_id, seen in Counter(type_ids).items() if seen > 1)
    if duplicates:
        problems.append(f"duplicate product type ids: {duplicates}")

    orphan_ids = list(
        db.session.scalars(select(Product.id).where(Product.type_id.not_in(known)).order_by(Product.id))
    )
    deleted_orphans = 0
    if orphan_ids and delete_orphans:
        deleted_orphans = bulk_delete_products(orphan_ids)["deleted_count"]
    elif orphan_ids:
        problems.append(f"{len(orphan_ids)} products reference a missing type: {orphan_ids[:20]}")

    forest = build_tree(types)
    placed = [node["id"] for node in flatten_tree(forest)]
    if sorted(placed) != sorted(type_ids):
        # nodes on a parent cycle never hang off a root
        problems.append("type tree does not contain every product type exactly once")

    return {
        "type_count": len(types),
        "root_count": len(forest),
        "dangling_count": sum(1 for row in types if row.parent_id is not None and row.parent_id not in known),
        "product_count": db.session.scalar(select(func.count(Product.id))) or 0,
        "deleted_orphans": deleted_orphans,
        "problems": problems,
    }
