from __future__ import annotations

import logging
import math
import re
from typing import Any

from sqlalchemy import func, or_, select

from catalog_api.errors import Conflict, Forbidden, NotFound, ValidationError
from catalog_api.extensions import db
from catalog_api.models import User
from catalog_api.security.password import hash_password
from catalog_api.security.permissions import ROLE_NAMES, Actor, Role, can_view, viewable_roles
from catalog_api.services.database import commit, get_row, requires_database
from catalog_api.services.id_sequence import next_id
from catalog_api.services.product_service import LIKE_ESCAPE, escape_like

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def serialize_user(user: User) -> dict[str, object]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role or Role.SALES.value,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@requires_database
def find_user_by_id(user_id: int) -> User | None:
    return get_row(User, user_id)


@requires_database
def find_user_by_login(identifier: str) -> User | None:
    """Match ``identifier`` against the username or the lowercased email."""
    stmt = select(User).where(
        or_(User.username == identifier, User.email == identifier.lower())
    ).limit(1)
    return db.session.execute(stmt).scalar_one_or_none()


@requires_database
def list_users(
    actor_role: Role | str | None,
    search: str | None = None,
    role: str | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[User], dict[str, int]]:
    allowed_roles = [r.value for r in viewable_roles(actor_role)]
    if not allowed_roles:
        raise Forbidden("role may not view users")

    page = max(int(page), 1)
    page_size = max(int(page_size), 1)

    conditions = [User.role.in_(allowed_roles)]
    if role:
        conditions.append(User.role == role.strip().lower())
    if search:
        pattern = f"%{escape_like(search)}%"
        conditions.append(
            or_(
                User.username.ilike(pattern, escape=LIKE_ESCAPE),
                User.email.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    total = db.session.scalar(select(func.count(User.id)).where(*conditions)) or 0
    users = list(
        db.session.execute(
            select(User)
            .where(*conditions)
            .order_by(User.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars()
    )
    return users, {
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": math.ceil(total / page_size),
    }


@requires_database
def get_user(actor_role: Role | str | None, user_id: int) -> User:
    user = get_row(User, user_id)
    if user is None:
        raise NotFound("user not found", {"id": user_id})
    if not can_view(actor_role, user.role):
        raise Forbidden("insufficient privilege to view this user")
    return user


@requires_database
def create_user(fields: dict[str, Any]) -> User:
    """Validate, allocate an id, hash the password, then persist."""
    username = _validate_username(fields.get("username"))
    email = _validate_email(fields.get("email"))
    password = _validate_password(fields.get("password"))
    role = _validate_role(fields.get("role") or Role.SALES.value)
    _ensure_unique(username=username, email=email)

    user = User(
        id=next_id("users"),
        username=username,
        email=email,
        role=role,
    )
    user.password_hash = hash_password(password)
    db.session.add(user)
    commit()
    db.session.refresh(user)
    logger.info("created user %d (%s, %s)", user.id, user.username, user.role)
    return user


@requires_database
def update_user(actor: Actor, user: User, fields: dict[str, Any]) -> User:
    """Apply the non-empty fields of ``fields`` to ``user``.

    Authorization against the target has already happened in the request
    gate; this only rejects an actor changing their own role.
    """
    requested_role = fields.get("role")
    if (
        requested_role
        and actor.user_id == user.id
        and str(requested_role).strip().lower() != user.role
    ):
        raise Forbidden("cannot change own role")

    updates: dict[str, Any] = {}
    if fields.get("username"):
        updates["username"] = _validate_username(fields["username"])
    if fields.get("email"):
        updates["email"] = _validate_email(fields["email"])
    if fields.get("password"):
        updates["password_hash"] = hash_password(_validate_password(fields["password"]))
    if requested_role:
        updates["role"] = _validate_role(requested_role)

    if not updates:
        raise ValidationError("no fields to update")

    _ensure_unique(
        username=updates.get("username"),
        email=updates.get("email"),
        exclude_id=user.id,
    )
    for field, value in updates.items():
        setattr(user, field, value)
    commit()
    db.session.refresh(user)
    return user


@requires_database
def delete_user(user: User) -> dict[str, object]:
    summary = serialize_user(user)
    db.session.delete(user)
    commit()
    logger.info("deleted user %d (%s)", summary["id"], summary["username"])
    return summary


def _ensure_unique(
    username: str | None = None,
    email: str | None = None,
    exclude_id: int | None = None,
) -> None:
    checks = (("username", User.username, username), ("email", User.email, email))
    for field, column, value in checks:
        if value is None:
            continue
        stmt = select(User.id).where(column == value)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if db.session.scalar(stmt.limit(1)) is not None:
            raise Conflict(f"{field} already exists", {"field": field})


def _validate_username(value: object) -> str:
    username = str(value).strip() if value is not None else ""
    if not username:
        raise ValidationError("username is required")
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters"
        )
    return username


def _validate_email(value: object) -> str:
    email = str(value).strip().lower() if value is not None else ""
    if not email:
        raise ValidationError("email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email is not a valid address")
    return email


def _validate_password(value: object) -> str:
    password = str(value) if value is not None else ""
    if not password:
        raise ValidationError("password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    return password


def _validate_role(value: object) -> str:
    role = Role.parse(value)
    if role is None:
        raise ValidationError(
            "invalid role", {"allowed_roles": list(ROLE_NAMES)}
        )
    return role.value
