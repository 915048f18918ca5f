"""Role hierarchy and the authorization decision for user management.

``decide`` is the one place that answers "may this actor create, update or
delete that user". It performs no I/O: callers resolve the target first and
pass it in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    SALES = "sales"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def level(self) -> int:
        return _LEVELS[self]

    def outranks(self, other: "Role") -> bool:
        return self.level > other.level

    @classmethod
    def parse(cls, value: Any) -> "Role | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


_LEVELS = {Role.SALES: 1, Role.ADMIN: 2, Role.SUPER_ADMIN: 3}

ROLE_NAMES = tuple(role.value for role in Role)


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


REASON_UNAUTHENTICATED = "unauthenticated"
REASON_NO_CAPABILITY = "no management capability"
REASON_SUPER_ADMIN_CREATE = "super-admin accounts cannot be created via API"
REASON_ADMIN_CREATE = "admin may only create sales"
REASON_TARGET_MISSING = "target not found or incomplete"
REASON_SELF = "cannot act on self"
REASON_SUPER_ADMIN_PEER = "super-admin peer operations forbidden via API"
REASON_ADMIN_SCOPE = "admin may only act on sales"
REASON_LOWER_ONLY = "actor may only act on strictly lower-privileged targets"
REASON_ALLOWED = "allowed"


@dataclass(frozen=True)
class Actor:
    user_id: int | None
    role: Role | None


@dataclass(frozen=True)
class Target:
    id: int | None
    role: Role | None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def _allow() -> Decision:
    return Decision(True, REASON_ALLOWED)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def _resolve_target(target: Any) -> Target | None:
    if target is None:
        return None
    if isinstance(target, Target):
        return target if target.role is not None else None
    role = Role.parse(getattr(target, "role", None))
    if role is None:
        return None
    return Target(id=getattr(target, "id", None), role=role)


def decide(actor: Actor | None, target: Any, action: Action | str) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``target``.

    For ``create`` the target is the proposed role (a ``Role``, a role name or
    ``None``). For ``update`` and ``delete`` it is the existing user, either a
    ``Target`` or any object exposing ``id`` and ``role``.
    """
    action = Action(action)
    actor_role = Role.parse(actor.role) if actor is not None and actor.role is not None else None
    if actor_role is None:
        return _deny(REASON_UNAUTHENTICATED)

    if actor_role is Role.SALES:
        return _deny(REASON_NO_CAPABILITY)

    if action is Action.CREATE:
        proposed = Role.parse(target) if target is not None else None
        if actor_role is Role.SUPER_ADMIN:
            if proposed is Role.SUPER_ADMIN:
                return _deny(REASON_SUPER_ADMIN_CREATE)
            return _allow()
        if proposed is Role.SALES:
            return _allow()
        return _deny(REASON_ADMIN_CREATE)

    resolved = _resolve_target(target)
    if resolved is None:
        return _deny(REASON_TARGET_MISSING)

    if action is Action.DELETE and actor.user_id is not None and actor.user_id == resolved.id:
        return _deny(REASON_SELF)

    if actor_role is Role.SUPER_ADMIN and resolved.role is Role.SUPER_ADMIN:
        return _deny(REASON_SUPER_ADMIN_PEER)

    if actor_role is Role.ADMIN and resolved.role in (Role.ADMIN, Role.SUPER_ADMIN):
        return _deny(REASON_ADMIN_SCOPE)

    if not actor_role.outranks(resolved.role):
        return _deny(REASON_LOWER_ONLY)

    return _allow()


def viewable_roles(actor_role: Role | str | None) -> list[Role]:
    """Roles whose users ``actor_role`` may list or view."""
    role = Role.parse(actor_role) if actor_role is not None else None
    if role is None:
        return []
    if role is Role.SUPER_ADMIN:
        return list(Role)
    return [candidate for candidate in Role if role.outranks(candidate)]


def can_view(actor_role: Role | str | None, target_role: Role | str | None) -> bool:
    target = Role.parse(target_role) if target_role is not None else None
    return target is not None and target in viewable_roles(actor_role)
