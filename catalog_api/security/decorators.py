from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import g, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from catalog_api.errors import Forbidden, NotFound, Unauthorized
from catalog_api.security.permissions import Action, Actor, Role, decide


def current_actor() -> Actor:
    """Actor for the already-verified access token.

    The role is read from the stored user, not the token claims, so a
    demotion or deletion takes effect before the token expires.
    """
    from catalog_api.services.user_service import find_user_by_id

    try:
        user_id = int(get_jwt_identity())
    except (TypeError, ValueError):
        user_id = None
    user = find_user_by_id(user_id) if user_id is not None else None
    if user is None:
        raise Unauthorized("token user no longer exists")
    return Actor(user_id=user.id, role=Role.parse(user.role))


def require_roles(*required_roles: str) -> Callable[..., Any]:
    allowed = {Role(name) for name in required_roles}

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            verify_jwt_in_request()
            actor = current_actor()
            if actor.role not in allowed:
                raise Forbidden(
                    "insufficient role",
                    {"required_roles": sorted(role.value for role in allowed)},
                )
            g.actor = actor
            return func(*args, **kwargs)

        return wrapper

    return decorator


def require_user_permission(action: str) -> Callable[..., Any]:
    """Authorize a user-management route with the permission evaluator.

    ``create`` reads the proposed role from the JSON body (default ``sales``);
    ``update`` and ``delete`` load the target from the ``user_id`` route
    argument and expose it as ``g.target_user``. An update that changes the
    target's role must also pass the ``create`` rule for the new role.
    """
    action = Action(action)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            from catalog_api.services.user_service import find_user_by_id

            verify_jwt_in_request()
            actor = current_actor()
            payload = request.get_json(silent=True)
            payload = payload if isinstance(payload, dict) else {}

            if action is Action.CREATE:
                target = payload.get("role") or Role.SALES.value
            else:
                target = find_user_by_id(kwargs["user_id"])
                if target is None:
                    raise NotFound("user not found", {"id": kwargs["user_id"]})

            decision = decide(actor, target, action)
            requested_role = payload.get("role")
            if decision.allowed and action is Action.UPDATE and _changes_role(target, requested_role):
                decision = decide(actor, requested_role, Action.CREATE)
            if not decision.allowed:
                raise Forbidden(decision.reason)

            g.actor = actor
            g.target_user = target if action is not Action.CREATE else None
            return func(*args, **kwargs)

        return wrapper

    return decorator


def _changes_role(target: Any, requested_role: object) -> bool:
    return bool(requested_role) and Role.parse(requested_role) is not Role.parse(target.role)
