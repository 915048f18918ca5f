from __future__ import annotations

from types import SimpleNamespace

import pytest

from catalog_api.security.permissions import (
    REASON_ADMIN_CREATE,
    REASON_ADMIN_SCOPE,
    REASON_ALLOWED,
    REASON_NO_CAPABILITY,
    REASON_SELF,
    REASON_SUPER_ADMIN_CREATE,
    REASON_SUPER_ADMIN_PEER,
    REASON_TARGET_MISSING,
    REASON_UNAUTHENTICATED,
    Actor,
    Role,
    Target,
    can_view,
    decide,
    viewable_roles,
)

ACTOR_ID = 1
TARGET_ID = 2

# (actor role, target role, action) -> expected reason; None means "no actor" / "no target"
EXPECTED = {}
for _target in ("sales", "admin", "super_admin", None):
    for _action in ("create", "update", "delete"):
        EXPECTED[(None, _target, _action)] = REASON_UNAUTHENTICATED
        EXPECTED[("sales", _target, _action)] = REASON_NO_CAPABILITY

EXPECTED.update(
    {
        ("admin", "sales", "create"): REASON_ALLOWED,
        ("admin", "admin", "create"): REASON_ADMIN_CREATE,
        ("admin", "super_admin", "create"): REASON_ADMIN_CREATE,
        ("admin", None, "create"): REASON_ADMIN_CREATE,
        ("super_admin", "sales", "create"): REASON_ALLOWED,
        ("super_admin", "admin", "create"): REASON_ALLOWED,
        ("super_admin", "super_admin", "create"): REASON_SUPER_ADMIN_CREATE,
        ("super_admin", None, "create"): REASON_ALLOWED,
    }
)
for _action in ("update", "delete"):
    EXPECTED.update(
        {
            ("admin", "sales", _action): REASON_ALLOWED,
            ("admin", "admin", _action): REASON_ADMIN_SCOPE,
            ("admin", "super_admin", _action): REASON_ADMIN_SCOPE,
            ("admin", None, _action): REASON_TARGET_MISSING,
            ("super_admin", "sales", _action): REASON_ALLOWED,
            ("super_admin", "admin", _action): REASON_ALLOWED,
            ("super_admin", "super_admin", _action): REASON_SUPER_ADMIN_PEER,
            ("super_admin", None, _action): REASON_TARGET_MISSING,
        }
    )


def _actor(role: str | None) -> Actor | None:
    if role is None:
        return None
    return Actor(user_id=ACTOR_ID, role=Role(role))


def _target(role: str | None, action: str):
    if action == "create":
        return role
    if role is None:
        return None
    return Target(id=TARGET_ID, role=Role(role))


def test_rule_table_covers_every_combination():
    assert len(EXPECTED) == 4 * 4 * 3


@pytest.mark.parametrize(("actor_role", "target_role", "action"), sorted(EXPECTED, key=str))
def test_decide_matches_rule_table(actor_role, target_role, action):
    decision = decide(_actor(actor_role), _target(target_role, action), action)

    expected_reason = EXPECTED[(actor_role, target_role, action)]
    assert decision.reason == expected_reason
    assert decision.allowed is (expected_reason == REASON_ALLOWED)


def test_admin_deleting_super_admin_reports_admin_scope_rule():
    decision = decide(Actor(1, Role.ADMIN), Target(2, Role.SUPER_ADMIN), "delete")

    assert not decision.allowed
    assert decision.reason == "admin may only act on sales"


@pytest.mark.parametrize("role", [Role.ADMIN, Role.SUPER_ADMIN])
def test_delete_self_is_denied_before_role_rules(role):
    decision = decide(Actor(7, role), Target(7, role), "delete")

    assert decision.reason == REASON_SELF


def test_super_admin_updating_self_hits_peer_rule():
    decision = decide(Actor(7, Role.SUPER_ADMIN), Target(7, Role.SUPER_ADMIN), "update")

    assert decision.reason == REASON_SUPER_ADMIN_PEER


def test_actor_without_role_is_unauthenticated():
    assert decide(Actor(1, None), "sales", "create").reason == REASON_UNAUTHENTICATED


def test_target_may_be_any_object_with_id_and_role():
    row = SimpleNamespace(id=9, role="sales")

    assert decide(Actor(1, Role.ADMIN), row, "update").allowed


def test_target_with_unknown_role_is_incomplete():
    row = SimpleNamespace(id=9, role=None)

    assert decide(Actor(1, Role.SUPER_ADMIN), row, "delete").reason == REASON_TARGET_MISSING


def test_role_strings_are_accepted_for_action_and_proposed_role():
    assert decide(Actor(1, Role.SUPER_ADMIN), "admin", "create").allowed
    assert not decide(Actor(1, Role.ADMIN), "ADMIN", "create").allowed


def test_unknown_action_is_rejected():
    with pytest.raises(ValueError):
        decide(Actor(1, Role.SUPER_ADMIN), "sales", "archive")


def test_role_order():
    assert Role.SUPER_ADMIN.outranks(Role.ADMIN)
    assert Role.ADMIN.outranks(Role.SALES)
    assert not Role.SALES.outranks(Role.SALES)
    assert [role.level for role in Role] == [1, 2, 3]


def test_viewable_roles():
    assert viewable_roles("super_admin") == [Role.SALES, Role.ADMIN, Role.SUPER_ADMIN]
    assert viewable_roles("admin") == [Role.SALES]
    assert viewable_roles("sales") == []
    assert viewable_roles(None) == []


def test_can_view():
    assert can_view("super_admin", "super_admin")
    assert can_view("admin", "sales")
    assert not can_view("admin", "admin")
    assert not can_view("sales", "sales")
