"""Testes do motor de políticas de usuários e tenants (funções puras)."""

from __future__ import annotations

import uuid

import pytest

from app.core.errors import DeniedError
from app.core.roles import PLATFORM_ROLES, Actor, UserFacts, UserRole, parse_role, tenant_required
from app.services.user_policy_service import (
    can_access_tenant,
    can_create_user,
    can_delete_user,
    can_list_users,
    can_manage_tenants,
    can_update_user,
    can_view_tenant,
    can_view_user,
)

TENANT_A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
TENANT_B = uuid.UUID("00000000-0000-0000-0000-00000000000b")


def _actor(role: UserRole, tenant_id=None, actor_id=None) -> Actor:
    return Actor(id=actor_id or uuid.uuid4(), role=role, tenant_id=tenant_id)


def _target(role: UserRole, tenant_id=None, target_id=None) -> UserFacts:
    return UserFacts(id=target_id or uuid.uuid4(), role=role, tenant_id=tenant_id)


SUPER = _actor(UserRole.SUPER_ADMIN)
SECRETARIO_A = _actor(UserRole.SECRETARIO, TENANT_A)


class TestCanCreateUser:
    @pytest.mark.parametrize(
        "role", [UserRole.SUPER_ADMIN, UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN]
    )
    def test_super_admin_creates_platform_roles_without_tenant(self, role):
        decision = can_create_user(SUPER, role, None)
        assert decision.allowed

    def test_super_admin_creates_platform_role_with_tenant_is_denied(self):
        decision = can_create_user(SUPER, UserRole.SUPORTE_ADMIN, TENANT_A)
        assert not decision.allowed
        assert decision.rule == "create.super_admin.platform_role_with_tenant"

    def test_super_admin_creates_secretario_in_any_tenant(self):
        assert can_create_user(SUPER, UserRole.SECRETARIO, TENANT_B).allowed

    def test_super_admin_creates_secretario_requires_tenant(self):
        decision = can_create_user(SUPER, UserRole.SECRETARIO, None)
        assert decision.rule == "create.super_admin.tenant_required"

    @pytest.mark.parametrize("role", [UserRole.FINANCEIRO, UserRole.VISUALIZADOR])
    def test_super_admin_cannot_create_tenant_staff(self, role):
        decision = can_create_user(SUPER, role, TENANT_A)
        assert not decision.allowed
        assert decision.rule == "create.super_admin.role_not_allowed"
        assert decision.reason == f"SUPER_ADMIN não pode criar {role.value}"

    @pytest.mark.parametrize("role", [UserRole.FINANCEIRO, UserRole.VISUALIZADOR])
    def test_secretario_creates_staff_in_own_tenant(self, role):
        assert can_create_user(SECRETARIO_A, role, TENANT_A).allowed

    def test_secretario_cannot_create_in_other_tenant(self):
        decision = can_create_user(SECRETARIO_A, UserRole.FINANCEIRO, TENANT_B)
        assert decision.rule == "create.secretario.other_tenant"

    @pytest.mark.parametrize(
        "role",
        [UserRole.SUPER_ADMIN, UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN, UserRole.SECRETARIO],
    )
    def test_secretario_cannot_create_privileged_roles(self, role):
        decision = can_create_user(SECRETARIO_A, role, TENANT_A)
        assert not decision.allowed
        assert decision.rule == "create.secretario.role_not_allowed"

    @pytest.mark.parametrize(
        "actor_role",
        [UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN, UserRole.FINANCEIRO, UserRole.VISUALIZADOR],
    )
    def test_other_roles_never_create(self, actor_role):
        actor = _actor(actor_role, TENANT_A if actor_role not in PLATFORM_ROLES else None)
        for target_role in UserRole:
            decision = can_create_user(actor, target_role, TENANT_A)
            assert not decision.allowed
            assert decision.rule == f"create.{actor_role.value.lower()}.not_allowed"


class TestCanUpdateUser:
    def test_super_admin_updates_anyone(self):
        for role in UserRole:
            tenant = None if role in PLATFORM_ROLES else TENANT_A
            assert can_update_user(SUPER, _target(role, tenant)).allowed

    def test_super_admin_cannot_demote_self(self):
        target = _target(UserRole.SUPER_ADMIN, target_id=SUPER.id)
        decision = can_update_user(SUPER, target, UserRole.SUPORTE_ADMIN)
        assert decision.rule == "update.super_admin.self_demotion"
        assert decision.reason == "SUPER_ADMIN não pode remover seu próprio role"

    def test_super_admin_may_keep_own_role(self):
        target = _target(UserRole.SUPER_ADMIN, target_id=SUPER.id)
        assert can_update_user(SUPER, target, UserRole.SUPER_ADMIN).allowed

    def test_promotion_to_platform_role_clears_tenant(self):
        target = _target(UserRole.SECRETARIO, TENANT_A)
        decision = can_update_user(SUPER, target, UserRole.SUPORTE_ADMIN)
        assert decision.allowed
        assert decision.clears_tenant

    def test_tenant_role_change_does_not_clear_tenant(self):
        target = _target(UserRole.FINANCEIRO, TENANT_A)
        decision = can_update_user(SUPER, target, UserRole.VISUALIZADOR)
        assert decision.allowed
        assert not decision.clears_tenant

    def test_secretario_edits_staff_of_own_tenant(self):
        target = _target(UserRole.VISUALIZADOR, TENANT_A)
        assert can_update_user(SECRETARIO_A, target).allowed

    def test_secretario_cannot_edit_staff_of_other_tenant(self):
        target = _target(UserRole.VISUALIZADOR, TENANT_B)
        decision = can_update_user(SECRETARIO_A, target)
        assert decision.rule == "update.secretario.other_tenant"

    def test_secretario_cannot_change_roles(self):
        target = _target(UserRole.VISUALIZADOR, TENANT_A)
        decision = can_update_user(SECRETARIO_A, target, UserRole.FINANCEIRO)
        assert decision.rule == "update.secretario.role_change"

    def test_secretario_cannot_move_users_between_tenants(self):
        target = _target(UserRole.FINANCEIRO, TENANT_A)
        decision = can_update_user(SECRETARIO_A, target, changes_tenant=True)
        assert decision.rule == "update.secretario.tenant_change"

    def test_secretario_cannot_edit_other_secretario(self):
        target = _target(UserRole.SECRETARIO, TENANT_A)
        decision = can_update_user(SECRETARIO_A, target)
        assert decision.rule == "update.secretario.target_role_not_allowed"

    def test_financeiro_edits_only_self(self):
        actor = _actor(UserRole.FINANCEIRO, TENANT_A)
        itself = _target(UserRole.FINANCEIRO, TENANT_A, target_id=actor.id)
        other = _target(UserRole.FINANCEIRO, TENANT_A)

        assert can_update_user(actor, itself).allowed
        assert can_update_user(actor, other).rule == "update.financeiro.self_only"

    def test_visualizador_cannot_change_own_role(self):
        actor = _actor(UserRole.VISUALIZADOR, TENANT_A)
        itself = _target(UserRole.VISUALIZADOR, TENANT_A, target_id=actor.id)
        decision = can_update_user(actor, itself, UserRole.FINANCEIRO)
        assert decision.rule == "update.visualizador.role_change"

    @pytest.mark.parametrize("actor_role", [UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN])
    def test_read_only_platform_roles_cannot_update(self, actor_role):
        actor = _actor(actor_role)
        decision = can_update_user(actor, _target(UserRole.VISUALIZADOR, TENANT_A))
        assert decision.rule == f"update.{actor_role.value.lower()}.not_allowed"


class TestCanDeleteUser:
    @pytest.mark.parametrize(
        "target_role",
        [UserRole.SUPER_ADMIN, UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN, UserRole.SECRETARIO],
    )
    def test_protected_roles_are_never_deleted(self, target_role):
        tenant = None if target_role in PLATFORM_ROLES else TENANT_A
        for actor in (SUPER, SECRETARIO_A):
            decision = can_delete_user(actor, _target(target_role, tenant))
            assert decision.rule == "delete.protected_role"
            assert decision.reason == f"{target_role.value} não pode ser deletado"

    def test_nobody_deletes_self(self):
        actor = _actor(UserRole.FINANCEIRO, TENANT_A)
        decision = can_delete_user(actor, _target(UserRole.FINANCEIRO, TENANT_A, target_id=actor.id))
        assert decision.rule == "delete.self"

    @pytest.mark.parametrize("target_role", [UserRole.FINANCEIRO, UserRole.VISUALIZADOR])
    def test_super_admin_deletes_staff_anywhere(self, target_role):
        assert can_delete_user(SUPER, _target(target_role, TENANT_B)).allowed

    def test_secretario_deletes_staff_of_own_tenant_only(self):
        assert can_delete_user(SECRETARIO_A, _target(UserRole.VISUALIZADOR, TENANT_A)).allowed
        decision = can_delete_user(SECRETARIO_A, _target(UserRole.VISUALIZADOR, TENANT_B))
        assert decision.rule == "delete.secretario.other_tenant"

    @pytest.mark.parametrize(
        "actor_role", [UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN, UserRole.FINANCEIRO]
    )
    def test_other_roles_cannot_delete(self, actor_role):
        actor = _actor(actor_role, None if actor_role in PLATFORM_ROLES else TENANT_A)
        decision = can_delete_user(actor, _target(UserRole.VISUALIZADOR, TENANT_A))
        assert not decision.allowed


class TestReadAndTenantRules:
    def test_list_users_roles(self):
        allowed = {role for role in UserRole if can_list_users(_actor(role, TENANT_A)).allowed}
        assert allowed == {UserRole.SUPER_ADMIN, UserRole.SUPORTE_ADMIN, UserRole.SECRETARIO}

    def test_view_user_denied_only_for_financeiro_admin(self):
        denied = {role for role in UserRole if not can_view_user(_actor(role, TENANT_A)).allowed}
        assert denied == {UserRole.FINANCEIRO_ADMIN}

    def test_only_super_admin_manages_tenants(self):
        for role in UserRole:
            decision = can_manage_tenants(_actor(role))
            assert decision.allowed is (role is UserRole.SUPER_ADMIN)

    def test_secretario_views_only_own_tenant(self):
        assert can_view_tenant(SECRETARIO_A, TENANT_A).allowed
        assert can_view_tenant(SECRETARIO_A, TENANT_B).rule == "tenants.view.not_allowed"
        assert can_view_tenant(SUPER, TENANT_B).allowed

    def test_access_tenant(self):
        assert can_access_tenant(_actor(UserRole.SUPORTE_ADMIN), TENANT_B).allowed
        assert can_access_tenant(SECRETARIO_A, TENANT_A).allowed
        assert not can_access_tenant(SECRETARIO_A, TENANT_B).allowed
        assert not can_access_tenant(_actor(UserRole.VISUALIZADOR, None), None).allowed


def test_enforce_raises_denied_error_with_rule():
    decision = can_create_user(SUPER, UserRole.FINANCEIRO, TENANT_A)

    with pytest.raises(DeniedError) as exc_info:
        decision.enforce()

    assert exc_info.value.rule == "create.super_admin.role_not_allowed"
    assert exc_info.value.to_payload()["rule"] == "create.super_admin.role_not_allowed"
    assert exc_info.value.status_code == 403


def test_enforce_returns_decision_when_allowed():
    decision = can_create_user(SUPER, UserRole.SECRETARIO, TENANT_A)
    assert decision.enforce() is decision
    assert bool(decision)


def test_role_rank_orders_roles_but_roles_split_by_tenant_binding():
    ordered = sorted(UserRole, key=lambda role: role.rank, reverse=True)
    assert [role.rank for role in ordered] == [5, 4, 3, 2, 1, 0]
    assert ordered[0] is UserRole.SUPER_ADMIN
    assert ordered[-1] is UserRole.VISUALIZADOR

    assert tenant_required(UserRole.SECRETARIO)
    assert not tenant_required(UserRole.FINANCEIRO_ADMIN)
    assert parse_role(" secretario ") is UserRole.SECRETARIO
    with pytest.raises(ValueError):
        parse_role("ROOT")
