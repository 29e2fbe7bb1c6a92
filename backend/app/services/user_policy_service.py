"""
Motor de políticas de usuários e tenants.

As regras são expressas como tabelas (role do ator x role do alvo ->
exigência de tenant) em vez de comparação de rank, porque a hierarquia
real não é monotônica: SUPER_ADMIN não cria FINANCEIRO diretamente,
apenas o SECRETARIO do tenant o faz.

Todas as funções são puras: recebem fatos do ator e do alvo e devolvem
um ``PolicyDecision``. Quem chama decide quando aplicar (``enforce``).
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Optional

from app.core.errors import DeniedError
from app.core.roles import (
    PLATFORM_ROLES,
    PROTECTED_ROLES,
    SECRETARIO_MANAGED_ROLES,
    Actor,
    UserFacts,
    UserRole,
)
from app.core.tenant import scope_for


class TenantRequirement(str, enum.Enum):
    """Como o tenant do alvo deve se relacionar com o ator."""

    NO_TENANT = "no_tenant"    # alvo sem tenant
    ANY_TENANT = "any_tenant"  # alvo com algum tenant
    OWN_TENANT = "own_tenant"  # alvo no tenant do ator
    ANYWHERE = "anywhere"      # sem restrição
    SELF = "self"              # apenas o próprio ator


CREATE_RULES: dict[UserRole, dict[UserRole, TenantRequirement]] = {
    UserRole.SUPER_ADMIN: {
        UserRole.SUPER_ADMIN: TenantRequirement.NO_TENANT,
        UserRole.SUPORTE_ADMIN: TenantRequirement.NO_TENANT,
        UserRole.FINANCEIRO_ADMIN: TenantRequirement.NO_TENANT,
        UserRole.SECRETARIO: TenantRequirement.ANY_TENANT,
    },
    UserRole.SECRETARIO: {
        role: TenantRequirement.OWN_TENANT for role in SECRETARIO_MANAGED_ROLES
    },
}

UPDATE_RULES: dict[UserRole, dict[UserRole, TenantRequirement]] = {
    UserRole.SUPER_ADMIN: {role: TenantRequirement.ANYWHERE for role in UserRole},
    UserRole.SECRETARIO: {
        role: TenantRequirement.OWN_TENANT for role in SECRETARIO_MANAGED_ROLES
    },
    UserRole.FINANCEIRO: {UserRole.FINANCEIRO: TenantRequirement.SELF},
    UserRole.VISUALIZADOR: {UserRole.VISUALIZADOR: TenantRequirement.SELF},
}

# Avaliada depois das regras de alvo protegido e de auto-exclusão.
DELETE_RULES: dict[UserRole, dict[UserRole, TenantRequirement]] = {
    UserRole.SUPER_ADMIN: {
        UserRole.FINANCEIRO: TenantRequirement.ANYWHERE,
        UserRole.VISUALIZADOR: TenantRequirement.ANYWHERE,
    },
    UserRole.SECRETARIO: {
        role: TenantRequirement.OWN_TENANT for role in SECRETARIO_MANAGED_ROLES
    },
}

USER_LIST_ROLES = frozenset(
    {UserRole.SUPER_ADMIN, UserRole.SUPORTE_ADMIN, UserRole.SECRETARIO}
)
USER_VIEW_ROLES = frozenset(set(UserRole) - {UserRole.FINANCEIRO_ADMIN})


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """Resultado de uma regra: permitido ou negado, sempre com a regra aplicada."""

    allowed: bool
    rule: str
    reason: str = ""
    clears_tenant: bool = False

    @classmethod
    def allow(cls, rule: str, *, clears_tenant: bool = False) -> "PolicyDecision":
        return cls(allowed=True, rule=rule, clears_tenant=clears_tenant)

    @classmethod
    def deny(cls, rule: str, reason: str) -> "PolicyDecision":
        return cls(allowed=False, rule=rule, reason=reason)

    def enforce(self) -> "PolicyDecision":
        """Levanta ``DeniedError`` quando a decisão é negativa."""
        if not self.allowed:
            raise DeniedError(self.reason, self.rule)
        return self

    def __bool__(self) -> bool:
        return self.allowed


def _same_tenant(actor: Actor, tenant_id: Optional[uuid.UUID]) -> bool:
    return actor.tenant_id is not None and tenant_id == actor.tenant_id


def _check_tenant_requirement(
    requirement: TenantRequirement,
    actor: Actor,
    target_role: UserRole,
    target_tenant_id: Optional[uuid.UUID],
    target_id: Optional[uuid.UUID],
    action: str,
) -> PolicyDecision:
    prefix = f"{action}.{actor.role.value.lower()}"
    if requirement is TenantRequirement.NO_TENANT and target_tenant_id is not None:
        return PolicyDecision.deny(
            f"{prefix}.platform_role_with_tenant",
            f"{target_role.value} não pode ter um tenant associado",
        )
    if requirement is TenantRequirement.ANY_TENANT and target_tenant_id is None:
        return PolicyDecision.deny(
            f"{prefix}.tenant_required",
            f"{target_role.value} deve ter um tenant",
        )
    if requirement is TenantRequirement.OWN_TENANT and not _same_tenant(actor, target_tenant_id):
        return PolicyDecision.deny(
            f"{prefix}.other_tenant",
            f"{actor.role.value} só pode {_VERBS[action]} usuários do próprio tenant",
        )
    if requirement is TenantRequirement.SELF and target_id != actor.id:
        return PolicyDecision.deny(
            f"{prefix}.self_only",
            "Você só pode atualizar sua própria conta",
        )
    return PolicyDecision.allow(f"{prefix}.{target_role.value.lower()}")


_VERBS = {"create": "criar", "update": "editar", "delete": "deletar"}


def can_create_user(
    actor: Actor,
    target_role: UserRole,
    target_tenant_id: Optional[uuid.UUID],
) -> PolicyDecision:
    """Decide se ``actor`` pode criar um usuário ``target_role`` em ``target_tenant_id``."""
    allowed_targets = CREATE_RULES.get(actor.role)
    if allowed_targets is None:
        return PolicyDecision.deny(
            f"create.{actor.role.value.lower()}.not_allowed",
            f"{actor.role.value} não pode criar usuários",
        )

    requirement = allowed_targets.get(target_role)
    if requirement is None:
        if actor.role is UserRole.SUPER_ADMIN:
            reason = f"SUPER_ADMIN não pode criar {target_role.value}"
        else:
            managed = " ou ".join(sorted(r.value for r in allowed_targets))
            reason = f"{actor.role.value} só pode criar {managed}, não {target_role.value}"
        return PolicyDecision.deny(
            f"create.{actor.role.value.lower()}.role_not_allowed", reason
        )

    return _check_tenant_requirement(
        requirement, actor, target_role, target_tenant_id, None, "create"
    )


def can_update_user(
    actor: Actor,
    target: UserFacts,
    new_role: Optional[UserRole] = None,
    *,
    changes_tenant: bool = False,
) -> PolicyDecision:
    """
    Decide se ``actor`` pode editar ``target``.

    ``new_role`` é o role solicitado (ou None). ``changes_tenant`` indica que a
    requisição move o alvo para outro tenant, o que só SUPER_ADMIN faz.
    Quando o novo role é de plataforma a decisão sai com ``clears_tenant``:
    o tenant do alvo deve ser anulado na mesma escrita.
    """
    prefix = f"update.{actor.role.value.lower()}"
    role_changes = new_role is not None and new_role != target.role
    clears_tenant = new_role is not None and new_role in PLATFORM_ROLES

    allowed_targets = UPDATE_RULES.get(actor.role)
    if allowed_targets is None:
        return PolicyDecision.deny(
            f"{prefix}.not_allowed",
            f"{actor.role.value} não tem permissão para editar usuários",
        )

    if actor.role is UserRole.SUPER_ADMIN:
        if actor.id == target.id and new_role is not None and new_role != UserRole.SUPER_ADMIN:
            return PolicyDecision.deny(
                f"{prefix}.self_demotion",
                "SUPER_ADMIN não pode remover seu próprio role",
            )
        return PolicyDecision.allow(f"{prefix}.any", clears_tenant=clears_tenant)

    requirement = allowed_targets.get(target.role)
    if requirement is None:
        if actor.role is UserRole.SECRETARIO:
            reason = "SECRETARIO só pode editar FINANCEIRO ou VISUALIZADOR"
        else:
            reason = "Você só pode atualizar sua própria conta"
        return PolicyDecision.deny(f"{prefix}.target_role_not_allowed", reason)

    decision = _check_tenant_requirement(
        requirement, actor, target.role, target.tenant_id, target.id, "update"
    )
    if not decision:
        return decision

    if role_changes:
        if requirement is TenantRequirement.SELF:
            reason = "Você não pode alterar seu próprio role"
        else:
            reason = f"{actor.role.value} não pode alterar role de usuários"
        return PolicyDecision.deny(f"{prefix}.role_change", reason)

    if changes_tenant:
        return PolicyDecision.deny(
            f"{prefix}.tenant_change",
            f"{actor.role.value} não pode mover usuários entre tenants",
        )

    return PolicyDecision.allow(decision.rule, clears_tenant=clears_tenant)


def can_delete_user(actor: Actor, target: UserFacts) -> PolicyDecision:
    """Decide se ``actor`` pode remover ``target``."""
    if target.role in PROTECTED_ROLES:
        return PolicyDecision.deny(
            "delete.protected_role",
            f"{target.role.value} não pode ser deletado",
        )

    if target.id == actor.id:
        return PolicyDecision.deny(
            "delete.self",
            "Você não pode deletar sua própria conta",
        )

    allowed_targets = DELETE_RULES.get(actor.role)
    if allowed_targets is None:
        return PolicyDecision.deny(
            f"delete.{actor.role.value.lower()}.not_allowed",
            f"{actor.role.value} não tem permissão para deletar usuários",
        )

    requirement = allowed_targets.get(target.role)
    if requirement is None:
        return PolicyDecision.deny(
            f"delete.{actor.role.value.lower()}.role_not_allowed",
            f"{actor.role.value} só pode deletar FINANCEIRO ou VISUALIZADOR",
        )

    return _check_tenant_requirement(
        requirement, actor, target.role, target.tenant_id, target.id, "delete"
    )


def can_list_users(actor: Actor) -> PolicyDecision:
    if actor.role in USER_LIST_ROLES:
        return PolicyDecision.allow(f"list_users.{actor.role.value.lower()}")
    return PolicyDecision.deny(
        f"list_users.{actor.role.value.lower()}.not_allowed",
        f"{actor.role.value} não pode listar usuários",
    )


def can_view_user(actor: Actor) -> PolicyDecision:
    if actor.role in USER_VIEW_ROLES:
        return PolicyDecision.allow(f"view_user.{actor.role.value.lower()}")
    return PolicyDecision.deny(
        f"view_user.{actor.role.value.lower()}.not_allowed",
        f"{actor.role.value} não pode consultar usuários",
    )


def can_manage_tenants(actor: Actor) -> PolicyDecision:
    """Criar, editar, remover tenants e gerenciar seus CNPJs: só SUPER_ADMIN."""
    if actor.role is UserRole.SUPER_ADMIN:
        return PolicyDecision.allow("tenants.manage.super_admin")
    return PolicyDecision.deny(
        "tenants.manage.not_allowed",
        f"Apenas SUPER_ADMIN pode gerenciar tenants (role atual: {actor.role.value})",
    )


def can_view_tenant(actor: Actor, tenant_id: uuid.UUID) -> PolicyDecision:
    if actor.role is UserRole.SUPER_ADMIN:
        return PolicyDecision.allow("tenants.view.super_admin")
    if actor.role is UserRole.SECRETARIO and _same_tenant(actor, tenant_id):
        return PolicyDecision.allow("tenants.view.own_tenant")
    return PolicyDecision.deny(
        "tenants.view.not_allowed",
        "Você não tem acesso a este tenant",
    )


def can_access_tenant(actor: Actor, tenant_id: Optional[uuid.UUID]) -> PolicyDecision:
    """Guarda de acesso a recursos identificados por tenant na rota/corpo."""
    scope = scope_for(actor)
    if scope.allows(tenant_id):
        return PolicyDecision.allow(
            "tenant_access.platform" if scope.unrestricted else "tenant_access.own_tenant"
        )
    return PolicyDecision.deny(
        "tenant_access.other_tenant",
        "Você não tem acesso a este tenant",
    )
