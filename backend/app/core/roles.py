"""
Modelo de papéis (roles) da plataforma.

Define a tabela de ranks (apenas informativa/ordenação), os conjuntos de
roles de plataforma e de tenant, e o ``Actor`` que representa o usuário
autenticado em cada requisição.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Optional


class UserRole(str, enum.Enum):
    """Roles disponíveis, do mais ao menos privilegiado."""

    SUPER_ADMIN = "SUPER_ADMIN"
    SUPORTE_ADMIN = "SUPORTE_ADMIN"
    FINANCEIRO_ADMIN = "FINANCEIRO_ADMIN"
    SECRETARIO = "SECRETARIO"
    FINANCEIRO = "FINANCEIRO"
    VISUALIZADOR = "VISUALIZADOR"

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]


# Rank é documental; as regras de autorização são por par de roles.
ROLE_RANK: dict[UserRole, int] = {
    UserRole.SUPER_ADMIN: 5,
    UserRole.SUPORTE_ADMIN: 4,
    UserRole.FINANCEIRO_ADMIN: 3,
    UserRole.SECRETARIO: 2,
    UserRole.FINANCEIRO: 1,
    UserRole.VISUALIZADOR: 0,
}

# Operam entre tenants e nunca possuem tenant_id.
PLATFORM_ROLES = frozenset(
    {UserRole.SUPER_ADMIN, UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN}
)

# Obrigatoriamente vinculados a um tenant.
TENANT_ROLES = frozenset(
    {UserRole.SECRETARIO, UserRole.FINANCEIRO, UserRole.VISUALIZADOR}
)

# Contas que nunca podem ser removidas pelo gerenciador de usuários.
PROTECTED_ROLES = PLATFORM_ROLES | {UserRole.SECRETARIO}

# Roles que um SECRETARIO administra dentro do próprio tenant.
SECRETARIO_MANAGED_ROLES = frozenset({UserRole.FINANCEIRO, UserRole.VISUALIZADOR})


def parse_role(value: object) -> UserRole:
    """Converte string/enum em ``UserRole`` (case-insensitive)."""
    if isinstance(value, UserRole):
        return value
    normalized = str(value or "").strip().upper()
    try:
        return UserRole(normalized)
    except ValueError as exc:
        raise ValueError(f"role inválido: {value}") from exc


def tenant_required(role: UserRole) -> bool:
    return role in TENANT_ROLES


@dataclass(frozen=True, slots=True)
class Actor:
    """Usuário autenticado que executa uma operação."""

    id: uuid.UUID
    role: UserRole
    tenant_id: Optional[uuid.UUID] = None

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=parse_role(user.role), tenant_id=user.tenant_id)

    @property
    def is_platform(self) -> bool:
        return self.role in PLATFORM_ROLES


@dataclass(frozen=True, slots=True)
class UserFacts:
    """Fatos do usuário alvo consumidos pelo motor de políticas."""

    id: uuid.UUID
    role: UserRole
    tenant_id: Optional[uuid.UUID] = None

    @classmethod
    def from_user(cls, user) -> "UserFacts":
        return cls(id=user.id, role=parse_role(user.role), tenant_id=user.tenant_id)
