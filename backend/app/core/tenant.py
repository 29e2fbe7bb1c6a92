"""
Isolamento por tenant.

Deriva, a partir do ator autenticado, o predicado aplicado a toda consulta
sobre dados pertencentes a um tenant (lançamentos, usuários).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, false

from app.core.roles import Actor


@dataclass(frozen=True, slots=True)
class TenantScope:
    """
    Escopo de visibilidade do ator.

    Atributos:
        unrestricted: True para roles de plataforma (visão entre tenants)
        tenant_id: Tenant do ator quando o escopo é restrito
    """

    unrestricted: bool
    tenant_id: Optional[uuid.UUID] = None

    def apply(self, stmt: Select, column) -> Select:
        """
        Restringe ``stmt`` ao tenant do ator.

        Deve ser chamado antes de qualquer outro filtro. Um ator de tenant
        sem tenant associado não enxerga nada.
        """
        if self.unrestricted:
            return stmt
        if self.tenant_id is None:
            return stmt.where(false())
        return stmt.where(column == self.tenant_id)

    def effective_tenant(self, requested: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
        """Tenant solicitado pelo cliente só vale para escopos irrestritos."""
        if self.unrestricted:
            return requested
        return self.tenant_id

    def allows(self, tenant_id: Optional[uuid.UUID]) -> bool:
        if self.unrestricted:
            return True
        return self.tenant_id is not None and tenant_id == self.tenant_id


def scope_for(actor: Actor) -> TenantScope:
    """Escopo irrestrito para roles de plataforma, senão o tenant do ator."""
    if actor.is_platform:
        return TenantScope(unrestricted=True)
    return TenantScope(unrestricted=False, tenant_id=actor.tenant_id)
