"""
Resolução CNPJ -> tenant e sincronização de lançamentos órfãos.

Nenhum método faz commit: as escritas participam da transação de quem chama
(ver ``app.db.base.atomic``).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, DataIntegrityError, NotFoundError
from app.core.logging import get_logger
from app.db.models.lancamento import Lancamento
from app.db.models.tenant import Tenant
from app.db.models.tenant_cnpj import TenantCNPJ

logger = get_logger(__name__)

DEFAULT_CNPJ_DESCRICAO = "Adicional"


@dataclass(slots=True)
class CnpjBinding:
    """Resultado de ``bind_cnpj``."""

    tenant_cnpj: TenantCNPJ
    created: bool
    synced: int


class CnpjResolverService:
    """Mapeia CNPJs para tenants e reatribui lançamentos sem tenant."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _owners(self, cnpj: str) -> set[uuid.UUID]:
        primary = await self.db.execute(select(Tenant.id).where(Tenant.cnpj == cnpj))
        secondary = await self.db.execute(
            select(TenantCNPJ.tenant_id).where(TenantCNPJ.cnpj == cnpj)
        )
        return set(primary.scalars().all()) | set(secondary.scalars().all())

    async def resolve(self, cnpj: str) -> Optional[uuid.UUID]:
        """
        Retorna o tenant dono do CNPJ (principal ou adicional), ou None.

        Raises:
            DataIntegrityError: CNPJ vinculado a mais de um tenant
        """
        owners = await self._owners(cnpj)
        if len(owners) > 1:
            logger.error(
                "cnpj_bound_to_multiple_tenants",
                cnpj=cnpj,
                tenant_ids=sorted(str(owner) for owner in owners),
            )
            raise DataIntegrityError(
                f"CNPJ {cnpj} está vinculado a mais de um tenant"
            )
        return next(iter(owners), None)

    async def ensure_cnpj_available(
        self,
        cnpj: str,
        *,
        tenant_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        Garante que ``cnpj`` não pertence a outro tenant.

        Usado na criação de tenant e na troca de CNPJ principal. Um CNPJ
        nunca existe em duas linhas, então qualquer CNPJ adicional com o
        mesmo valor gera conflito, mesmo que seja do próprio tenant.
        """
        primary = await self.db.execute(
            select(Tenant.id).where(Tenant.cnpj == cnpj)
        )
        primary_owner = primary.scalar_one_or_none()
        if primary_owner is not None and primary_owner != tenant_id:
            raise ConflictError(f"CNPJ {cnpj} já está cadastrado")

        secondary = await self.db.execute(
            select(TenantCNPJ.id).where(TenantCNPJ.cnpj == cnpj)
        )
        if secondary.first() is not None:
            raise ConflictError(f"CNPJ {cnpj} já está vinculado a um tenant")

    async def bind_cnpj(
        self,
        tenant_id: uuid.UUID,
        cnpj: str,
        descricao: Optional[str] = None,
    ) -> CnpjBinding:
        """
        Vincula um CNPJ adicional ao tenant e sincroniza seus órfãos.

        Repetir o vínculo para o mesmo tenant devolve a linha existente.

        Raises:
            NotFoundError: tenant inexistente
            ConflictError: CNPJ já pertence a outro tenant ou é CNPJ principal
        """
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("tenant", tenant_id, "Tenant não encontrado")

        existing = await self.db.execute(
            select(TenantCNPJ).where(TenantCNPJ.cnpj == cnpj)
        )
        tenant_cnpj = existing.scalar_one_or_none()
        if tenant_cnpj is not None and tenant_cnpj.tenant_id != tenant_id:
            raise ConflictError(f"CNPJ {cnpj} já está vinculado a outro tenant")

        created = False
        if tenant_cnpj is None:
            primary = await self.db.execute(
                select(Tenant.id).where(Tenant.cnpj == cnpj)
            )
            primary_owner = primary.scalar_one_or_none()
            if primary_owner is not None:
                if primary_owner == tenant_id:
                    raise ConflictError(f"CNPJ {cnpj} já é o CNPJ principal deste tenant")
                raise ConflictError(f"CNPJ {cnpj} já está vinculado a outro tenant")

            tenant_cnpj = TenantCNPJ(
                cnpj=cnpj,
                descricao=descricao or DEFAULT_CNPJ_DESCRICAO,
                tenant_id=tenant_id,
            )
            self.db.add(tenant_cnpj)
            try:
                await self.db.flush()
            except IntegrityError as exc:
                raise ConflictError(
                    f"CNPJ {cnpj} já está vinculado a um tenant"
                ) from exc
            created = True
            logger.info("tenant_cnpj_bound", tenant_id=str(tenant_id), cnpj=cnpj)

        synced = await self.sync_orphans(tenant_id, cnpj)
        return CnpjBinding(tenant_cnpj=tenant_cnpj, created=created, synced=synced)

    async def sync_orphans(self, tenant_id: uuid.UUID, cnpj: str) -> int:
        """
        Atribui ao tenant os lançamentos do CNPJ que ainda não têm tenant.

        Lançamentos já vinculados (a qualquer tenant) nunca são alterados, o
        que torna a operação idempotente.
        """
        result = await self.db.execute(
            update(Lancamento)
            .where(Lancamento.cnpj == cnpj, Lancamento.tenant_id.is_(None))
            .values(tenant_id=tenant_id)
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount or 0
        if count:
            logger.info(
                "lancamentos_orphans_synced",
                tenant_id=str(tenant_id),
                cnpj=cnpj,
                count=count,
            )
        return count

    async def owned_cnpjs(self, tenant_id: uuid.UUID) -> list[str]:
        """CNPJ principal seguido dos adicionais."""
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("tenant", tenant_id, "Tenant não encontrado")

        result = await self.db.execute(
            select(TenantCNPJ.cnpj)
            .where(TenantCNPJ.tenant_id == tenant_id)
            .order_by(TenantCNPJ.created_at)
        )
        owned = [tenant.cnpj]
        for cnpj in result.scalars().all():
            if cnpj not in owned:
                owned.append(cnpj)
        return owned

    async def sync_all(self, tenant_id: uuid.UUID) -> int:
        """Reexecuta ``sync_orphans`` para todos os CNPJs do tenant."""
        total = 0
        for cnpj in await self.owned_cnpjs(tenant_id):
            total += await self.sync_orphans(tenant_id, cnpj)
        return total

