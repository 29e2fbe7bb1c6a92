"""
Ciclo de vida de tenants (municípios).

Toda alteração que afeta CNPJs termina com a sincronização dos lançamentos
órfãos de todos os CNPJs do tenant.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, InvalidError, NotFoundError
from app.core.logging import get_logger
from app.core.roles import UserRole
from app.core.security import get_password_hash
from app.db.base import atomic, get_db
from app.db.models.lancamento import Lancamento
from app.db.models.tenant import Tenant
from app.db.models.tenant_cnpj import TenantCNPJ
from app.db.models.user import User
from app.schemas.tenants import TenantCreate, TenantUpdate
from app.services.cnpj_resolver_service import CnpjBinding, CnpjResolverService
from app.services.user_policy_service import (
    can_access_tenant,
    can_manage_tenants,
    can_view_tenant,
)
from app.services.user_service import load_actor

logger = get_logger(__name__)

ESTADUAL_DESCRICAO = "Estadual"
CNPJ_CONFLICT_MESSAGE = "CNPJ já existe no sistema"


@dataclass(slots=True)
class TenantCreation:
    """Tenant criado, secretário opcional e lançamentos vinculados."""

    tenant: Tenant
    secretario: Optional[User]
    synced: int


class TenantLifecycleService:
    """Criação, edição e remoção de tenants, sempre por SUPER_ADMIN."""

    def __init__(self, db: AsyncSession, resolver: Optional[CnpjResolverService] = None):
        self.db = db
        self.resolver = resolver or CnpjResolverService(db)

    async def _load_tenant(self, tenant_id: uuid.UUID) -> Tenant:
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError(
                "tenant", tenant_id, f"Tenant com ID {tenant_id} não encontrado"
            )
        return tenant

    async def create(self, actor_id: uuid.UUID, payload: TenantCreate) -> TenantCreation:
        """
        Cria tenant, CNPJ estadual e secretário numa única transação.

        Qualquer falha desfaz tudo: não existe tenant criado sem seu
        secretário ou sem a sincronização dos órfãos.

        Raises:
            DeniedError: ator não é SUPER_ADMIN
            ConflictError: CNPJ ou email do secretário já cadastrado
        """
        actor = await load_actor(self.db, actor_id)
        can_manage_tenants(actor).enforce()

        if payload.cnpj_estadual and payload.cnpj_estadual == payload.cnpj:
            raise InvalidError("CNPJ Estadual deve ser diferente do CNPJ principal")

        secretario: Optional[User] = None
        async with atomic(self.db, CNPJ_CONFLICT_MESSAGE):
            await self.resolver.ensure_cnpj_available(payload.cnpj)
            if payload.cnpj_estadual:
                await self.resolver.ensure_cnpj_available(payload.cnpj_estadual)

            if payload.secretario is not None:
                existing = await self.db.execute(
                    select(User.id).where(User.email == payload.secretario.email)
                )
                if existing.first() is not None:
                    raise ConflictError("Email do secretário já existe no sistema")

            tenant = Tenant(
                nome=payload.nome.strip(),
                cnpj=payload.cnpj,
                email_contato=payload.email_contato,
                cidade=payload.cidade,
                estado=payload.estado,
                ativo=True,
                created_by=actor.id,
                updated_by=actor.id,
            )
            self.db.add(tenant)
            await self.db.flush()

            binding_synced = 0
            if payload.cnpj_estadual:
                binding = await self.resolver.bind_cnpj(
                    tenant.id, payload.cnpj_estadual, ESTADUAL_DESCRICAO
                )
                binding_synced = binding.synced

            if payload.secretario is not None:
                secretario = User(
                    email=payload.secretario.email,
                    nome=payload.secretario.nome.strip(),
                    hashed_password=get_password_hash(payload.secretario.senha),
                    role=UserRole.SECRETARIO,
                    tenant_id=tenant.id,
                    ativo=True,
                    updated_by=actor.id,
                )
                self.db.add(secretario)
                await self.db.flush()

            synced = binding_synced + await self.resolver.sync_all(tenant.id)

        await self.db.refresh(tenant)
        if secretario is not None:
            await self.db.refresh(secretario)

        logger.info(
            "tenant_created",
            tenant_id=str(tenant.id),
            cnpj=tenant.cnpj,
            secretario_id=str(secretario.id) if secretario else None,
            synced=synced,
            created_by=str(actor.id),
        )
        return TenantCreation(tenant=tenant, secretario=secretario, synced=synced)

    async def update(
        self,
        actor_id: uuid.UUID,
        tenant_id: uuid.UUID,
        payload: TenantUpdate,
    ) -> Tenant:
        """
        Atualiza dados do tenant.

        A troca do CNPJ principal não desvincula lançamentos já atribuídos ao
        CNPJ antigo; apenas os órfãos do novo CNPJ passam para o tenant.
        """
        actor = await load_actor(self.db, actor_id)
        can_manage_tenants(actor).enforce()
        tenant = await self._load_tenant(tenant_id)

        async with atomic(self.db, CNPJ_CONFLICT_MESSAGE):
            if payload.cnpj is not None and payload.cnpj != tenant.cnpj:
                await self.resolver.ensure_cnpj_available(payload.cnpj, tenant_id=tenant.id)
                logger.info(
                    "tenant_cnpj_changed",
                    tenant_id=str(tenant.id),
                    old_cnpj=tenant.cnpj,
                    new_cnpj=payload.cnpj,
                )
                tenant.cnpj = payload.cnpj

            if payload.nome is not None:
                tenant.nome = payload.nome.strip()
            if payload.email_contato is not None:
                tenant.email_contato = payload.email_contato
            if payload.cidade is not None:
                tenant.cidade = payload.cidade
            if payload.estado is not None:
                tenant.estado = payload.estado
            if payload.ativo is not None:
                tenant.ativo = payload.ativo
            tenant.updated_by = actor.id
            await self.db.flush()

            binding_synced = 0
            if payload.cnpj_estadual:
                binding = await self.resolver.bind_cnpj(
                    tenant.id, payload.cnpj_estadual, ESTADUAL_DESCRICAO
                )
                binding_synced = binding.synced

            synced = binding_synced + await self.resolver.sync_all(tenant.id)

        await self.db.refresh(tenant)
        logger.info(
            "tenant_updated",
            tenant_id=str(tenant.id),
            synced=synced,
            updated_by=str(actor.id),
        )
        return tenant

    async def delete(self, actor_id: uuid.UUID, tenant_id: uuid.UUID) -> None:
        """
        Remove o tenant, seus usuários e seus CNPJs adicionais.

        Recusado enquanto houver lançamentos vinculados: um lançamento nunca
        volta a ficar sem tenant. Nesse caso o tenant deve ser desativado.
        """
        actor = await load_actor(self.db, actor_id)
        can_manage_tenants(actor).enforce()
        tenant = await self._load_tenant(tenant_id)

        bound = await self.db.execute(
            select(func.count()).select_from(Lancamento).where(Lancamento.tenant_id == tenant.id)
        )
        bound_count = int(bound.scalar_one() or 0)
        if bound_count:
            raise ConflictError(
                f"Tenant possui {bound_count} lançamento(s) vinculado(s); "
                "desative-o em vez de removê-lo"
            )

        async with atomic(self.db, "Tenant não pode ser removido"):
            removed_users = await self.db.execute(
                delete(User)
                .where(User.tenant_id == tenant.id)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(TenantCNPJ)
                .where(TenantCNPJ.tenant_id == tenant.id)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(Tenant)
                .where(Tenant.id == tenant.id)
                .execution_options(synchronize_session=False)
            )
        self.db.expunge(tenant)

        logger.warning(
            "tenant_deleted",
            tenant_id=str(tenant_id),
            users_removed=removed_users.rowcount or 0,
            deleted_by=str(actor.id),
        )

    async def add_cnpj(
        self,
        actor_id: uuid.UUID,
        tenant_id: uuid.UUID,
        cnpj: str,
        descricao: Optional[str] = None,
    ) -> CnpjBinding:
        """Vincula um CNPJ adicional e sincroniza seus órfãos."""
        actor = await load_actor(self.db, actor_id)
        can_manage_tenants(actor).enforce()
        await self._load_tenant(tenant_id)

        async with atomic(self.db, f"CNPJ {cnpj} já está vinculado a um tenant"):
            binding = await self.resolver.bind_cnpj(tenant_id, cnpj, descricao)

        await self.db.refresh(binding.tenant_cnpj)
        return binding

    async def sync_lancamentos(self, actor_id: uuid.UUID, tenant_id: uuid.UUID) -> dict:
        """Reparo manual: vincula órfãos de todos os CNPJs do tenant."""
        actor = await load_actor(self.db, actor_id)
        can_manage_tenants(actor).enforce()
        tenant = await self._load_tenant(tenant_id)

        async with atomic(self.db, "Falha ao sincronizar lançamentos"):
            synced = await self.resolver.sync_all(tenant.id)

        logger.info(
            "tenant_lancamentos_synced",
            tenant_id=str(tenant.id),
            synced=synced,
            requested_by=str(actor.id),
        )
        return {
            "synced": synced,
            "message": f"{synced} lançamento(s) sincronizado(s) com o tenant {tenant.nome}",
        }

    async def get(self, actor_id: uuid.UUID, tenant_id: uuid.UUID) -> Tenant:
        actor = await load_actor(self.db, actor_id)
        can_access_tenant(actor, tenant_id).enforce()
        can_view_tenant(actor, tenant_id).enforce()
        return await self._load_tenant(tenant_id)

    async def list(
        self,
        actor_id: uuid.UUID,
        *,
        ativo: Optional[bool] = None,
    ) -> list[Tenant]:
        actor = await load_actor(self.db, actor_id)
        can_manage_tenants(actor).enforce()

        stmt = select(Tenant).order_by(Tenant.created_at.desc(), Tenant.nome.asc())
        if ativo is not None:
            stmt = stmt.where(Tenant.ativo.is_(ativo))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


def get_tenant_service(db: AsyncSession = Depends(get_db)) -> TenantLifecycleService:
    """Dependency provider."""
    return TenantLifecycleService(db)
