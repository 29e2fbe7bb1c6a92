"""
Ciclo de vida de usuários.

Carrega ator e alvo, consulta o motor de políticas e só então persiste.
"Ator não encontrado", "alvo não encontrado" e "negado" são erros distintos.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ActorNotFoundError, ConflictError, InvalidError, NotFoundError
from app.core.logging import get_logger
from app.core.roles import PLATFORM_ROLES, Actor, UserFacts, UserRole, tenant_required
from app.core.security import get_password_hash
from app.core.tenant import scope_for
from app.db.base import atomic, get_db
from app.db.models.tenant import Tenant
from app.db.models.user import User
from app.services.user_policy_service import (
    can_create_user,
    can_delete_user,
    can_list_users,
    can_update_user,
    can_view_user,
)
from app.schemas.users import UserCreate, UserUpdate

logger = get_logger(__name__)

EMAIL_CONFLICT_MESSAGE = "Usuário com este email já existe"


async def load_actor(db: AsyncSession, actor_id: uuid.UUID) -> Actor:
    """
    Carrega o ator autenticado.

    Raises:
        ActorNotFoundError: usuário inexistente ou inativo
    """
    user = await db.get(User, actor_id)
    if user is None or not user.ativo:
        raise ActorNotFoundError(actor_id)
    return Actor.from_user(user)


class UserLifecycleService:
    """CRUD de usuários sujeito ao motor de políticas."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_target(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("target", user_id, "Usuário não encontrado")
        return user

    async def _ensure_tenant_exists(self, tenant_id: uuid.UUID) -> None:
        if await self.db.get(Tenant, tenant_id) is None:
            raise NotFoundError("tenant", tenant_id, "Tenant não encontrado")

    async def _ensure_email_available(self, email: str) -> None:
        result = await self.db.execute(select(User.id).where(User.email == email))
        if result.first() is not None:
            raise ConflictError(EMAIL_CONFLICT_MESSAGE)

    async def create(self, actor_id: uuid.UUID, payload: UserCreate) -> User:
        """
        Cria um usuário.

        Um SECRETARIO que omite ``tenant_id`` cria o usuário no próprio tenant.

        Raises:
            ActorNotFoundError, DeniedError, NotFoundError (tenant), ConflictError (email)
        """
        actor = await load_actor(self.db, actor_id)

        tenant_id = payload.tenant_id
        if tenant_id is None and actor.role is UserRole.SECRETARIO:
            tenant_id = actor.tenant_id

        can_create_user(actor, payload.role, tenant_id).enforce()

        if tenant_id is not None:
            await self._ensure_tenant_exists(tenant_id)

        email = payload.email.strip().lower()
        await self._ensure_email_available(email)

        user = User(
            email=email,
            nome=payload.nome.strip(),
            hashed_password=get_password_hash(payload.password),
            role=payload.role,
            tenant_id=tenant_id,
            ativo=True,
            updated_by=actor.id,
        )
        async with atomic(self.db, EMAIL_CONFLICT_MESSAGE):
            self.db.add(user)
        await self.db.refresh(user)

        logger.info(
            "user_created",
            user_id=str(user.id),
            role=user.role.value,
            tenant_id=str(tenant_id) if tenant_id else None,
            created_by=str(actor.id),
        )
        return user

    async def update(
        self,
        actor_id: uuid.UUID,
        user_id: uuid.UUID,
        payload: UserUpdate,
    ) -> User:
        """
        Atualiza nome, status, role ou tenant de um usuário.

        Promoção a role de plataforma anula o tenant na mesma escrita.
        Passar de role de plataforma para role de tenant exige ``tenant_id``.
        """
        actor = await load_actor(self.db, actor_id)
        target = await self._load_target(user_id)

        changes_tenant = (
            payload.tenant_id_provided and payload.tenant_id != target.tenant_id
        )
        decision = can_update_user(
            actor,
            UserFacts.from_user(target),
            payload.role,
            changes_tenant=changes_tenant,
        ).enforce()

        final_role = payload.role or target.role
        if decision.clears_tenant:
            if payload.tenant_id is not None:
                raise InvalidError(
                    f"{final_role.value} não pode ter um tenant associado"
                )
            final_tenant = None
        elif payload.tenant_id_provided:
            final_tenant = payload.tenant_id
        else:
            final_tenant = target.tenant_id

        if tenant_required(final_role) and final_tenant is None:
            raise InvalidError(
                f"{final_role.value} deve ter um tenant; informe tenant_id"
            )
        if final_role in PLATFORM_ROLES and final_tenant is not None:
            raise InvalidError(
                f"{final_role.value} não pode ter um tenant associado"
            )
        if final_tenant is not None and final_tenant != target.tenant_id:
            await self._ensure_tenant_exists(final_tenant)

        async with atomic(self.db, EMAIL_CONFLICT_MESSAGE):
            if payload.nome is not None:
                target.nome = payload.nome.strip()
            if payload.ativo is not None:
                target.ativo = payload.ativo
            target.role = final_role
            target.tenant_id = final_tenant
            target.updated_by = actor.id
        await self.db.refresh(target)

        logger.info(
            "user_updated",
            user_id=str(target.id),
            role=target.role.value,
            tenant_cleared=decision.clears_tenant,
            updated_by=str(actor.id),
        )
        return target

    async def delete(self, actor_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Remove um usuário FINANCEIRO/VISUALIZADOR."""
        actor = await load_actor(self.db, actor_id)
        target = await self._load_target(user_id)

        can_delete_user(actor, UserFacts.from_user(target)).enforce()

        async with atomic(self.db, "Usuário não pode ser removido"):
            await self.db.delete(target)

        logger.info(
            "user_deleted",
            user_id=str(user_id),
            deleted_by=str(actor.id),
        )

    async def get(self, actor_id: uuid.UUID, user_id: uuid.UUID) -> User:
        """Usuário fora do escopo do ator é tratado como inexistente."""
        actor = await load_actor(self.db, actor_id)
        can_view_user(actor).enforce()

        stmt = scope_for(actor).apply(select(User), User.tenant_id)
        result = await self.db.execute(stmt.where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("target", user_id, "Usuário não encontrado")
        return user

    async def list(
        self,
        actor_id: uuid.UUID,
        *,
        page: int = 1,
        page_size: int = 20,
        ativo: Optional[bool] = None,
        search: Optional[str] = None,
        tenant_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[User], int]:
        """
        Lista usuários visíveis ao ator, paginados.

        Returns:
            (usuários da página, total)
        """
        actor = await load_actor(self.db, actor_id)
        can_list_users(actor).enforce()

        scope = scope_for(actor)
        stmt = scope.apply(select(User), User.tenant_id)

        conditions = []
        requested_tenant = scope.effective_tenant(tenant_id)
        if requested_tenant is not None:
            conditions.append(User.tenant_id == requested_tenant)
        if ativo is not None:
            conditions.append(User.ativo.is_(ativo))
        if search:
            normalized = f"%{search.strip()}%"
            conditions.append(
                or_(User.nome.ilike(normalized), User.email.ilike(normalized))
            )
        stmt = stmt.where(*conditions)

        total_result = await self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        )
        total = int(total_result.scalar_one() or 0)

        result = await self.db.execute(
            stmt.order_by(User.created_at.desc(), User.email.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserLifecycleService:
    """Dependency provider."""
    return UserLifecycleService(db)
