"""Testes do escopo de tenant aplicado às consultas."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from app.core.roles import Actor, UserRole
from app.core.tenant import TenantScope, scope_for
from app.db.models import Lancamento, User
from app.tests.factories import make_lancamento, make_tenant

TENANT_A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
TENANT_B = uuid.UUID("00000000-0000-0000-0000-00000000000b")


def _compiled(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"literal_binds": False}))


@pytest.mark.parametrize(
    "role", [UserRole.SUPER_ADMIN, UserRole.SUPORTE_ADMIN, UserRole.FINANCEIRO_ADMIN]
)
def test_platform_roles_are_unrestricted(role):
    scope = scope_for(Actor(id=uuid.uuid4(), role=role))
    assert scope.unrestricted
    assert scope.allows(TENANT_A)
    assert scope.allows(None)

    stmt = scope.apply(select(Lancamento), Lancamento.tenant_id)
    assert "WHERE" not in _compiled(stmt)


@pytest.mark.parametrize(
    "role", [UserRole.SECRETARIO, UserRole.FINANCEIRO, UserRole.VISUALIZADOR]
)
def test_tenant_roles_are_restricted_to_own_tenant(role):
    scope = scope_for(Actor(id=uuid.uuid4(), role=role, tenant_id=TENANT_A))
    assert not scope.unrestricted
    assert scope.tenant_id == TENANT_A
    assert scope.allows(TENANT_A)
    assert not scope.allows(TENANT_B)
    assert not scope.allows(None)

    sql = _compiled(scope.apply(select(User), User.tenant_id))
    assert "users.tenant_id = " in sql


def test_requested_tenant_is_ignored_for_restricted_scope():
    restricted = TenantScope(unrestricted=False, tenant_id=TENANT_A)
    unrestricted = TenantScope(unrestricted=True)

    assert restricted.effective_tenant(TENANT_B) == TENANT_A
    assert restricted.effective_tenant(None) == TENANT_A
    assert unrestricted.effective_tenant(TENANT_B) == TENANT_B
    assert unrestricted.effective_tenant(None) is None


@pytest.mark.asyncio
async def test_tenant_role_without_tenant_sees_nothing(db_session):
    tenant = await make_tenant(db_session)
    await make_lancamento(db_session, tenant=tenant)
    await make_lancamento(db_session, cnpj="99.999.999/0001-99")

    scope = scope_for(Actor(id=uuid.uuid4(), role=UserRole.VISUALIZADOR, tenant_id=None))
    result = await db_session.execute(scope.apply(select(Lancamento), Lancamento.tenant_id))

    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_scope_excludes_orphans_and_other_tenants(db_session):
    tenant_a = await make_tenant(db_session, cnpj="11.111.111/0001-11", nome="Município A")
    tenant_b = await make_tenant(db_session, cnpj="22.222.222/0001-22", nome="Município B")
    own = await make_lancamento(db_session, cnpj=tenant_a.cnpj, tenant=tenant_a)
    await make_lancamento(db_session, cnpj=tenant_b.cnpj, tenant=tenant_b)
    await make_lancamento(db_session, cnpj="33.333.333/0001-33")

    scope = scope_for(Actor(id=uuid.uuid4(), role=UserRole.FINANCEIRO, tenant_id=tenant_a.id))
    result = await db_session.execute(scope.apply(select(Lancamento), Lancamento.tenant_id))

    assert [row.id for row in result.scalars().all()] == [own.id]
