"""Testes da resolução CNPJ -> tenant e da sincronização de órfãos."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from app.core.errors import ConflictError, DataIntegrityError, NotFoundError
from app.db.models import TenantCNPJ
from app.services.cnpj_resolver_service import CnpjResolverService
from app.tests.factories import (
    make_lancamento,
    make_tenant,
    make_tenant_cnpj,
    tenant_of,
)

CNPJ_A = "11.111.111/0001-11"
CNPJ_B = "22.222.222/0001-22"
CNPJ_ESTADUAL = "33.333.333/0001-33"


@pytest.mark.asyncio
async def test_resolve_returns_none_for_unknown_cnpj(db_session):
    resolver = CnpjResolverService(db_session)
    assert await resolver.resolve("00.000.000/0001-00") is None


@pytest.mark.asyncio
async def test_resolve_matches_primary_and_additional_cnpj(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    await make_tenant_cnpj(db_session, tenant, CNPJ_ESTADUAL, "Estadual")
    resolver = CnpjResolverService(db_session)

    assert await resolver.resolve(CNPJ_A) == tenant.id
    assert await resolver.resolve(CNPJ_ESTADUAL) == tenant.id


@pytest.mark.asyncio
async def test_resolve_raises_when_cnpj_points_to_two_tenants(db_session):
    tenant_a = await make_tenant(db_session, cnpj=CNPJ_A)
    tenant_b = await make_tenant(db_session, cnpj=CNPJ_B, nome="Outro")
    # Estado inconsistente: CNPJ principal de A também vinculado a B
    await make_tenant_cnpj(db_session, tenant_b, CNPJ_A)
    assert tenant_a.id != tenant_b.id

    with pytest.raises(DataIntegrityError):
        await CnpjResolverService(db_session).resolve(CNPJ_A)


@pytest.mark.asyncio
async def test_sync_orphans_assigns_only_rows_without_tenant(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    other = await make_tenant(db_session, cnpj=CNPJ_B, nome="Outro")
    orphan = await make_lancamento(db_session, cnpj=CNPJ_A)
    already_bound = await make_lancamento(db_session, cnpj=CNPJ_A, tenant=other)
    unrelated = await make_lancamento(db_session, cnpj="44.444.444/0001-44")

    resolver = CnpjResolverService(db_session)
    synced = await resolver.sync_orphans(tenant.id, CNPJ_A)
    await db_session.commit()

    assert synced == 1
    assert await tenant_of(db_session, orphan) == tenant.id
    assert await tenant_of(db_session, already_bound) == other.id
    assert await tenant_of(db_session, unrelated) is None


@pytest.mark.asyncio
async def test_sync_orphans_is_idempotent(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    await make_lancamento(db_session, cnpj=CNPJ_A)
    await make_lancamento(db_session, cnpj=CNPJ_A, mes=2)
    resolver = CnpjResolverService(db_session)

    assert await resolver.sync_orphans(tenant.id, CNPJ_A) == 2
    await db_session.commit()
    assert await resolver.sync_orphans(tenant.id, CNPJ_A) == 0


@pytest.mark.asyncio
async def test_bind_cnpj_creates_row_and_syncs_orphans(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    orphan = await make_lancamento(db_session, cnpj=CNPJ_ESTADUAL)
    resolver = CnpjResolverService(db_session)

    binding = await resolver.bind_cnpj(tenant.id, CNPJ_ESTADUAL, "Estadual")
    await db_session.commit()

    assert binding.created
    assert binding.synced == 1
    assert binding.tenant_cnpj.descricao == "Estadual"
    assert await tenant_of(db_session, orphan) == tenant.id


@pytest.mark.asyncio
async def test_bind_cnpj_defaults_descricao(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    binding = await CnpjResolverService(db_session).bind_cnpj(tenant.id, CNPJ_ESTADUAL)
    assert binding.tenant_cnpj.descricao == "Adicional"


@pytest.mark.asyncio
async def test_bind_cnpj_is_idempotent_for_same_tenant(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    existing = await make_tenant_cnpj(db_session, tenant, CNPJ_ESTADUAL)
    await make_lancamento(db_session, cnpj=CNPJ_ESTADUAL)

    binding = await CnpjResolverService(db_session).bind_cnpj(tenant.id, CNPJ_ESTADUAL)

    assert not binding.created
    assert binding.tenant_cnpj.id == existing.id
    assert binding.synced == 1


@pytest.mark.asyncio
async def test_bind_cnpj_of_other_tenant_conflicts_without_mutation(db_session):
    tenant_a = await make_tenant(db_session, cnpj=CNPJ_A)
    tenant_b = await make_tenant(db_session, cnpj=CNPJ_B, nome="Outro")
    await make_tenant_cnpj(db_session, tenant_b, CNPJ_ESTADUAL)
    orphan = await make_lancamento(db_session, cnpj=CNPJ_ESTADUAL)

    with pytest.raises(ConflictError):
        await CnpjResolverService(db_session).bind_cnpj(tenant_a.id, CNPJ_ESTADUAL)
    await db_session.rollback()

    count = await db_session.execute(
        select(func.count()).select_from(TenantCNPJ).where(TenantCNPJ.cnpj == CNPJ_ESTADUAL)
    )
    assert count.scalar_one() == 1
    assert await tenant_of(db_session, orphan) is None


@pytest.mark.asyncio
async def test_bind_cnpj_rejects_primary_cnpj_of_any_tenant(db_session):
    tenant_a = await make_tenant(db_session, cnpj=CNPJ_A)
    await make_tenant(db_session, cnpj=CNPJ_B, nome="Outro")
    resolver = CnpjResolverService(db_session)

    with pytest.raises(ConflictError):
        await resolver.bind_cnpj(tenant_a.id, CNPJ_B)
    with pytest.raises(ConflictError):
        await resolver.bind_cnpj(tenant_a.id, CNPJ_A)


@pytest.mark.asyncio
async def test_bind_cnpj_unknown_tenant(db_session):
    with pytest.raises(NotFoundError) as exc_info:
        await CnpjResolverService(db_session).bind_cnpj(uuid.uuid4(), CNPJ_A)
    assert exc_info.value.subject == "tenant"


@pytest.mark.asyncio
async def test_ensure_cnpj_available(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    await make_tenant_cnpj(db_session, tenant, CNPJ_ESTADUAL)
    resolver = CnpjResolverService(db_session)

    await resolver.ensure_cnpj_available(CNPJ_B)
    await resolver.ensure_cnpj_available(CNPJ_A, tenant_id=tenant.id)
    with pytest.raises(ConflictError):
        await resolver.ensure_cnpj_available(CNPJ_A)
    with pytest.raises(ConflictError):
        await resolver.ensure_cnpj_available(CNPJ_ESTADUAL, tenant_id=tenant.id)


@pytest.mark.asyncio
async def test_sync_all_covers_primary_and_additional_cnpjs(db_session):
    tenant = await make_tenant(db_session, cnpj=CNPJ_A)
    await make_tenant_cnpj(db_session, tenant, CNPJ_ESTADUAL)
    await make_lancamento(db_session, cnpj=CNPJ_A)
    await make_lancamento(db_session, cnpj=CNPJ_ESTADUAL)
    await make_lancamento(db_session, cnpj=CNPJ_B)
    resolver = CnpjResolverService(db_session)

    assert await resolver.owned_cnpjs(tenant.id) == [CNPJ_A, CNPJ_ESTADUAL]
    assert await resolver.sync_all(tenant.id) == 2
    await db_session.commit()
    assert await resolver.sync_all(tenant.id) == 0
