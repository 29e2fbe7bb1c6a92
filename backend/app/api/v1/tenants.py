"""
Endpoints de Tenant (municípios).

Criação com secretário, CNPJs adicionais e sincronização de lançamentos.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_current_actor
from app.core.roles import Actor
from app.schemas.tenants import (
    SyncLancamentosResponse,
    TenantCnpjBindResponse,
    TenantCnpjCreate,
    TenantCnpjRead,
    TenantCreate,
    TenantCreateResponse,
    TenantRead,
    TenantUpdate,
)
from app.schemas.users import UserRead
from app.services.tenant_service import TenantLifecycleService, get_tenant_service


router = APIRouter(prefix="/tenants", tags=["Tenants"])


@router.post(
    "",
    response_model=TenantCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Criar tenant",
    description="""
    Cria o tenant e, opcionalmente, o CNPJ estadual e o secretário, numa
    única transação. Lançamentos órfãos dos CNPJs passam para o tenant.
    """,
)
async def create_tenant(
    payload: TenantCreate,
    actor: Actor = Depends(get_current_actor),
    service: TenantLifecycleService = Depends(get_tenant_service),
) -> TenantCreateResponse:
    created = await service.create(actor.id, payload)
    return TenantCreateResponse(
        tenant=TenantRead.model_validate(created.tenant),
        secretario=(
            UserRead.model_validate(created.secretario) if created.secretario else None
        ),
        synced=created.synced,
    )


@router.get("", response_model=List[TenantRead], summary="Listar tenants")
async def list_tenants(
    ativo: Optional[bool] = Query(None, description="Filtrar por ativos/inativos"),
    actor: Actor = Depends(get_current_actor),
    service: TenantLifecycleService = Depends(get_tenant_service),
) -> List[TenantRead]:
    tenants = await service.list(actor.id, ativo=ativo)
    return [TenantRead.model_validate(tenant) for tenant in tenants]


@router.get("/{tenant_id}", response_model=TenantRead, summary="Consultar tenant")
async def get_tenant(
    tenant_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: TenantLifecycleService = Depends(get_tenant_service),
) -> TenantRead:
    tenant = await service.get(actor.id, tenant_id)
    return TenantRead.model_validate(tenant)


@router.put("/{tenant_id}", response_model=TenantRead, summary="Atualizar tenant")
async def update_tenant(
    tenant_id: uuid.UUID,
    payload: TenantUpdate,
    actor: Actor = Depends(get_current_actor),
    service: TenantLifecycleService = Depends(get_tenant_service),
) -> TenantRead:
    tenant = await service.update(actor.id, tenant_id, payload)
    return TenantRead.model_validate(tenant)


@router.delete(
    "/{tenant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remover tenant",
)
async def delete_tenant(
    tenant_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: TenantLifecycleService = Depends(get_tenant_service),
) -> Response:
    await service.delete(actor.id, tenant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{tenant_id}/cnpjs",
    response_model=TenantCnpjBindResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Vincular CNPJ adicional",
)
async def add_tenant_cnpj(
    tenant_id: uuid.UUID,
    payload: TenantCnpjCreate,
    actor: Actor = Depends(get_current_actor),
    service: TenantLifecycleService = Depends(get_tenant_service),
) -> TenantCnpjBindResponse:
    binding = await service.add_cnpj(actor.id, tenant_id, payload.cnpj, payload.descricao)
    return TenantCnpjBindResponse(
        cnpj=TenantCnpjRead.model_validate(binding.tenant_cnpj),
        created=binding.created,
        synced=binding.synced,
    )


@router.post(
    "/{tenant_id}/sync-lancamentos",
    response_model=SyncLancamentosResponse,
    summary="Sincronizar lançamentos do tenant",
)
async def sync_tenant_lancamentos(
    tenant_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: TenantLifecycleService = Depends(get_tenant_service),
) -> SyncLancamentosResponse:
    result = await service.sync_lancamentos(actor.id, tenant_id)
    return SyncLancamentosResponse(**result)
