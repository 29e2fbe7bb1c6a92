"""
Endpoints de gerenciamento de usuários.

As regras de quem pode criar, editar ou remover quem ficam no motor de
políticas; aqui apenas se traduz HTTP para o serviço.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_current_actor
from app.core.roles import Actor
from app.schemas.users import UserCreate, UserListResponse, UserRead, UserUpdate
from app.services.user_service import UserLifecycleService, get_user_service


router = APIRouter(prefix="/users", tags=["Usuários"])


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Criar usuário",
)
async def create_user(
    payload: UserCreate,
    actor: Actor = Depends(get_current_actor),
    service: UserLifecycleService = Depends(get_user_service),
) -> UserRead:
    user = await service.create(actor.id, payload)
    return UserRead.model_validate(user)


@router.get(
    "",
    response_model=UserListResponse,
    summary="Listar usuários",
    description="""
    Retorna usuários visíveis ao ator, paginados. Roles de tenant só
    enxergam o próprio tenant; ``tenant_id`` é ignorado para eles.
    """,
)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ativo: Optional[bool] = Query(None, description="Filtrar por ativos/inativos"),
    search: Optional[str] = Query(None, description="Busca por nome/email"),
    tenant_id: Optional[uuid.UUID] = Query(None, description="Tenant (apenas plataforma)"),
    actor: Actor = Depends(get_current_actor),
    service: UserLifecycleService = Depends(get_user_service),
) -> UserListResponse:
    users, total = await service.list(
        actor.id,
        page=page,
        page_size=page_size,
        ativo=ativo,
        search=search,
        tenant_id=tenant_id,
    )
    return UserListResponse(
        total=total,
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
        items=[UserRead.model_validate(user) for user in users],
    )


@router.get("/{user_id}", response_model=UserRead, summary="Consultar usuário")
async def get_user(
    user_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: UserLifecycleService = Depends(get_user_service),
) -> UserRead:
    user = await service.get(actor.id, user_id)
    return UserRead.model_validate(user)


@router.patch("/{user_id}", response_model=UserRead, summary="Atualizar usuário")
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    actor: Actor = Depends(get_current_actor),
    service: UserLifecycleService = Depends(get_user_service),
) -> UserRead:
    user = await service.update(actor.id, user_id, payload)
    return UserRead.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remover usuário",
)
async def delete_user(
    user_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: UserLifecycleService = Depends(get_user_service),
) -> Response:
    await service.delete(actor.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
