"""
Endpoints de consulta de lançamentos.

Todos os roles consultam; o isolamento por tenant é aplicado no serviço.
"""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_actor
from app.core.roles import Actor
from app.schemas.lancamentos import (
    LancamentoFilters,
    LancamentoRead,
    LancamentosStats,
    PaginatedLancamentos,
)
from app.services.lancamento_service import LancamentoService, get_lancamento_service


router = APIRouter(prefix="/lancamentos", tags=["Lançamentos"])


@router.get("/stats", response_model=LancamentosStats, summary="Estatísticas de lançamentos")
async def lancamentos_stats(
    filters: Annotated[LancamentoFilters, Query()],
    actor: Actor = Depends(get_current_actor),
    service: LancamentoService = Depends(get_lancamento_service),
) -> LancamentosStats:
    return await service.stats(actor, filters)


@router.get("", response_model=PaginatedLancamentos, summary="Listar lançamentos")
async def list_lancamentos(
    filters: Annotated[LancamentoFilters, Query()],
    actor: Actor = Depends(get_current_actor),
    service: LancamentoService = Depends(get_lancamento_service),
) -> PaginatedLancamentos:
    return await service.list(actor, filters)


@router.get("/{lancamento_id}", response_model=LancamentoRead, summary="Consultar lançamento")
async def get_lancamento(
    lancamento_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: LancamentoService = Depends(get_lancamento_service),
) -> LancamentoRead:
    lancamento = await service.get(actor, lancamento_id)
    return LancamentoRead.model_validate(lancamento)
