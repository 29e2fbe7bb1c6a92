"""
Consulta de lançamentos (repasses) com isolamento por tenant.

O predicado de tenant é aplicado antes de qualquer filtro do cliente.
"""

from __future__ import annotations

import math
import uuid
from typing import Any

from fastapi import Depends
from sqlalchemy import Select, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.core.roles import Actor
from app.core.tenant import scope_for
from app.db.base import get_db
from app.db.models.lancamento import Lancamento
from app.schemas.lancamentos import (
    ContaBancariaTotal,
    LancamentoFilters,
    LancamentoRead,
    LancamentosStats,
    PaginatedLancamentos,
    Periodo,
    TipoRepasseTotal,
)

TOP_LIMIT = 10

# Grupos de filtros que algumas agregações ignoram
PERIODO = "periodo"
TIPO = "tipo"
CONTA = "conta"


def _filter_conditions(filters: LancamentoFilters, exclude: frozenset[str] = frozenset()) -> list[Any]:
    conditions: list[Any] = []

    if PERIODO not in exclude:
        if filters.ano:
            conditions.append(Lancamento.ano == filters.ano)
        if filters.mes:
            conditions.append(Lancamento.mes == filters.mes)

    if TIPO not in exclude and filters.tp_repasse:
        conditions.append(Lancamento.tp_repasse == filters.tp_repasse)

    if CONTA not in exclude and filters.has_bank_account:
        conditions.extend(
            [
                Lancamento.banco == filters.banco,
                Lancamento.agencia == filters.agencia,
                Lancamento.conta == filters.conta,
            ]
        )

    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        conditions.append(
            or_(Lancamento.municipio.ilike(pattern), Lancamento.entidade.ilike(pattern))
        )
    if filters.cnpj:
        conditions.append(Lancamento.cnpj == filters.cnpj)
    if filters.municipio:
        conditions.append(Lancamento.municipio.ilike(f"%{filters.municipio.strip()}%"))
    if filters.uf:
        conditions.append(Lancamento.uf == filters.uf.upper())

    return conditions


class LancamentoService:
    """Listagem, detalhe e estatísticas de lançamentos visíveis ao ator."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _scoped(actor: Actor, stmt: Select, filters: LancamentoFilters | None = None) -> Select:
        scope = scope_for(actor)
        stmt = scope.apply(stmt, Lancamento.tenant_id)
        if filters is not None and scope.unrestricted:
            requested = scope.effective_tenant(filters.tenant_id)
            if requested is not None:
                stmt = stmt.where(Lancamento.tenant_id == requested)
        return stmt

    async def list(self, actor: Actor, filters: LancamentoFilters) -> PaginatedLancamentos:
        stmt = self._scoped(actor, select(Lancamento), filters).where(
            *_filter_conditions(filters)
        )

        total_result = await self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        )
        total = int(total_result.scalar_one() or 0)

        sort_column = getattr(Lancamento, filters.sort_by)
        descending = filters.sort_order == "DESC"
        order_by = [sort_column.desc() if descending else sort_column.asc()]
        if filters.sort_by == "ano":
            order_by.append(Lancamento.mes.desc() if descending else Lancamento.mes.asc())
        order_by.append(Lancamento.id.asc())

        result = await self.db.execute(
            stmt.order_by(*order_by)
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        rows = result.scalars().all()

        return PaginatedLancamentos(
            items=[LancamentoRead.model_validate(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=math.ceil(total / filters.limit) if total else 0,
        )

    async def get(self, actor: Actor, lancamento_id: uuid.UUID) -> Lancamento:
        """Lançamento fora do escopo do ator é tratado como inexistente."""
        stmt = self._scoped(actor, select(Lancamento)).where(Lancamento.id == lancamento_id)
        result = await self.db.execute(stmt)
        lancamento = result.scalar_one_or_none()
        if lancamento is None:
            raise NotFoundError(
                "lancamento",
                lancamento_id,
                f"Lançamento com ID {lancamento_id} não encontrado",
            )
        return lancamento

    async def stats(self, actor: Actor, filters: LancamentoFilters) -> LancamentosStats:
        """
        Agregados dos lançamentos filtrados.

        ``tipos_repasse`` ignora o filtro de tipo, ``contas_bancarias`` ignora
        o filtro de conta e ``anos`` ignora ano/mês, para que sirvam como
        opções de filtro.
        """
        totals = await self.db.execute(
            self._scoped(
                actor,
                select(
                    func.count(Lancamento.id),
                    func.coalesce(func.sum(Lancamento.valor_bruto), 0),
                    func.coalesce(func.sum(Lancamento.valor_liquido), 0),
                ),
                filters,
            ).where(*_filter_conditions(filters))
        )
        total, valor_bruto, valor_liquido = totals.one()

        periodo_row = (
            await self.db.execute(
                self._scoped(actor, select(Lancamento.ano, Lancamento.mes), filters)
                .where(*_filter_conditions(filters))
                .order_by(Lancamento.ano.desc(), Lancamento.mes.desc())
                .limit(1)
            )
        ).first()

        tipo_total = func.count(Lancamento.id).label("total")
        tipos = await self.db.execute(
            self._scoped(actor, select(Lancamento.tp_repasse, tipo_total), filters)
            .where(*_filter_conditions(filters, frozenset({TIPO})))
            .group_by(Lancamento.tp_repasse)
            .order_by(desc("total"), Lancamento.tp_repasse.asc())
            .limit(TOP_LIMIT)
        )

        conta_total = func.count(Lancamento.id).label("total")
        contas = await self.db.execute(
            self._scoped(
                actor,
                select(Lancamento.banco, Lancamento.agencia, Lancamento.conta, conta_total),
                filters,
            )
            .where(
                Lancamento.banco.is_not(None),
                *_filter_conditions(filters, frozenset({CONTA})),
            )
            .group_by(Lancamento.banco, Lancamento.agencia, Lancamento.conta)
            .order_by(desc("total"), Lancamento.banco.asc())
            .limit(TOP_LIMIT)
        )

        anos = await self.db.execute(
            self._scoped(actor, select(Lancamento.ano).distinct(), filters)
            .where(*_filter_conditions(filters, frozenset({PERIODO})))
            .order_by(Lancamento.ano.desc())
        )

        return LancamentosStats(
            total_lancamentos=int(total or 0),
            valor_total_bruto=float(valor_bruto or 0),
            valor_total_liquido=float(valor_liquido or 0),
            periodo_mais_recente=(
                Periodo(ano=periodo_row.ano, mes=periodo_row.mes) if periodo_row else None
            ),
            anos=[int(ano) for ano in anos.scalars().all()],
            tipos_repasse=[
                TipoRepasseTotal(tipo=row.tp_repasse, total=int(row.total))
                for row in tipos.all()
            ],
            contas_bancarias=[
                ContaBancariaTotal(
                    banco=row.banco,
                    agencia=row.agencia,
                    conta=row.conta,
                    total=int(row.total),
                )
                for row in contas.all()
            ],
        )


def get_lancamento_service(db: AsyncSession = Depends(get_db)) -> LancamentoService:
    """Dependency provider."""
    return LancamentoService(db)
