"""
Schemas de consulta de lançamentos (repasses).
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


SORTABLE_COLUMNS = {
    "ano",
    "mes",
    "tp_repasse",
    "municipio",
    "uf",
    "cnpj",
    "valor_bruto",
    "valor_liquido",
    "created_at",
}


class LancamentoFilters(BaseModel):
    """Filtros, paginação e ordenação de lançamentos."""

    ano: Optional[int] = Field(default=None, ge=1999, le=2050)
    mes: Optional[int] = Field(default=None, ge=1, le=12)
    tp_repasse: Optional[str] = None
    banco: Optional[str] = None
    agencia: Optional[str] = None
    conta: Optional[str] = None
    search: Optional[str] = None
    cnpj: Optional[str] = None
    municipio: Optional[str] = None
    uf: Optional[str] = Field(default=None, min_length=2, max_length=2)
    # Só respeitado para roles de plataforma
    tenant_id: Optional[uuid.UUID] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    sort_by: str = "ano"
    sort_order: Literal["ASC", "DESC"] = "DESC"

    @field_validator("uf")
    @classmethod
    def _normalize_uf(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.upper()

    @field_validator("sort_by")
    @classmethod
    def _validate_sort_by(cls, value: str) -> str:
        if value not in SORTABLE_COLUMNS:
            raise ValueError(
                f"sort_by inválido: {value}. Use um dos: {', '.join(sorted(SORTABLE_COLUMNS))}"
            )
        return value

    @property
    def has_bank_account(self) -> bool:
        return bool(self.banco and self.agencia and self.conta)


class LancamentoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: Optional[uuid.UUID] = None
    cnpj: str
    nu_processo: Optional[str] = None
    nu_portaria: Optional[str] = None
    dt_portaria: Optional[date] = None
    ano: int
    mes: int
    nu_competencia: Optional[str] = None
    dia_pagamento: Optional[int] = None
    tp_repasse: str
    nu_ob: Optional[str] = None
    co_tipo_recurso: Optional[str] = None
    tp_recurso_prop: Optional[str] = None
    recurso_covid_ou_normal: Optional[str] = None
    uf: str
    co_municipio_ibge: str
    municipio: str
    entidade: Optional[str] = None
    bloco: Optional[str] = None
    componente: Optional[str] = None
    programa: Optional[str] = None
    nu_proposta: Optional[str] = None
    banco: Optional[str] = None
    agencia: Optional[str] = None
    conta: Optional[str] = None
    valor_bruto: Decimal
    desconto: Decimal
    valor_liquido: Decimal
    dt_saldo_conta: Optional[date] = None
    vl_saldo_conta: Optional[Decimal] = None
    marcador_emenda_covid: Optional[str] = None


class PaginatedLancamentos(BaseModel):
    items: List[LancamentoRead]
    total: int
    page: int
    limit: int
    total_pages: int


class Periodo(BaseModel):
    ano: int
    mes: int


class TipoRepasseTotal(BaseModel):
    tipo: str
    total: int


class ContaBancariaTotal(BaseModel):
    banco: Optional[str] = None
    agencia: Optional[str] = None
    conta: Optional[str] = None
    total: int


class LancamentosStats(BaseModel):
    """Agregados sobre os lançamentos visíveis ao ator."""

    total_lancamentos: int
    valor_total_bruto: float
    valor_total_liquido: float
    periodo_mais_recente: Optional[Periodo] = None
    anos: List[int]
    tipos_repasse: List[TipoRepasseTotal]
    contas_bancarias: List[ContaBancariaTotal]
