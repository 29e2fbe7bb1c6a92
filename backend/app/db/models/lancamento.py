"""
Lançamentos financeiros (repasses) importados por CNPJ.

As linhas são gravadas pela carga externa; esta aplicação só altera
``tenant_id``, e apenas de nulo para um tenant.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Lancamento(Base):
    """Lançamento de repasse identificado por CNPJ."""

    __tablename__ = "lancamentos"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id"),
        nullable=True,
        index=True,
    )
    cnpj = Column(String(18), nullable=False, index=True)

    # Processo e portaria
    nu_processo = Column(String(50), nullable=True)
    nu_portaria = Column(String(50), nullable=True)
    dt_portaria = Column(Date, nullable=True)

    # Período
    ano = Column(Integer, nullable=False)
    mes = Column(Integer, nullable=False)
    nu_competencia = Column(String(20), nullable=True)
    dia_pagamento = Column(Integer, nullable=True)

    # Tipo e repasse
    tp_repasse = Column(String(100), nullable=False)
    nu_ob = Column(String(50), nullable=True)
    co_tipo_recurso = Column(String(20), nullable=True)
    tp_recurso_prop = Column(String(100), nullable=True)
    recurso_covid_ou_normal = Column(String(20), nullable=True)

    # Localização
    uf = Column(String(2), nullable=False)
    co_municipio_ibge = Column(String(10), nullable=False)
    municipio = Column(String(150), nullable=False)
    entidade = Column(String(255), nullable=True)

    # Classificação
    bloco = Column(String(100), nullable=True)
    componente = Column(String(150), nullable=True)
    programa = Column(String(150), nullable=True)
    nu_proposta = Column(String(50), nullable=True)

    # Dados bancários
    banco = Column(String(100), nullable=True)
    agencia = Column(String(20), nullable=True)
    conta = Column(String(30), nullable=True)

    # Valores
    valor_bruto = Column(Numeric(15, 2), nullable=False)
    desconto = Column(Numeric(15, 2), nullable=False, default=0)
    valor_liquido = Column(Numeric(15, 2), nullable=False)
    dt_saldo_conta = Column(Date, nullable=True)
    vl_saldo_conta = Column(Numeric(15, 2), nullable=True)
    marcador_emenda_covid = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
    updated_by = Column(Uuid(as_uuid=True), nullable=True)

    tenant = relationship("Tenant")

    __table_args__ = (
        # Atende ao UPDATE ... WHERE cnpj = ? AND tenant_id IS NULL
        Index("ix_lancamentos_cnpj_tenant", "cnpj", "tenant_id"),
        Index("ix_lancamentos_periodo", "ano", "mes"),
    )

    def __repr__(self) -> str:
        return f"<Lancamento(id={self.id}, cnpj={self.cnpj}, tenant_id={self.tenant_id})>"
