"""
Modelo SQLAlchemy para Tenant (Município).
"""

from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base
import uuid


class Tenant(Base):
    """
    Representa um município (tenant) no sistema.

    Atributos:
        id: UUID único
        nome: Nome do município/entidade
        cnpj: CNPJ principal (único em toda a plataforma)
        email_contato: Email de contato da prefeitura
        cidade: Cidade
        estado: UF (2 letras)
        ativo: Status do tenant
        cnpjs: CNPJs adicionais (ex: "Estadual" de capitais)
        created_at / updated_at: Auditoria temporal
        created_by / updated_by: Usuário responsável pela última escrita
    """

    __tablename__ = "tenants"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    nome = Column(String(255), nullable=False)
    cnpj = Column(String(18), unique=True, nullable=False, index=True)
    email_contato = Column(String(255), nullable=False)
    cidade = Column(String(100), nullable=True)
    estado = Column(String(2), nullable=True)
    ativo = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    updated_by = Column(Uuid(as_uuid=True), nullable=True)

    cnpjs = relationship(
        "TenantCNPJ",
        back_populates="tenant",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TenantCNPJ.created_at",
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, nome={self.nome}, cnpj={self.cnpj})>"
