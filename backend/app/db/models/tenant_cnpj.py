"""
CNPJs adicionais de um tenant.

Uma capital, por exemplo, recebe repasses tanto no CNPJ municipal quanto
no estadual. Cada CNPJ é único na plataforma: nunca aponta para dois tenants.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class TenantCNPJ(Base):
    """Vínculo CNPJ -> tenant além do CNPJ principal."""

    __tablename__ = "tenant_cnpjs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cnpj = Column(String(18), nullable=False)
    descricao = Column(String(255), nullable=True)
    tenant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tenant = relationship("Tenant", back_populates="cnpjs")

    __table_args__ = (
        UniqueConstraint("cnpj", name="uq_tenant_cnpjs_cnpj"),
    )

    def __repr__(self) -> str:
        return f"<TenantCNPJ(cnpj={self.cnpj}, tenant_id={self.tenant_id})>"
