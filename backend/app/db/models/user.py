"""
Modelo SQLAlchemy para User.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.roles import PLATFORM_ROLES, TENANT_ROLES, UserRole
from app.db.base import Base
from app.db.models.tenant import Tenant
import uuid


def _sql_in(roles) -> str:
    return ", ".join(f"'{role.value}'" for role in sorted(roles, key=lambda r: r.value))


class User(Base):
    """
    Representa um usuário do sistema.

    Atributos:
        id: UUID único
        tenant_id: UUID do tenant (nulo para roles de plataforma)
        email: Email do usuário (único na plataforma, minúsculo)
        nome: Nome completo
        hashed_password: Senha criptografada (bcrypt)
        role: Um dos seis roles de ``UserRole``
        ativo: Status do usuário
        created_at: Data de criação
        updated_at: Última atualização
        updated_by: Usuário que fez a última alteração
        last_login: Último login
    """

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    email = Column(String(255), nullable=False, unique=True, index=True)
    nome = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(
        Enum(UserRole, name="user_role", native_enum=False, length=32),
        nullable=False,
        default=UserRole.VISUALIZADOR,
    )
    ativo = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
    updated_by = Column(Uuid(as_uuid=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relacionamentos
    tenant = relationship("Tenant", back_populates="users")

    __table_args__ = (
        CheckConstraint(
            f"(role IN ({_sql_in(PLATFORM_ROLES)}) AND tenant_id IS NULL) OR "
            f"(role IN ({_sql_in(TENANT_ROLES)}) AND tenant_id IS NOT NULL)",
            name="ck_users_role_tenant",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role}, tenant_id={self.tenant_id})>"


# Adicionar relacionamento inverso no Tenant
Tenant.users = relationship("User", back_populates="tenant", passive_deletes=True)
