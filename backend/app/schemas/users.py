"""
Schemas Pydantic para gerenciamento de usuários.

Nenhum schema de resposta expõe ``hashed_password``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.roles import UserRole, parse_role


class UserCreate(BaseModel):
    """Payload de criação de usuário."""

    email: EmailStr
    nome: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole
    tenant_id: Optional[uuid.UUID] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: object) -> UserRole:
        return parse_role(value)


class UserUpdate(BaseModel):
    """
    Atualização parcial de usuário.

    ``tenant_id`` só é considerado quando enviado explicitamente; use
    ``tenant_id_provided`` para distinguir ausência de ``null``.
    """

    nome: Optional[str] = Field(default=None, min_length=3, max_length=255)
    role: Optional[UserRole] = None
    tenant_id: Optional[uuid.UUID] = None
    ativo: Optional[bool] = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: object) -> Optional[UserRole]:
        if value is None:
            return None
        return parse_role(value)

    @property
    def tenant_id_provided(self) -> bool:
        return "tenant_id" in self.model_fields_set


class UserRead(BaseModel):
    """Usuário em resposta."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    nome: str
    role: UserRole
    tenant_id: Optional[uuid.UUID] = None
    ativo: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class UserListResponse(BaseModel):
    """Página de usuários visíveis ao ator."""

    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[UserRead]
