"""
Schemas de tenants (municípios) e seus CNPJs.

CNPJs trafegam e são armazenados com máscara (00.000.000/0000-00).
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.users import UserRead

CNPJ_PATTERN = re.compile(r"^\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2}$")
UF_PATTERN = re.compile(r"^[A-Z]{2}$")


def validate_cnpj(value: Optional[str], label: str = "CNPJ") -> Optional[str]:
    """Valida o formato mascarado do CNPJ."""
    if value is None:
        return None
    normalized = value.strip()
    if not CNPJ_PATTERN.match(normalized):
        raise ValueError(f"{label} deve estar no formato 00.000.000/0000-00")
    return normalized


def validate_uf(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not UF_PATTERN.match(value):
        raise ValueError("Estado deve ser uma sigla de 2 letras maiúsculas")
    return value


class SecretarioCreate(BaseModel):
    """Secretário criado junto com o tenant."""

    nome: str = Field(..., min_length=3, max_length=255)
    email: EmailStr
    senha: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class TenantCreate(BaseModel):
    """Payload de criação de tenant, com secretário opcional."""

    nome: str = Field(..., min_length=3, max_length=255)
    cnpj: str
    email_contato: EmailStr
    cidade: Optional[str] = Field(default=None, max_length=100)
    estado: Optional[str] = None
    cnpj_estadual: Optional[str] = None
    secretario: Optional[SecretarioCreate] = None

    @field_validator("cnpj")
    @classmethod
    def _validate_cnpj(cls, value: str) -> str:
        return validate_cnpj(value)

    @field_validator("cnpj_estadual")
    @classmethod
    def _validate_cnpj_estadual(cls, value: Optional[str]) -> Optional[str]:
        return validate_cnpj(value, "CNPJ Estadual")

    @field_validator("estado")
    @classmethod
    def _validate_estado(cls, value: Optional[str]) -> Optional[str]:
        return validate_uf(value)


class TenantUpdate(BaseModel):
    """Atualização parcial de tenant."""

    nome: Optional[str] = Field(default=None, min_length=3, max_length=255)
    cnpj: Optional[str] = None
    email_contato: Optional[EmailStr] = None
    cidade: Optional[str] = Field(default=None, max_length=100)
    estado: Optional[str] = None
    cnpj_estadual: Optional[str] = None
    ativo: Optional[bool] = None

    @field_validator("cnpj")
    @classmethod
    def _validate_cnpj(cls, value: Optional[str]) -> Optional[str]:
        return validate_cnpj(value)

    @field_validator("cnpj_estadual")
    @classmethod
    def _validate_cnpj_estadual(cls, value: Optional[str]) -> Optional[str]:
        return validate_cnpj(value, "CNPJ Estadual")

    @field_validator("estado")
    @classmethod
    def _validate_estado(cls, value: Optional[str]) -> Optional[str]:
        return validate_uf(value)


class TenantCnpjCreate(BaseModel):
    """CNPJ adicional (ex.: "Estadual")."""

    cnpj: str
    descricao: Optional[str] = Field(default=None, max_length=255)

    @field_validator("cnpj")
    @classmethod
    def _validate_cnpj(cls, value: str) -> str:
        return validate_cnpj(value)


class TenantCnpjRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    cnpj: str
    descricao: Optional[str] = None
    created_at: Optional[datetime] = None


class TenantRead(BaseModel):
    """Tenant em resposta, com os CNPJs adicionais."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    nome: str
    cnpj: str
    email_contato: str
    cidade: Optional[str] = None
    estado: Optional[str] = None
    ativo: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[uuid.UUID] = None
    updated_by: Optional[uuid.UUID] = None
    cnpjs: List[TenantCnpjRead] = Field(default_factory=list)


class TenantCreateResponse(BaseModel):
    """Resultado da criação: tenant, secretário (sem senha) e lançamentos vinculados."""

    tenant: TenantRead
    secretario: Optional[UserRead] = None
    synced: int = 0


class TenantCnpjBindResponse(BaseModel):
    cnpj: TenantCnpjRead
    created: bool
    synced: int


class SyncLancamentosResponse(BaseModel):
    synced: int
    message: str
