"""
Erros de domínio e tradução para respostas HTTP.

Cada tipo de falha possui uma classe própria para que a camada HTTP
diferencie "já existe" (409) de "não permitido" (403).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, status
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger(__name__)


class DomainError(Exception):
    """Base de todos os erros de negócio."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.message, "kind": self.kind}


class NotFoundError(DomainError):
    """Entidade não encontrada (ator, alvo, tenant, lançamento)."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, subject: str, identifier: Any = None, message: Optional[str] = None):
        self.subject = subject
        self.identifier = identifier
        super().__init__(message or f"{subject} {identifier} não encontrado")

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["subject"] = self.subject
        return payload


class ActorNotFoundError(NotFoundError):
    """O usuário autenticado não existe mais (ou está inativo)."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, identifier: Any = None):
        super().__init__("actor", identifier, f"Usuário autenticado {identifier} não encontrado")


class ConflictError(DomainError):
    """Violação de unicidade: email, CNPJ já vinculado, etc."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class DeniedError(DomainError):
    """Regra de política negou a operação; sempre carrega a regra violada."""

    kind = "denied"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason: str, rule: str):
        super().__init__(reason)
        self.reason = reason
        self.rule = rule

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["rule"] = self.rule
        return payload


class InvalidError(DomainError):
    """Entrada malformada ou incompatível com os invariantes do modelo."""

    kind = "invalid"
    status_code = 422


class DataIntegrityError(DomainError):
    """Estado inconsistente no banco (ex.: CNPJ vinculado a dois tenants)."""

    kind = "integrity"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def _domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if isinstance(exc, DataIntegrityError):
        logger.error(
            "domain_integrity_error",
            path=request.url.path,
            detail=exc.message,
        )
    else:
        logger.warning(
            "domain_error",
            path=request.url.path,
            kind=exc.kind,
            detail=exc.message,
            rule=getattr(exc, "rule", None),
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    """Instala a tradução DomainError -> resposta HTTP."""
    app.add_exception_handler(DomainError, _domain_error_handler)
