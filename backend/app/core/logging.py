"""Configuração de logging estruturado padrão da aplicação."""

from __future__ import annotations

from contextvars import ContextVar
import logging
from collections.abc import Iterator
from typing import Any

from contextlib import contextmanager

import structlog

from app.config import get_settings


_REQUEST_ID_VAR: ContextVar[str | None] = ContextVar("request_id", default=None)
_TENANT_ID_VAR: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_USER_ID_VAR: ContextVar[str | None] = ContextVar("user_id", default=None)
_ROLE_VAR: ContextVar[str | None] = ContextVar("role", default=None)


def _to_str(value: Any) -> str | None:
    """Converte valor de contexto para string quando aplicável."""
    if value is None:
        return None
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _is_production(settings) -> bool:
    environment = settings.environment.lower()
    return not settings.debug and environment not in {"development", "dev", "local"}


@contextmanager
def bind_request_context(
    *,
    request_id: str | None = None,
    tenant_id: Any = None,
    user_id: Any = None,
    role: Any = None,
) -> Iterator[None]:
    """Adiciona contexto de request/ator aos logs via contextvars."""
    tokens = []
    if request_id is not None:
        tokens.append((_REQUEST_ID_VAR, _REQUEST_ID_VAR.set(_to_str(request_id))))
    if tenant_id is not None:
        tokens.append((_TENANT_ID_VAR, _TENANT_ID_VAR.set(_to_str(tenant_id))))
    if user_id is not None:
        tokens.append((_USER_ID_VAR, _USER_ID_VAR.set(_to_str(user_id))))
    if role is not None:
        tokens.append((_ROLE_VAR, _ROLE_VAR.set(_to_str(role))))

    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def bind_actor_context(*, tenant_id: Any = None, user_id: Any = None, role: Any = None) -> None:
    """Vincula o ator autenticado aos logs do restante da requisição."""
    structlog.contextvars.bind_contextvars(
        tenant_id=_to_str(tenant_id),
        user_id=_to_str(user_id),
        role=_to_str(role),
    )


def inject_request_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Injecta contexto atual (request/tenant/user/role) no evento de log."""
    del logger, method_name

    for key, var in (
        ("request_id", _REQUEST_ID_VAR),
        ("tenant_id", _TENANT_ID_VAR),
        ("user_id", _USER_ID_VAR),
        ("role", _ROLE_VAR),
    ):
        value = var.get()
        if value is not None:
            event_dict.setdefault(key, value)

    return event_dict


def configure_structlog() -> None:
    """Configura structlog com saída estruturada para observabilidade."""
    settings = get_settings()
    is_production = _is_production(settings)

    logging.basicConfig(level=logging.INFO, format="%(message)s", force=True)

    logger_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.add_log_level,
        inject_request_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if is_production
        else structlog.dev.ConsoleRenderer()
    )
    logger_processors.append(renderer)

    structlog.configure(
        processors=logger_processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Retorna logger estruturado para o módulo informado."""
    return structlog.get_logger(name)
