"""Testes básicos de configuração do logging estruturado."""

from typing import Any

import structlog

from app.core.logging import (
    bind_actor_context,
    bind_request_context,
    configure_structlog,
    get_logger,
    inject_request_context,
)
from app.core.roles import UserRole


def test_configure_structlog_and_get_logger():
    configure_structlog()
    logger = get_logger("test")
    logger.info("structlog smoke test", kind="smoke")


def test_inject_request_context_populates_event_fields() -> None:
    event: dict[str, Any] = {}
    with bind_request_context(
        request_id="req-1",
        tenant_id="tenant-1",
        user_id="user-1",
        role=UserRole.SECRETARIO,
    ):
        enriched = inject_request_context(None, "info", event)

    assert enriched["request_id"] == "req-1"
    assert enriched["tenant_id"] == "tenant-1"
    assert enriched["user_id"] == "user-1"
    assert enriched["role"] == "SECRETARIO"


def test_bind_request_context_is_scoped() -> None:
    event: dict[str, Any] = {}
    assert inject_request_context(None, "info", event) == {}

    with bind_request_context(request_id="req-2"):
        in_context: dict[str, Any] = {}
        assert inject_request_context(None, "info", in_context)["request_id"] == "req-2"

    after_context: dict[str, Any] = {}
    assert inject_request_context(None, "info", after_context).get("request_id") is None


def test_bind_actor_context_feeds_structlog_contextvars() -> None:
    structlog.contextvars.clear_contextvars()
    try:
        bind_actor_context(tenant_id=None, user_id="user-9", role=UserRole.FINANCEIRO)
        bound = structlog.contextvars.get_contextvars()
        assert bound["user_id"] == "user-9"
        assert bound["role"] == "FINANCEIRO"
        assert bound["tenant_id"] is None
    finally:
        structlog.contextvars.clear_contextvars()
