"""
Aplicação Principal FastAPI - SaaS Repasses Municipais

Entry point do servidor REST API com suporte a multi-tenancy.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from time import perf_counter
from typing import Any
from uuid import uuid4

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.api.v1 import auth
from app.api.v1.lancamentos import router as lancamentos_router
from app.api.v1.tenants import router as tenants_router
from app.api.v1.users import router as users_router
from app.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import bind_request_context, configure_structlog, get_logger
from app.db.base import engine

settings = get_settings()
configure_structlog()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gerencia o ciclo de vida da aplicação.

    Startup: log de inicialização
    Shutdown: descarte do pool de conexões
    """
    logger.info(
        "app_startup_started",
        app_name=settings.app_name,
        app_version=settings.app_version,
        environment=settings.environment,
    )

    yield

    await engine.dispose()
    logger.info("app_shutdown")


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Middleware de observabilidade básica com duração de request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-Id") or request.headers.get(
            "X-Request-ID"
        ) or str(uuid4())
        request.state.request_id = request_id
        start = perf_counter()

        structlog.contextvars.clear_contextvars()
        with bind_request_context(request_id=request_id):
            response = await call_next(request)

        elapsed_ms = (perf_counter() - start) * 1000
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Request-Duration-Ms"] = f"{elapsed_ms:.2f}"

        logger.info(
            "http_request_complete",
            method=request.method,
            path=request.url.path,
            status_code=getattr(response, "status_code", None),
            request_id=request_id,
            duration_ms=round(elapsed_ms, 2),
        )
        return response


# Criar aplicação FastAPI
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Consulta de repasses municipais com isolamento por tenant",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Autenticação de usuários."},
        {"name": "Usuários", "description": "Gestão de usuários e roles."},
        {"name": "Tenants", "description": "Municípios, CNPJs e sincronização."},
        {"name": "Lançamentos", "description": "Consulta de repasses."},
    ],
    lifespan=lifespan,
)


# =====================================================
# Middlewares
# =====================================================

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTimingMiddleware)

register_exception_handlers(app)


def _build_health_result() -> dict[str, Any]:
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
    }


async def _check_postgres() -> dict[str, Any]:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "connected"}
    except (OSError, SQLAlchemyError) as exc:
        return {"status": "disconnected", "error": str(exc)}


# =====================================================
# Rotas API v1
# =====================================================

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router)
api_router.include_router(users_router)
api_router.include_router(tenants_router)
api_router.include_router(lancamentos_router)

app.include_router(api_router)


# =====================================================
# Health Check
# =====================================================

@app.get("/health")
async def health():
    """Health check com estado do PostgreSQL."""
    payload = _build_health_result()
    postgres = await _check_postgres()
    payload["status"] = "healthy" if postgres["status"] == "connected" else "degraded"
    payload["dependencies"] = {"postgres": postgres}
    return payload


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
