"""Configuração global do pytest para os testes do backend.

``app/db/base.py`` cria o engine do PostgreSQL no nível de módulo; ele é
criado mas nunca conectado durante os testes. Os serviços recebem uma
sessão SQLite em memória (aiosqlite) com o mesmo metadata dos modelos.
"""
from __future__ import annotations

import os


def _set_env_defaults() -> None:
    """Seta variáveis de ambiente mínimas para que pydantic Settings não falhe."""
    defaults = {
        "SECRET_KEY": "test-secret-key-32-chars-minimum!!",
        "JWT_SECRET_KEY": "test-jwt-secret-key-32chars-min!",
        "DEBUG": "false",
        "ENVIRONMENT": "test",
        "POSTGRES_POOL_SIZE": "1",
        "POSTGRES_MAX_OVERFLOW": "0",
        # bcrypt mínimo: hashing rápido nos testes
        "BCRYPT_ROUNDS": "4",
    }
    for key, val in defaults.items():
        os.environ.setdefault(key, val)


# Executa antes de qualquer import de módulo da app
_set_env_defaults()

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.db.base import Base  # noqa: E402
from app.db import models  # noqa: E402,F401


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
