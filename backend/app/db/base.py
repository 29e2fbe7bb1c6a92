"""
Base de dados SQLAlchemy.

Configuração assíncrona e sessão para o PostgreSQL, além do helper de
transação usado pelos serviços que escrevem em mais de uma tabela.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings
from app.core.errors import ConflictError
from app.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Engine assíncrono
engine = create_async_engine(
    settings.postgres_url,
    echo=settings.debug,
    pool_size=settings.postgres_pool_size,
    max_overflow=settings.postgres_max_overflow,
    isolation_level=settings.postgres_isolation_level,
)

# Session factory assíncrono
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Classe base para todos os modelos SQLAlchemy."""

    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency para injetar sessão de banco nos endpoints.

    Yields:
        AsyncSession: Sessão assíncrona do PostgreSQL
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def atomic(db: AsyncSession, conflict_message: str) -> AsyncIterator[AsyncSession]:
    """
    Agrupa escritas em uma única transação.

    Commit ao final do bloco; rollback em qualquer erro. Violações de
    constraint única detectadas pelo banco viram ``ConflictError``.
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("db_integrity_violation", error=str(exc.orig))
        raise ConflictError(conflict_message) from exc
    except BaseException:
        await db.rollback()
        raise
