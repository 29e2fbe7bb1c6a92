"""
Dependencies para endpoints FastAPI.

Funções reutilizáveis para injeção de dependências.
"""
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from app.core.logging import bind_actor_context
from app.core.roles import Actor
from app.core.security import decode_access_token
from app.db.base import get_db
from app.db.models.user import User


# Security scheme; a ausência de token é tratada em get_current_user.
security_optional = HTTPBearer(auto_error=False)


async def _get_user_from_token(
    credentials: HTTPAuthorizationCredentials,
    db: AsyncSession,
) -> User:
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identifier",
        )

    # Role e tenant vêm do banco, nunca do token: mudanças valem na hora.
    user = await db.get(User, user_uuid)
    if not user or not user.ativo:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Obtém o usuário atual a partir do token JWT.

    Args:
        credentials: Credenciais Bearer do header
        db: Sessão assíncrona do banco

    Returns:
        User: Usuário autenticado e ativo

    Raises:
        HTTPException: Se token ausente/inválido ou usuário não encontrado
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await _get_user_from_token(credentials, db)


async def get_current_actor(
    current_user: User = Depends(get_current_user),
) -> Actor:
    """
    Converte o usuário autenticado no ``Actor`` consumido pelas políticas.

    Também enriquece o contexto de log da requisição com tenant, usuário e role.
    """
    actor = Actor.from_user(current_user)
    bind_actor_context(
        tenant_id=str(actor.tenant_id) if actor.tenant_id else None,
        user_id=str(actor.id),
        role=actor.role.value,
    )
    return actor
