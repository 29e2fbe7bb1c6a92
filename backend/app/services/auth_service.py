"""
Serviço de Autenticação.

Login por email e senha e emissão do token de acesso.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.logging import get_logger
from app.core.security import create_access_token, verify_password
from app.db.base import get_db
from app.db.models.user import User


logger = get_logger(__name__)


class AuthService:
    """Serviço para operações de autenticação."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Autentica usuário com email e senha.

        Args:
            email: Email do usuário (comparado em minúsculas)
            password: Senha em texto plano

        Returns:
            User se autenticado com sucesso, None caso contrário
        """
        normalized = email.strip().lower()
        result = await self.db.execute(select(User).where(User.email == normalized))
        user = result.scalar_one_or_none()

        if not user or not user.ativo:
            logger.info("login_failed", email=normalized, reason="unknown_or_inactive")
            return None

        if not verify_password(password, user.hashed_password):
            logger.info("login_failed", email=normalized, reason="bad_password")
            return None

        user.last_login = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("login_succeeded", user_id=str(user.id), role=user.role.value)
        return user

    def create_token(self, user: User) -> dict:
        """
        Cria o token de acesso.

        Args:
            user: Usuário autenticado

        Returns:
            Dict com access_token, token_type e expires_in (segundos)
        """
        settings = get_settings()
        token_data = {
            "sub": str(user.id),
            "role": user.role.value,
            "tenant_id": str(user.tenant_id) if user.tenant_id else None,
        }
        return {
            "access_token": create_access_token(token_data),
            "token_type": "bearer",
            "expires_in": settings.jwt_access_token_expire_minutes * 60,
        }


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency provider."""
    return AuthService(db)
