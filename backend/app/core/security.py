"""
Módulo de Segurança - JWT e Password Hashing.

Funções para criar e validar tokens JWT e gerenciar senhas.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
import bcrypt
from typing import Optional
from uuid import uuid4

from app.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def _jwt_now() -> datetime:
    """Retorna timestamp atual em UTC."""
    return datetime.now(timezone.utc)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica se a senha plain corresponde ao hash fornecido.

    Args:
        plain_password: Senha em texto plano
        hashed_password: Hash bcrypt da senha

    Returns:
        True se a senha está correta, False caso contrário
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # hash corrompido/formato desconhecido
        return False


def get_password_hash(password: str) -> str:
    """
    Gera hash bcrypt para a senha fornecida.

    Args:
        password: Senha em texto plano

    Returns:
        Hash bcrypt da senha
    """
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Cria um token JWT de acesso.

    Args:
        data: Payload do token ({"sub": user_id, "role": ..., "tenant_id": ...})
        expires_delta: Tempo de expiração opcional

    Returns:
        Token JWT codificado
    """
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = _jwt_now() + expires_delta
    else:
        expire = _jwt_now() + timedelta(
            minutes=settings.jwt_access_token_expire_minutes
        )

    to_encode.update(
        {
            "exp": int(expire.timestamp()),
            "iat": int(_jwt_now().timestamp()),
            "jti": str(uuid4()),
        }
    )
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decodifica e valida um token JWT.

    Args:
        token: Token JWT codificado

    Returns:
        Payload do token se válido, None se inválido
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.info("jwt_decode_failed", error=str(exc))
        return None
