"""
Endpoints de Autenticação API v1.

Rotas para login e consulta do usuário autenticado.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_current_user
from app.db.models.user import User
from app.schemas.auth import Token, UserLogin
from app.schemas.users import UserRead
from app.services.auth_service import AuthService, get_auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=Token)
async def login(
    user_login: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Autentica usuário e retorna o token JWT.

    Args:
        user_login: Email e senha
        auth_service: Serviço de autenticação

    Returns:
        Token de acesso e dados do usuário (sem senha)
    """
    user = await auth_service.authenticate_user(
        user_login.email,
        user_login.password,
    )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha inválidos",
        )

    token = auth_service.create_token(user)
    return Token(**token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """Retorna informações do usuário autenticado."""
    return current_user
